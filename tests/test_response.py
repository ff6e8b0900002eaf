# ==============================================================================
# RESPONSE ENVELOPE TESTS
# ==============================================================================

import json
from datetime import datetime, timezone

from minimal.core.exceptions import NoResourceAccessError
from minimal.schemas.response import ModelResponse, fail, fail_code, ok, ok_code

from sample_models import Todo


def body(response) -> dict:
    return json.loads(response.body)


class TestSuccessEnvelopes:

    def test_ok(self):
        response = ok({"answer": 42})

        assert response.status_code == 200
        assert body(response) == {"success": True, "message": "", "data": {"answer": 42}}

    def test_ok_code(self):
        response = ok_code(201, [1, 2, 3])

        assert response.status_code == 201
        assert body(response)["data"] == [1, 2, 3]

    def test_entities_are_serialized_by_column(self):
        created = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        todo = Todo(id=1, title="ship", done=True, owner="ann", created_at=created, updated_at=created)

        data = body(ok([todo]))["data"]

        assert data == [{
            "id": 1,
            "title": "ship",
            "done": True,
            "owner": "ann",
            "created_at": "2024-05-01T12:00:00+00:00",
            "updated_at": "2024-05-01T12:00:00+00:00",
        }]


class TestFailureEnvelopes:

    def test_fail_code_uses_exception_message(self):
        response = fail_code(403, NoResourceAccessError())

        assert response.status_code == 403
        assert body(response) == {
            "success": False,
            "message": "no resource access",
            "data": None,
        }

    def test_fail_with_plain_exception(self):
        response = fail(ValueError("boom"))

        assert response.status_code == 500
        assert body(response)["message"] == "boom"

    def test_fail_without_error(self):
        assert body(fail_code(400, None))["message"] == ""


def test_model_response_schema():
    envelope = ModelResponse[int](data=5)

    assert envelope.model_dump() == {"success": True, "message": "", "data": 5}
