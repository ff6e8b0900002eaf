# ==============================================================================
# RESPONSE ENVELOPES - Success / Failure Wrappers
# ==============================================================================
# Every JSON answer from a resource route uses the same envelope:
#   {"success": bool, "message": str, "data": T | null}
# ==============================================================================

from __future__ import annotations

from typing import Any, Generic, Optional, TypeVar

from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from minimal.core.exceptions import AppException
from minimal.database.base import Model

# Type variable for generic response types
T = TypeVar("T")


class BaseResponse(BaseModel):
    """Outcome fields shared by every envelope."""

    success: bool = Field(
        True,
        description="Whether the request was successful"
    )
    message: str = Field(
        "",
        description="Error text on failure, empty on success"
    )


class ModelResponse(BaseResponse, Generic[T]):
    """
    Envelope carrying a payload.

    Use ``ModelResponse[TodoOut]`` as a route's ``response_model`` to
    document the payload type in OpenAPI.
    """

    data: Optional[T] = Field(
        None,
        description="Response data"
    )


def _message(error: Optional[BaseException]) -> str:
    if error is None:
        return ""
    if isinstance(error, AppException):
        return error.message
    return str(error)


def _serialize(data: Any) -> Any:
    """Flatten ORM entities to column dictionaries before JSON encoding."""
    if isinstance(data, Model):
        return data.to_dict()
    if isinstance(data, (list, tuple)):
        return [_serialize(item) for item in data]
    return data


def envelope(success: bool, data: Any, error: Optional[BaseException]) -> dict[str, Any]:
    """Build the JSON-ready envelope dictionary."""
    return {
        "success": success,
        "message": _message(error),
        "data": jsonable_encoder(_serialize(data)),
    }


def ok(data: Any) -> JSONResponse:
    """200 with a success envelope."""
    return ok_code(status.HTTP_200_OK, data)


def ok_code(code: int, data: Any) -> JSONResponse:
    """Success envelope with an explicit status code."""
    return JSONResponse(status_code=code, content=envelope(True, data, None))


def fail_code(code: int, error: Optional[BaseException]) -> JSONResponse:
    """Failure envelope with an explicit status code; ``data`` is null."""
    return JSONResponse(status_code=code, content=envelope(False, None, error))


def fail(error: Optional[BaseException]) -> JSONResponse:
    """500 with a failure envelope."""
    return fail_code(status.HTTP_500_INTERNAL_SERVER_ERROR, error)
