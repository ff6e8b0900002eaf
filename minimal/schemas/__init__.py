# ==============================================================================
# SCHEMAS PACKAGE INITIALIZATION
# ==============================================================================

from minimal.schemas.response import (
    BaseResponse,
    ModelResponse,
    envelope,
    fail,
    fail_code,
    ok,
    ok_code,
)

__all__ = [
    "BaseResponse",
    "ModelResponse",
    "envelope",
    "fail",
    "fail_code",
    "ok",
    "ok_code",
]
