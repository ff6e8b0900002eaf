# ==============================================================================
# CUSTOM EXCEPTIONS - Resource Error Hierarchy
# ==============================================================================
# Structured exception classes for consistent error handling
# Each exception maps to the HTTP status its envelope is sent with
# ==============================================================================

from __future__ import annotations

from typing import Any, Dict, Optional


class AppException(Exception):
    """
    Base exception for all application errors.

    Provides a consistent interface for error handling with:
    - Error code for programmatic identification
    - HTTP status code mapping
    - Message sent verbatim in the response envelope

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable error identifier
        status_code: HTTP status code to return
        details: Additional context dictionary
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        error_code: str = "INTERNAL_ERROR",
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to dictionary format for JSON response.

        Returns:
            Failure envelope carrying the error message
        """
        return {
            "success": False,
            "message": self.message,
            "data": None,
        }

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message='{self.message}', "
            f"error_code='{self.error_code}', "
            f"status_code={self.status_code})"
        )


# ==============================================================================
# RESOURCE EXCEPTIONS
# ==============================================================================

class NoResourceAccessError(AppException):
    """
    Raised when an authorization predicate rejects the operation.

    Maps to HTTP 403 Forbidden.
    """

    def __init__(self, message: str = "no resource access") -> None:
        super().__init__(
            message=message,
            error_code="NO_RESOURCE_ACCESS",
            status_code=403,
        )


class NoResourceFoundError(AppException):
    """
    Raised when the requested entity does not exist.

    Maps to HTTP 404 Not Found.
    """

    def __init__(
        self,
        message: str = "no resource found",
        resource_id: Optional[Any] = None,
    ) -> None:
        details = {}
        if resource_id is not None:
            details["resource_id"] = str(resource_id)

        super().__init__(
            message=message,
            error_code="NO_RESOURCE_FOUND",
            status_code=404,
            details=details,
        )
        self.resource_id = resource_id


class DatabaseError(AppException):
    """
    Raised when a database operation fails.

    The message is deliberately generic; the cause is logged, not sent.
    """

    def __init__(
        self,
        message: str = "database problem",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code="DATABASE_ERROR",
            status_code=500,
            details=details,
        )


class NoBindTypeError(AppException):
    """Raised when a write or create route has no bind type configured."""

    def __init__(self, message: str = "unable to handle this request") -> None:
        super().__init__(
            message=message,
            error_code="NO_BIND_TYPE",
            status_code=500,
        )


# ==============================================================================
# VALIDATION EXCEPTIONS
# ==============================================================================

class InvalidDataError(AppException):
    """
    Raised when a request body cannot be bound or patched onto an entity.

    Maps to HTTP 400 Bad Request.
    """

    def __init__(
        self,
        message: str = "bad data",
        errors: Optional[Any] = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code="INVALID_DATA",
            status_code=400,
            details={"validation_errors": errors} if errors else None,
        )


class InvalidIDError(AppException):
    """Raised when the ``id`` path parameter is not a non-negative integer."""

    def __init__(self, message: str = "bad id") -> None:
        super().__init__(
            message=message,
            error_code="INVALID_ID",
            status_code=400,
        )


# ==============================================================================
# SERVER EXCEPTIONS
# ==============================================================================

class ConfigurationError(AppException):
    """
    Raised when the server is started with an unusable configuration.

    Examples: AUTO_TLS without any certificate, rendering without a
    template renderer.
    """

    def __init__(
        self,
        message: str = "Invalid configuration",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code="CONFIGURATION_ERROR",
            status_code=500,
            details=details,
        )
