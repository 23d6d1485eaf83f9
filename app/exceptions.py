# =============================================================================
# app/exceptions.py - Custom Exception Handlers
# =============================================================================
# Centralized exception handling for the API.
# Every error response tells the caller how to fix it, not just what failed.
# =============================================================================

from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse


class A2ZException(Exception):
    """
    Base exception for the A2Z API.

    All custom exceptions inherit from this class.
    """

    def __init__(
        self,
        message: str,
        code: str = "A2Z_ERROR",
        status_code: int = 500,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.suggestion = suggestion
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response dict."""
        result = {
            "detail": self.message,
            "code": self.code,
        }
        if self.suggestion:
            result["suggestion"] = self.suggestion
        if self.details:
            result["details"] = self.details
        return result


# =============================================================================
# Cron Exceptions
# =============================================================================

class CronNotConfiguredError(A2ZException):
    """Raised when the cron endpoint is hit but CRON_SECRET is unset."""

    def __init__(self):
        super().__init__(
            message="Server configuration error",
            code="CRON_NOT_CONFIGURED",
            status_code=500,
            suggestion="Set the CRON_SECRET environment variable",
        )


class CronUnauthorizedError(A2ZException):
    """Raised when the cron bearer token doesn't match CRON_SECRET."""

    def __init__(self):
        super().__init__(
            message="Unauthorized",
            code="CRON_UNAUTHORIZED",
            status_code=401,
            suggestion="Send 'Authorization: Bearer <CRON_SECRET>'",
        )


class NotAvailableError(A2ZException):
    """Raised when a development-only endpoint is called in production."""

    def __init__(self, what: str):
        super().__init__(
            message=f"{what} is not available in production",
            code="NOT_AVAILABLE",
            status_code=404,
            details={"endpoint": what},
        )


# =============================================================================
# Profile Exceptions
# =============================================================================

class ProfileNotFoundError(A2ZException):
    """Raised when the caller has no profile row."""

    def __init__(self, user_id: str):
        super().__init__(
            message=f"Profile not found: {user_id}",
            code="PROFILE_NOT_FOUND",
            status_code=404,
            suggestion="Complete signup so a profile is created for this account",
            details={"user_id": user_id}
        )


# =============================================================================
# Exception Handlers
# =============================================================================

async def a2z_exception_handler(
    request: Request,
    exc: A2ZException
) -> JSONResponse:
    """
    Convert A2ZException to JSON response.

    Returns structured error with:
    - detail: Human-readable message
    - code: Machine-readable error code
    - suggestion: How to fix (if available)
    - details: Additional context
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )
