"""Error taxonomy and FastAPI exception handlers.

Learn: Services raise domain errors (no HTTP knowledge). The handlers
registered here translate them into `{"message": ...}` JSON responses:

- AuthError          → 401 (guard rejections)
- ValidationError    → 400 (missing/invalid request fields)
- BusinessRuleError  → its own status, 500 unless overridden
- anything else      → 500 with a generic message; real cause only logged
"""

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = structlog.get_logger()

INTERNAL_ERROR_MESSAGE = "Internal server error"


class StaffDeskError(Exception):
    """Base class for all domain errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = INTERNAL_ERROR_MESSAGE

    def __init__(self, message: str | None = None, status_code: int | None = None):
        self.message = message or self.message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


# ─── Auth guard ─────────────────────────────────────────


class AuthError(StaffDeskError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Unauthorized"


class Unauthenticated(AuthError):
    message = "Not authenticated"


class InvalidToken(AuthError):
    message = "Invalid or expired token"


# ─── Request validation ─────────────────────────────────


class ValidationError(StaffDeskError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid request"


# ─── Business rules ─────────────────────────────────────


class BusinessRuleError(StaffDeskError):
    """A rule of the domain was violated.

    Surfaced as 500 with the human-readable message, which is what the
    existing frontend expects for update failures.
    """


class InvalidCredentials(BusinessRuleError):
    """Login failed, or the account behind a session is gone."""

    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Invalid credentials"


class WrongPassword(BusinessRuleError):
    message = "Current password is incorrect"


class UsernameTaken(BusinessRuleError):
    message = "Username already taken"


class EmailTaken(BusinessRuleError):
    message = "Email already registered"


class ProfileNotFound(BusinessRuleError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "User not found"


# ─── Handlers ───────────────────────────────────────────


async def _staffdesk_error_handler(request: Request, exc: StaffDeskError) -> JSONResponse:
    logger.info(
        "request.rejected",
        path=request.url.path,
        error=type(exc).__name__,
        status_code=exc.status_code,
    )
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


async def _request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    detail = first.get("msg", "Invalid request")
    message = f"{field}: {detail}" if field else detail
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST, content={"message": message}
    )


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("request.failed", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": INTERNAL_ERROR_MESSAGE},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the domain error handlers to the application."""
    app.add_exception_handler(StaffDeskError, _staffdesk_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
