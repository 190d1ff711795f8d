"""Error kinds shared by the services and rendered by the API."""
import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class QuizError(Exception):
    """Base error: carries a kind, an HTTP status and a user-facing message."""

    kind = "InternalFailure"
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def as_dict(self) -> dict:
        return {"success": False, "error": self.kind, "message": self.message}


class InvalidInput(QuizError):
    kind = "InvalidInput"
    status_code = 400
    default_message = "Invalid input"


class Unauthorized(QuizError):
    kind = "Unauthorized"
    status_code = 401
    default_message = "Invalid or expired token"


class Forbidden(QuizError):
    kind = "Forbidden"
    status_code = 403
    default_message = "Access denied"


class NotFound(QuizError):
    kind = "NotFound"
    status_code = 404
    default_message = "Quiz not found"


class Conflict(QuizError):
    kind = "Conflict"
    status_code = 409
    default_message = "Already exists"


class StorageFailure(QuizError):
    kind = "StorageFailure"
    status_code = 500
    default_message = "Database error"


class ConstraintViolation(StorageFailure):
    kind = "ConstraintViolation"
    default_message = "Constraint violated"


class ForeignKeyViolation(ConstraintViolation):
    kind = "ForeignKeyViolation"
    default_message = "Referenced row does not exist"


class InternalFailure(QuizError):
    pass


async def quiz_error_handler(request: Request, exc: QuizError) -> JSONResponse:
    if exc.status_code < 500:
        logger.info("%s %s rejected (%s): %s", request.method, request.url.path, exc.kind, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.as_dict())


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render FastAPI's parameter/body validation failures as InvalidInput."""
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "path", "query"))
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    else:
        message = None
    return await quiz_error_handler(request, InvalidInput(message))


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content=InternalFailure().as_dict())
