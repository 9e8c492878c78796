"""Error taxonomy shared by the SoftAI services.

Every error carries the HTTP status it maps to at the service boundary and a
machine-readable message. `register_error_handlers` installs FastAPI handlers
that render them as `{"error": "<message>"}`.
"""

import logging
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from starlette.responses import JSONResponse

log = logging.getLogger("softai.errors")


class ServiceError(Exception):
    """Base class for request-local failures with a fixed HTTP status."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InputError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class AuthError(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized"


class MissingCredential(AuthError):
    default_message = "Missing authorization header"


class InvalidCredential(AuthError):
    default_message = "Unauthorized"


class AuthorizationError(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Forbidden"


class Forbidden(AuthorizationError):
    default_message = "Unauthorized to generate certificate for another user"


class NotFoundError(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class QuizNotFound(NotFoundError):
    default_message = "Quiz not found"


class PreconditionError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Precondition failed"


class CourseNotComplete(PreconditionError):
    default_message = "Course not completed yet"


class InternalError(ServiceError):
    pass


class QuestionFetchFailed(InternalError):
    default_message = "Failed to fetch questions"


class CompletionCheckFailed(InternalError):
    default_message = "Failed to check course completion"


class CertificateInsertFailed(InternalError):
    default_message = "Failed to create certificate record"


class IdentityProviderUnavailable(InternalError):
    default_message = "Identity provider unavailable"


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


async def _service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    if exc.status_code >= 500:
        log.error(f"{request.method} {request.url.path} failed: {exc.message}", exc_info=exc)
    else:
        log.info(f"{request.method} {request.url.path} rejected: {exc.message}",
                 extra={"ctx": {"status": exc.status_code}})
    return error_response(exc.status_code, exc.message)


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return error_response(status.HTTP_400_BAD_REQUEST, "Malformed request")


def unhandled_error_response(request: Request, exc: Exception) -> JSONResponse:
    """Log an unexpected failure and render it as a 500 `{"error": ...}` body."""
    log.error(f"{request.method} {request.url.path} crashed", exc_info=exc)
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc) or exc.__class__.__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Attach the `{"error": ...}` renderers for the taxonomy above to `app`."""
    app.add_exception_handler(ServiceError, _service_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
