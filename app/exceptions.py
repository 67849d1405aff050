"""
Failure taxonomy raised by services, repositories and request handlers.

Each exception carries the HTTP status it is rendered with; the handlers in
``app.exception_handlers`` turn them into ``{"detail": ...}`` responses so
routers never build ``HTTPException`` objects for business failures.
"""
from fastapi import status


class ServiceError(Exception):
    """Base class for all expected, client-facing failures."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    default_message: str = "Request failed"

    def __init__(self, message: str | None = None, *, status_code: int | None = None) -> None:
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class NotFoundError(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class ConflictError(ServiceError):
    """A uniqueness rule (user email, article title) was violated."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Resource already exists"


class UnauthenticatedError(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid authentication credentials"


class ForbiddenError(ServiceError):
    """
    The caller is authenticated but does not own the resource.

    Edit rejects with 400 and delete with 403, so handlers pass
    ``status_code`` explicitly where it differs from the default.
    """

    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Operation not permitted"
