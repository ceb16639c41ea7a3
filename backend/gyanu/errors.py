"""
Error taxonomy for the tutoring core.

Every error carries the HTTP status it maps to and a caller-safe message.
Deterministic outcomes (authentication, authorization, validation,
self-action) are returned to callers verbatim. Persistence and remote
failures keep their internal detail separately so it can be logged without
being shown.
"""

from fastapi import status


class GyanuError(Exception):
    """Base class for errors surfaced at the request boundary."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str | None = None
    default_message: str = "An internal error occurred."

    def __init__(self, message: str | None = None, *, detail: str | None = None):
        self.message = message or self.default_message
        self.detail = detail
        super().__init__(self.message)

    def to_body(self) -> dict[str, str]:
        """Render the JSON body returned to the caller."""
        body = {"error": self.message}
        if self.code:
            body["code"] = self.code
        return body


class AuthenticationError(GyanuError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Not authenticated"


class AuthorizationError(GyanuError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Unauthorized"


class ValidationError(GyanuError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_ERROR"
    default_message = "Invalid input"


class NotFoundError(GyanuError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class SelfActionError(GyanuError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Cannot perform this action on yourself"


class RemoteServiceError(GyanuError):
    """A remote call (e.g. the embedding endpoint) did not report success."""

    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "Remote service request failed"

    def __init__(self, status: int | None = None, message: str | None = None, *, detail: str | None = None):
        self.status = status
        if message is None and status is not None:
            message = f"Remote service request failed with status {status}"
        super().__init__(message, detail=detail)


class PersistenceError(GyanuError):
    """The backing store rejected or failed an operation."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Failed to persist changes"
