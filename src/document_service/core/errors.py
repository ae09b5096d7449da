"""Error taxonomy shared by managers and the HTTP layer.

Every error carries a stable string ``code`` that the API returns verbatim,
and the HTTP status it maps to.
"""

from typing import Optional


class DocumentServiceError(Exception):
    """Base class for errors surfaced to callers."""

    code = "internal"
    status_code = 500
    default_message = "Internal error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": {"code": self.code, "message": self.message}}


class UnauthorizedError(DocumentServiceError):
    """No identity context was attached to the call."""
    code = "unauthorized"
    status_code = 401
    default_message = "Missing identity context"


class ForbiddenError(DocumentServiceError):
    """Effective access level is below what the operation requires."""
    code = "forbidden"
    status_code = 403
    default_message = "Access denied"


class NotFoundError(DocumentServiceError):
    code = "not_found"
    status_code = 404
    default_message = "Not found"


class InvalidInputError(DocumentServiceError):
    code = "invalid_input"
    status_code = 422
    default_message = "Invalid input"


class ConflictError(DocumentServiceError):
    """Concurrent write collided with another writer."""
    code = "conflict"
    status_code = 409
    default_message = "Conflicting concurrent update"


class InternalError(DocumentServiceError):
    """Storage or transaction failure. The message never carries internals."""
