# ------------------------------ IMPORTS ------------------------------
from typing import Any, Dict, Optional

# ------------------------------ ERROR TAXONOMY ------------------------------

class ModerationError(Exception):
    """Base class for typed failures surfaced to API callers."""

    status_code: int = 500
    error_type: str = "internal_error"

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

class ValidationError(ModerationError):
    """Missing or malformed input. Never retried server-side."""
    status_code = 400
    error_type = "validation_error"

class AuthenticationRequired(ModerationError):
    status_code = 401
    error_type = "authentication_required"

class ForbiddenError(ModerationError):
    """Actor lacks the capability for the requested transition."""
    status_code = 403
    error_type = "forbidden"

class NotFoundError(ModerationError):
    status_code = 404
    error_type = "not_found"

class ConflictError(ModerationError):
    """Duplicate vote or duplicate vehicle; context explains the clash."""
    status_code = 409
    error_type = "conflict"

class PreconditionFailedError(ModerationError):
    """The proposal is no longer in the state the caller assumed."""
    status_code = 412
    error_type = "precondition_failed"

class StorageError(ModerationError):
    """Staged or durable file storage failed."""
    status_code = 500
    error_type = "storage_error"

# ------------------------------ END OF FILE ------------------------------
