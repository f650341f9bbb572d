"""
Error taxonomy for the admin API.

Services raise these; the handlers registered in main.py render them into the
response envelope with the matching HTTP status and a stable machine-readable code.
"""
from typing import Optional

from sqlalchemy.exc import IntegrityError


class AppError(Exception):
    status_code = 500
    code = "INTERNAL_ERROR"
    default_message = "An unexpected error occurred"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    code = "VALIDATION_ERROR"
    default_message = "Invalid request"


class UnauthorizedError(AppError):
    status_code = 401
    code = "UNAUTHORIZED"
    default_message = "Admin authentication required"


class NotFoundError(AppError):
    status_code = 404
    code = "NOT_FOUND"
    default_message = "Resource not found"


class ConflictError(AppError):
    status_code = 409
    code = "CONFLICT"
    default_message = "Resource is not in a state that allows this change"


class InternalError(AppError):
    pass


def require_reason(reason: Optional[str], message: str = "reason is required for audit trail") -> str:
    """Reject a missing or blank audit reason before anything touches the store."""
    if reason is None or not str(reason).strip():
        raise ValidationError(message)
    return str(reason).strip()


def translate_integrity_error(exc: IntegrityError) -> AppError:
    """Map a store constraint violation onto the taxonomy instead of leaking it."""
    text = str(getattr(exc, "orig", exc)).lower()
    if "unique" in text or "duplicate" in text:
        return ConflictError("A record with the same unique key already exists")
    if "foreign key" in text:
        return ValidationError("Invalid relation reference")
    if "not null" in text:
        return ValidationError("A required field is missing")
    return ConflictError("The change violates a data constraint")
