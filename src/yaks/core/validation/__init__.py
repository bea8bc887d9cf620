"""
Validation of yak names and mutations.

Failures are returned as ``ValidationError`` values, never raised.
"""

from yaks.core.validation.errors import ValidationError, ValidationErrorKind
from yaks.core.validation.validator import (
    FORBIDDEN_CHARS,
    RESERVED_SEGMENTS,
    validate_add,
    validate_delete,
    validate_exists,
    validate_mark_done,
    validate_move,
    validate_name,
)

__all__ = [
    "FORBIDDEN_CHARS",
    "RESERVED_SEGMENTS",
    "ValidationError",
    "ValidationErrorKind",
    "validate_add",
    "validate_delete",
    "validate_exists",
    "validate_mark_done",
    "validate_move",
    "validate_name",
]
