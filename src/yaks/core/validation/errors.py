"""
Validation failure values.

Validation never raises: every check returns either ``None`` or a
``ValidationError`` describing which yak broke which rule.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ValidationErrorKind(str, Enum):
    """Rule that a rejected mutation violated."""

    NOT_FOUND = "not_found"
    INVALID_NAME = "invalid_name"
    HAS_INCOMPLETE_CHILDREN = "has_incomplete_children"
    HAS_CHILDREN = "has_children"
    WOULD_CREATE_CYCLE = "would_create_cycle"
    ALREADY_EXISTS = "already_exists"


class ValidationError(BaseModel):
    """
    A rejected mutation.

    Example:
        >>> err = ValidationError(
        ...     kind=ValidationErrorKind.NOT_FOUND,
        ...     yak_id="ghost",
        ...     message='Yak "ghost" not found',
        ... )
        >>> str(err)
        'Yak "ghost" not found'
    """

    model_config = ConfigDict(frozen=True)

    kind: ValidationErrorKind
    yak_id: str = Field(description="Id (or proposed id) of the offending yak")
    message: str = Field(description="One-line user-facing message")

    def __str__(self) -> str:
        return self.message


def not_found(yak_id: str, role: str = "Yak") -> ValidationError:
    return ValidationError(
        kind=ValidationErrorKind.NOT_FOUND,
        yak_id=yak_id,
        message=f'{role} "{yak_id}" not found',
    )


def invalid_name(yak_id: str, reason: str) -> ValidationError:
    return ValidationError(
        kind=ValidationErrorKind.INVALID_NAME,
        yak_id=yak_id,
        message=f'Invalid yak name "{yak_id}": {reason}',
    )
