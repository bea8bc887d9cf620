"""
Pure validation of yak mutations.

One function per mutation kind. Each returns ``None`` when the mutation may
be applied, or a ``ValidationError`` otherwise. Implicit creation of missing
ancestors is the mutation layer's job, not checked here.
"""

from __future__ import annotations

import re

from yaks.core.codec.layout import CONTEXT_FILE, DONE_FILE, MARKER_FILE
from yaks.core.validation.errors import (
    ValidationError,
    ValidationErrorKind,
    invalid_name,
    not_found,
)
from yaks.core.yaks.models import ID_SEPARATOR, YakCollection, join_id, leaf_name

FORBIDDEN_CHARS = re.compile(r'[\\:*?|<>"]')

RESERVED_SEGMENTS = frozenset({"", ".", "..", DONE_FILE, CONTEXT_FILE, MARKER_FILE})


def validate_name(name: str) -> ValidationError | None:
    """
    Check a full id or name against the naming grammar.

    Slashes are allowed and separate hierarchy levels.

    Example:
        >>> validate_name("dx/rust") is None
        True
        >>> validate_name("a//b").kind
        <ValidationErrorKind.INVALID_NAME: 'invalid_name'>
    """
    if not name or not name.strip():
        return invalid_name(name, "name cannot be empty")

    match = FORBIDDEN_CHARS.search(name)
    if match:
        return invalid_name(
            name, f'contains forbidden character {match.group()!r} (\\ : * ? | < > ")'
        )

    if name.startswith(ID_SEPARATOR) or name.endswith(ID_SEPARATOR):
        return invalid_name(name, "cannot start or end with a slash")

    for segment in name.split(ID_SEPARATOR):
        if segment != segment.strip():
            return invalid_name(name, "path segments cannot have leading or trailing whitespace")
        if segment in RESERVED_SEGMENTS:
            if segment == "":
                return invalid_name(name, "cannot contain empty path segments")
            return invalid_name(name, f'"{segment}" is a reserved name')

    return None


def validate_add(
    collection: YakCollection, name: str, parent_id: str | None = None
) -> ValidationError | None:
    """Validate adding *name* under *parent_id* (or as a root)."""
    if error := validate_name(name):
        return error

    if parent_id is not None and parent_id not in collection:
        return not_found(parent_id, role="Parent yak")

    full_id = join_id(parent_id, name)
    if full_id in collection:
        return ValidationError(
            kind=ValidationErrorKind.ALREADY_EXISTS,
            yak_id=full_id,
            message=f'A yak named "{full_id}" already exists',
        )

    return None


def validate_move(
    collection: YakCollection,
    yak_id: str,
    new_parent_id: str | None,
    new_name: str | None = None,
) -> ValidationError | None:
    """
    Validate moving *yak_id* under *new_parent_id*, optionally renaming it.

    Rejects unknown sources and parents, moves that would leave the yak where
    it is, moves into the yak's own subtree and collisions with another yak.
    """
    yak = collection.get(yak_id)
    if yak is None:
        return not_found(yak_id)

    if new_parent_id is not None and new_parent_id not in collection:
        return not_found(new_parent_id, role="Parent yak")

    name = new_name if new_name is not None else yak.name
    if new_name is not None and ID_SEPARATOR in new_name:
        return invalid_name(new_name, "a new name cannot contain a slash")

    destination = join_id(new_parent_id, name)
    if destination == yak_id:
        return ValidationError(
            kind=ValidationErrorKind.ALREADY_EXISTS,
            yak_id=yak_id,
            message=f'"{yak_id}" is already at that location',
        )

    if new_parent_id is not None and (
        new_parent_id == yak_id or collection.is_ancestor(yak_id, new_parent_id)
    ):
        return ValidationError(
            kind=ValidationErrorKind.WOULD_CREATE_CYCLE,
            yak_id=yak_id,
            message=f'Cannot move "{yak_id}" under its own subtree ("{new_parent_id}")',
        )

    if error := validate_name(destination):
        return error

    if destination in collection:
        return ValidationError(
            kind=ValidationErrorKind.ALREADY_EXISTS,
            yak_id=destination,
            message=f'A yak named "{leaf_name(destination)}" already exists at "{destination}"',
        )

    return None


def validate_mark_done(
    collection: YakCollection, yak_id: str, recursive: bool = False
) -> ValidationError | None:
    """Validate marking *yak_id* done; recursive mode skips the child check."""
    if yak_id not in collection:
        return not_found(yak_id)

    if not recursive and collection.has_incomplete_children(yak_id):
        return ValidationError(
            kind=ValidationErrorKind.HAS_INCOMPLETE_CHILDREN,
            yak_id=yak_id,
            message=(
                f'Cannot mark "{yak_id}" as done: it has incomplete children '
                "(use recursive mode to finish the whole subtree)"
            ),
        )

    return None


def validate_delete(
    collection: YakCollection, yak_id: str, recursive: bool = False
) -> ValidationError | None:
    """Validate deleting *yak_id*; non-recursive deletes need a leaf."""
    if yak_id not in collection:
        return not_found(yak_id)

    if not recursive:
        children = collection.children(yak_id)
        if children:
            return ValidationError(
                kind=ValidationErrorKind.HAS_CHILDREN,
                yak_id=yak_id,
                message=(
                    f'Cannot delete "{yak_id}": it has {len(children)} child(ren) '
                    "(delete them first or use recursive delete)"
                ),
            )

    return None


def validate_exists(collection: YakCollection, yak_id: str) -> ValidationError | None:
    """Validate that *yak_id* exists (undo, context edits)."""
    if yak_id not in collection:
        return not_found(yak_id)
    return None
