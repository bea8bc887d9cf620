"""
Mutations on yak collections.

Every operation takes a collection and returns either a new collection or a
ValidationError. The input collection is never modified.

Example:
    >>> c = add(YakCollection(), "parent/child")
    >>> c.ids
    ['parent', 'parent/child']
    >>> mark_done(c, "parent").kind
    <ValidationErrorKind.HAS_INCOMPLETE_CHILDREN: 'has_incomplete_children'>
"""

from __future__ import annotations

import logging

from yaks.core.validation import (
    ValidationError,
    validate_add,
    validate_delete,
    validate_exists,
    validate_mark_done,
    validate_move,
)
from yaks.core.yaks.models import Yak, YakCollection, ancestor_ids, join_id

logger = logging.getLogger(__name__)


def add(
    collection: YakCollection, name: str, parent_id: str | None = None
) -> YakCollection | ValidationError:
    """
    Add a yak, creating any missing ancestors of its full id first.

    Args:
        collection: Collection to add to.
        name: Leaf name, or a slash-delimited path relative to *parent_id*.
        parent_id: Existing parent id, or None to add from the root.
    """
    if error := validate_add(collection, name, parent_id):
        return error

    full_id = join_id(parent_id, name)
    created = [Yak(id=ancestor) for ancestor in ancestor_ids(full_id) if ancestor not in collection]
    if created:
        logger.debug("Creating missing ancestors: %s", ", ".join(y.id for y in created))

    return collection.with_yaks(*created, Yak(id=full_id))


def move(
    collection: YakCollection,
    yak_id: str,
    new_parent_id: str | None,
    new_name: str | None = None,
) -> YakCollection | ValidationError:
    """
    Move a yak (and its whole subtree) under a new parent, optionally renaming it.

    The subtree is snapshotted and re-keyed before anything is inserted, so
    the new collection is built in one step from the old one.
    """
    if error := validate_move(collection, yak_id, new_parent_id, new_name):
        return error

    yak = collection.yaks[yak_id]
    destination = join_id(new_parent_id, new_name if new_name is not None else yak.name)

    subtree = [yak, *collection.descendants(yak_id)]
    moved = [
        node.model_copy(update={"id": destination + node.id[len(yak_id) :]}) for node in subtree
    ]

    logger.debug("Moving %s -> %s (%d yaks)", yak_id, destination, len(moved))
    return collection.without(node.id for node in subtree).with_yaks(*moved)


def mark_done(
    collection: YakCollection, yak_id: str, recursive: bool = False
) -> YakCollection | ValidationError:
    """Mark a yak done; with *recursive* the whole subtree is marked at once."""
    if error := validate_mark_done(collection, yak_id, recursive):
        return error

    targets = [collection.yaks[yak_id]]
    if recursive:
        targets.extend(collection.descendants(yak_id))

    return collection.with_yaks(
        *(target.model_copy(update={"done": True}) for target in targets)
    )


def mark_undone(collection: YakCollection, yak_id: str) -> YakCollection | ValidationError:
    """Clear the done flag of a single yak."""
    if error := validate_exists(collection, yak_id):
        return error

    return collection.with_yaks(collection.yaks[yak_id].model_copy(update={"done": False}))


def delete(
    collection: YakCollection, yak_id: str, recursive: bool = False
) -> YakCollection | ValidationError:
    """Delete a leaf yak, or a whole subtree when *recursive*."""
    if error := validate_delete(collection, yak_id, recursive):
        return error

    removed = [yak_id, *(yak.id for yak in collection.descendants(yak_id))]
    return collection.without(removed)


def set_context(
    collection: YakCollection, yak_id: str, text: str | None
) -> YakCollection | ValidationError:
    """Replace a yak's context. Blank text clears it."""
    if error := validate_exists(collection, yak_id):
        return error

    context = (text or "").strip() or None
    return collection.with_yaks(collection.yaks[yak_id].model_copy(update={"context": context}))


def prune(collection: YakCollection) -> YakCollection:
    """
    Remove every done yak whose entire subtree is done.

    A pruned yak's descendants all qualify too, so pruning never leaves
    orphans, whatever order the yaks are visited in.
    """
    pruned = [
        yak.id
        for yak in collection.yaks.values()
        if yak.done and all(d.done for d in collection.descendants(yak.id))
    ]
    if pruned:
        logger.info("Pruning %d done yak(s)", len(pruned))
    return collection.without(pruned)
