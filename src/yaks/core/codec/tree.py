"""
Bidirectional mapping between a YakCollection and a flat list of tree entries.

On-tree layout, one directory per yak:

    <id>/.yak          zero bytes, always written (proves the directory exists)
    <id>/done          zero bytes, present iff the yak is done
    <id>/context.md    UTF-8 notes, present iff the context is non-empty

Decoding is lenient: any directory is a yak, whether it appears as a tree
entry or only as the parent of some file. Trees written before the marker
file existed still decode with every yak intact.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from enum import Enum

from pydantic import BaseModel, ConfigDict

from yaks.core.codec.layout import CONTEXT_FILE, DONE_FILE, MARKER_FILE
from yaks.core.yaks.models import (
    Yak,
    YakCollection,
    ancestor_ids,
    join_id,
    leaf_name,
    parent_path,
)

logger = logging.getLogger(__name__)


class EntryKind(str, Enum):
    """Git object type of a tree entry."""

    BLOB = "blob"
    TREE = "tree"


class TreeEntry(BaseModel):
    """A single path in a flattened tree. Trees carry no content."""

    model_config = ConfigDict(frozen=True)

    path: str
    kind: EntryKind = EntryKind.BLOB
    content: str | None = None

    @classmethod
    def blob(cls, path: str, content: str = "") -> TreeEntry:
        return cls(path=path, kind=EntryKind.BLOB, content=content)

    @classmethod
    def tree(cls, path: str) -> TreeEntry:
        return cls(path=path, kind=EntryKind.TREE)


def decode_content(data: bytes, path: str) -> str:
    """
    Decode stored file content as UTF-8.

    Undecodable bytes become U+FFFD so one corrupt context file never makes
    a whole collection unreadable.
    """
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        logger.warning("%s is not valid UTF-8; replacing undecodable bytes", path)
        return data.decode("utf-8", errors="replace")


def encode(collection: YakCollection) -> list[TreeEntry]:
    """
    Encode a collection into blob entries sorted by path.

    Equal collections always encode to identical entry lists.

    Example:
        >>> c = YakCollection.from_yaks([Yak(id="a", done=True)])
        >>> [e.path for e in encode(c)]
        ['a/.yak', 'a/done']
    """
    entries: list[TreeEntry] = []
    for yak in collection.yaks.values():
        entries.append(TreeEntry.blob(join_id(yak.id, MARKER_FILE)))
        if yak.done:
            entries.append(TreeEntry.blob(join_id(yak.id, DONE_FILE)))
        if yak.context:
            entries.append(TreeEntry.blob(join_id(yak.id, CONTEXT_FILE), yak.context))

    entries.sort(key=lambda entry: entry.path)
    return entries


def decode(entries: Iterable[TreeEntry]) -> YakCollection:
    """
    Decode tree entries into a collection.

    Root-level files are not yaks and are skipped. Every ancestor directory
    of a yak is a yak too, so the result never has dangling parents.
    """
    yak_paths: set[str] = set()
    done_paths: set[str] = set()
    contexts: dict[str, str] = {}

    for entry in entries:
        path = entry.path.strip("/")
        if not path:
            continue

        if entry.kind == EntryKind.TREE:
            yak_paths.add(path)
            continue

        directory = parent_path(path)
        if directory is None:
            continue

        yak_paths.add(directory)
        filename = leaf_name(path)
        if filename == DONE_FILE:
            done_paths.add(directory)
        elif filename == CONTEXT_FILE:
            text = (entry.content or "").strip()
            if text:
                contexts[directory] = text

    for path in list(yak_paths):
        yak_paths.update(ancestor_ids(path))

    return YakCollection(
        yaks={
            path: Yak(id=path, done=path in done_paths, context=contexts.get(path))
            for path in sorted(yak_paths)
        }
    )
