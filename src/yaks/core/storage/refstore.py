"""
Read and publish yak collections through a named ref.

RefStore implements the storage contract on top of any ObjectBackend:

- ``read(ref)`` decodes the collection the ref points at
- ``write(...)`` encodes a collection into blobs, a tree and a commit,
  without moving any ref
- ``advance_ref(...)`` moves the ref conditionally (optimistic concurrency)
"""

from __future__ import annotations

import logging

from yaks.core.codec.layout import CONTEXT_FILE
from yaks.core.codec.tree import EntryKind, TreeEntry, decode, encode
from yaks.core.yaks.models import YakCollection, leaf_name

from .backend import ObjectBackend
from .models import AdvanceResult, Author, Snapshot

logger = logging.getLogger(__name__)


class RefStore:
    """
    Storage adapter for yak collections.

    Example:
        >>> store = RefStore(GitBackend(project_dir=Path(".")))
        >>> snapshot = store.read("refs/notes/yaks")
        >>> commit = store.write(collection, snapshot.content_id, "Add 1 yak(s)")
        >>> store.advance_ref("refs/notes/yaks", commit, snapshot.content_id)
        <AdvanceResult.ADVANCED: 'advanced'>
    """

    def __init__(self, backend: ObjectBackend) -> None:
        self.backend = backend

    def remote_configured(self) -> bool:
        return self.backend.remote_configured()

    def read(self, ref: str) -> Snapshot:
        """
        Read the collection currently published at *ref*.

        Returns an empty snapshot (``content_id=None``) if the ref does not
        exist yet.
        """
        commit_id = self.backend.resolve_ref(ref)
        if commit_id is None:
            logger.debug("Ref %s does not exist yet", ref)
            return Snapshot()

        return Snapshot(collection=self.read_commit(commit_id), content_id=commit_id)

    def load(self, ref: str) -> YakCollection:
        """Shorthand for ``read(ref).collection``."""
        return self.read(ref).collection

    def read_commit(self, commit_id: str) -> YakCollection:
        """Decode the collection stored at a specific commit."""
        entries: list[TreeEntry] = []
        for obj in self.backend.list_tree(commit_id):
            if obj.kind == EntryKind.TREE:
                entries.append(TreeEntry.tree(obj.path))
            elif leaf_name(obj.path) == CONTEXT_FILE:
                entries.append(TreeEntry.blob(obj.path, self.backend.read_blob(obj.object_id)))
            else:
                entries.append(TreeEntry.blob(obj.path))

        collection = decode(entries)
        logger.debug("Read %d yaks from %s", len(collection), commit_id[:8])
        return collection

    def write(
        self,
        collection: YakCollection,
        parent_content_id: str | None,
        message: str,
        author: Author | None = None,
    ) -> str:
        """
        Store *collection* as a new commit on top of *parent_content_id*.

        Returns:
            Id of the new commit. No ref is moved.
        """
        blob_ids: dict[str, str] = {}
        files: dict[str, str] = {}
        for entry in encode(collection):
            content = entry.content or ""
            if content not in blob_ids:
                blob_ids[content] = self.backend.create_blob(content)
            files[entry.path] = blob_ids[content]

        tree_id = self.backend.create_tree(files)
        parents = [parent_content_id] if parent_content_id else []
        commit_id = self.backend.create_commit(tree_id, parents, message, author)
        logger.debug("Wrote commit %s (tree %s): %s", commit_id[:8], tree_id[:8], message)
        return commit_id

    def advance_ref(
        self, ref: str, content_id: str, expected_previous: str | None
    ) -> AdvanceResult:
        """Move *ref* to *content_id* only if it still points at *expected_previous*."""
        result = self.backend.update_ref(ref, content_id, expected_previous)
        if result == AdvanceResult.ADVANCED:
            logger.info("Advanced %s to %s", ref, content_id[:8])
        else:
            logger.info(
                "Ref %s moved since %s; update rejected",
                ref,
                expected_previous[:8] if expected_previous else "creation",
            )
        return result

    def force_ref(self, ref: str, content_id: str) -> None:
        """Point *ref* at *content_id* unconditionally (initial ref creation only)."""
        self.backend.force_update_ref(ref, content_id)
        logger.info("Force-set %s to %s", ref, content_id[:8])
