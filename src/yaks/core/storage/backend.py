"""
Object backend protocol.

An object backend is anything exposing a content-addressed store of
blobs, trees and commits plus named refs: a local git repository, the
GitHub git-data API, or an in-memory fake in tests. ``RefStore`` builds the
read/write/advance contract on top of these primitives.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from .models import AdvanceResult, Author, ObjectEntry


@runtime_checkable
class ObjectBackend(Protocol):
    """
    Protocol for object store implementations.

    Backends must never touch the caller's working tree, index or branch
    history: every write goes into loose objects and the named ref.
    """

    def remote_configured(self) -> bool:
        """Whether there is anywhere to synchronize with at all."""
        ...

    def resolve_ref(self, ref: str) -> str | None:
        """
        Return the commit id the shared ref points at.

        Backends with a remote fetch it first. Returns None if the ref does
        not exist yet.

        Raises:
            TransientStorageError: If the remote could not be reached.
        """
        ...

    def list_tree(self, commit_id: str) -> list[ObjectEntry]:
        """List every blob and tree under a commit's root tree, recursively."""
        ...

    def read_blob(self, object_id: str) -> str:
        """Return a blob's content decoded as UTF-8."""
        ...

    def create_blob(self, content: str) -> str:
        """Store content and return its blob id."""
        ...

    def create_tree(self, files: dict[str, str]) -> str:
        """
        Create a root tree from a mapping of slash-delimited path to blob id.

        Intermediate directories are created as needed.
        """
        ...

    def create_commit(
        self,
        tree_id: str,
        parents: list[str],
        message: str,
        author: Author | None = None,
    ) -> str:
        """Create a commit object and return its id. Does not move any ref."""
        ...

    def update_ref(self, ref: str, new_id: str, expected_id: str | None) -> AdvanceResult:
        """
        Point *ref* at *new_id* only if it still points at *expected_id*.

        ``expected_id=None`` means the ref must not exist yet.
        """
        ...

    def force_update_ref(self, ref: str, new_id: str) -> None:
        """Point *ref* at *new_id* unconditionally."""
        ...
