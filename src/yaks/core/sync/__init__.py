"""
Synchronization of yak collections through a shared git ref.

The shared ref is fetched, three-way merged with the local collection and
the last synced base, and advanced with an optimistic conditional update.
Concurrent publishers simply retry.

Example:
    >>> from yaks.core.sync import SyncService
    >>> sync = SyncService(RefStore(GitBackend(Path("."))))
    >>> result = sync.sync(local, base)
    >>> if result.had_conflicts:
    ...     print(f"Resolved {len(result.conflicts)} conflicts")
"""

from yaks.core.sync.merge import (
    commit_message,
    diff_collections,
    merge_collections,
    merge_message,
)
from yaks.core.sync.models import (
    ChangeSet,
    ConflictKind,
    MergeOutcome,
    SyncConflict,
    SyncResult,
    SyncState,
)
from yaks.core.sync.service import SyncService

__all__ = [
    "ChangeSet",
    "ConflictKind",
    "MergeOutcome",
    "SyncConflict",
    "SyncResult",
    "SyncService",
    "SyncState",
    "commit_message",
    "diff_collections",
    "merge_collections",
    "merge_message",
]
