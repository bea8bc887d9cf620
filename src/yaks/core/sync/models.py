"""
Data models for the sync engine.

Defines Pydantic models for merge outcomes, sync results and the persisted
sync state.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from yaks.core.storage.models import DEFAULT_REF
from yaks.core.yaks.models import YakCollection


class ConflictKind(str, Enum):
    """How the two sides diverged for a single yak."""

    BOTH_MODIFIED = "both_modified"
    DELETED_LOCALLY = "deleted_locally"
    DELETED_REMOTELY = "deleted_remotely"


class SyncConflict(BaseModel):
    """
    A yak that changed on both sides since the common base.

    Conflicts are resolved automatically; this records which version won.
    """

    model_config = ConfigDict(frozen=True)

    yak_id: str = Field(description="ID of the conflicting yak")

    kind: ConflictKind = Field(description="How the two sides diverged")

    winner: str = Field(
        default="local",
        description="Which version won (local or remote)",
    )

    resolution: str = Field(
        default="last_write_wins",
        description="How the conflict was resolved",
    )


class MergeOutcome(BaseModel):
    """Result of a three-way merge."""

    model_config = ConfigDict(frozen=True)

    merged: YakCollection
    conflicts: list[SyncConflict] = Field(default_factory=list)

    @property
    def had_conflicts(self) -> bool:
        return bool(self.conflicts)


class ChangeSet(BaseModel):
    """Ids added, removed and modified between two collections."""

    model_config = ConfigDict(frozen=True)

    added: list[str] = Field(default_factory=list)
    removed: list[str] = Field(default_factory=list)
    modified: list[str] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.added) + len(self.removed) + len(self.modified)

    @property
    def is_empty(self) -> bool:
        return self.total == 0


class SyncResult(BaseModel):
    """
    Result of a sync operation.

    ``operation`` is one of: ``publish`` (local published as-is), ``merge``
    (merged with remote changes, then published), ``pull`` (remote adopted,
    nothing to publish), ``noop`` (nothing to do, or no remote configured).
    """

    success: bool = Field(description="Whether the operation succeeded")

    operation: str = Field(description="What the sync ended up doing")

    commit_sha: str | None = Field(
        default=None,
        description="Commit the shared ref points at after the sync",
    )

    message: str = Field(
        default="",
        description="Human-readable result message",
    )

    had_conflicts: bool = Field(
        default=False,
        description="Whether any yak was changed on both sides",
    )

    conflicts: list[SyncConflict] = Field(
        default_factory=list,
        description="Conflicts detected and resolved",
    )

    local_changes: int = Field(default=0, description="Yaks changed locally since base")
    remote_changes: int = Field(default=0, description="Yaks changed remotely since base")

    attempts: int = Field(default=0, description="Publish attempts made")

    collection: YakCollection | None = Field(
        default=None,
        description="Collection to materialize locally (the new base)",
    )

    # Timing
    started_at: datetime | None = Field(default=None)
    completed_at: datetime | None = Field(default=None)

    @property
    def duration_seconds(self) -> float | None:
        """Calculate operation duration in seconds."""
        if self.started_at and self.completed_at:
            delta = self.completed_at - self.started_at
            return delta.total_seconds()
        return None

    def summary(self) -> str:
        """Generate a human-readable summary of the result."""
        if not self.success:
            return f"{self.operation} failed: {self.message}"

        parts = [f"{self.operation} succeeded"]

        if self.commit_sha:
            parts.append(f"commit {self.commit_sha[:8]}")

        if self.local_changes:
            parts.append(f"{self.local_changes} local change(s)")

        if self.remote_changes:
            parts.append(f"{self.remote_changes} remote change(s)")

        if self.conflicts:
            parts.append(f"{len(self.conflicts)} conflict(s) resolved")

        if self.message:
            parts.append(self.message)

        return ", ".join(parts)


class SyncState(BaseModel):
    """
    Persistent sync state stored in ``<yak_path>/.sync-state.json``.

    ``base_commit`` is the commit the local collection was last reconciled
    with; it is the base of the next three-way merge.

    Example:
        >>> state = SyncState(base_commit="abc123", last_sync_at=datetime.now())
        >>> state.model_dump_json(indent=2)
    """

    ref: str = Field(
        default=DEFAULT_REF,
        description="Shared ref the state refers to",
    )

    base_commit: str | None = Field(
        default=None,
        description="Commit of the last successful sync",
    )

    last_sync_at: datetime | None = Field(
        default=None,
        description="Timestamp of the last successful sync",
    )

    last_had_conflicts: bool = Field(
        default=False,
        description="Whether the last sync resolved conflicts",
    )

    def mark_synced(self, commit_sha: str | None, had_conflicts: bool) -> None:
        """Update state after a successful sync."""
        self.base_commit = commit_sha
        self.last_sync_at = datetime.now()
        self.last_had_conflicts = had_conflicts
