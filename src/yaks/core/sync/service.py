"""
Fetch-merge-publish synchronization of yak collections.

One ``sync()`` call runs the phases in order:

1. Fetch: read the collection currently published at the shared ref.
2. Reconcile: three-way merge of base, local and remote. Skipped when the
   ref has not moved since base (fast-forward) or does not exist yet.
3. Publish: write the merged collection as a commit on top of the fetched
   one and advance the ref conditionally. If the ref moved meanwhile, go
   back to 1 (bounded).
4. Materialize: hand the merged collection back as the new local state
   and the new base.

There is no locking: the conditional ref update is the only mutual
exclusion between participants.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime

from yaks.core.storage.exceptions import RefConflictError, StorageError
from yaks.core.storage.models import DEFAULT_REF, AdvanceResult, Author, Snapshot
from yaks.core.storage.refstore import RefStore
from yaks.core.storage.retry import RetryConfig, call_with_retry
from yaks.core.sync.merge import (
    commit_message,
    diff_collections,
    merge_collections,
    merge_message,
)
from yaks.core.sync.models import SyncConflict, SyncResult
from yaks.core.yaks.models import YakCollection

logger = logging.getLogger(__name__)


class SyncService:
    """
    Service for synchronizing a local collection with the shared ref.

    Example:
        >>> sync = SyncService(RefStore(GitBackend(Path("."))))
        >>> result = sync.sync(local, base=Snapshot(collection=base, content_id=sha))
        >>> if result.success:
        ...     local = result.collection
    """

    def __init__(
        self,
        store: RefStore,
        ref: str = DEFAULT_REF,
        max_attempts: int = 5,
        retry_delay: float = 0.1,
        retry_backoff: float = 2.0,
        transient_retry: RetryConfig | None = None,
    ) -> None:
        """
        Initialize the sync service.

        Args:
            store: Ref store to fetch from and publish to.
            ref: Shared ref holding the collection.
            max_attempts: Publish attempts before giving up on a busy ref.
            retry_delay: Seconds to wait after the first rejected publish.
            retry_backoff: Multiplier applied to the delay after each rejection.
            transient_retry: Retry policy for network failures of single calls.
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        self.store = store
        self.ref = ref
        self.max_attempts = max_attempts
        self.publish_backoff = RetryConfig(
            max_retries=max_attempts - 1,
            base_delay=retry_delay,
            multiplier=retry_backoff,
        )
        self.transient_retry = transient_retry or RetryConfig()

    def sync(
        self,
        local: YakCollection,
        base: Snapshot | None = None,
        author: Author | None = None,
    ) -> SyncResult:
        """
        Reconcile *local* with the shared ref and publish the result.

        Args:
            local: Collection with the caller's pending edits.
            base: Snapshot the local collection was last synced from, or
                  None if it has never been synced.
            author: Commit author for published snapshots.

        Returns:
            SyncResult. On success ``collection`` is the new local state and
            ``commit_sha`` the new base. Storage failures are reported with
            ``success=False`` rather than raised.
        """
        started_at = datetime.now()

        if not self.store.remote_configured():
            logger.info("No remote configured, skipping sync")
            return SyncResult(
                success=True,
                operation="noop",
                message="No remote configured",
                commit_sha=base.content_id if base else None,
                collection=local,
                started_at=started_at,
                completed_at=datetime.now(),
            )

        attempts = 0
        try:
            while True:
                attempts += 1
                result = self._attempt(local, base, author, attempts)
                if result is not None:
                    result.started_at = started_at
                    result.completed_at = datetime.now()
                    return result

                if attempts >= self.max_attempts:
                    raise RefConflictError(self.ref, attempts)

                delay = self.publish_backoff.calculate_delay(attempts - 1)
                logger.warning(
                    "%s moved during sync, retrying (attempt %d/%d) in %.2fs",
                    self.ref,
                    attempts + 1,
                    self.max_attempts,
                    delay,
                )
                time.sleep(delay)

        except StorageError as e:
            logger.error("Sync failed: %s", e)
            return SyncResult(
                success=False,
                operation="sync",
                message=str(e),
                attempts=attempts,
                collection=local,
                started_at=started_at,
                completed_at=datetime.now(),
            )

    def _attempt(
        self,
        local: YakCollection,
        base: Snapshot | None,
        author: Author | None,
        attempt: int,
    ) -> SyncResult | None:
        """
        Run one fetch-reconcile-publish round.

        Returns the final result, or None if the ref moved before publishing.
        """
        base_collection = base.collection if base is not None else None
        base_id = base.content_id if base is not None else None

        remote = call_with_retry(self.transient_retry, self.store.read, self.ref)

        conflicts: list[SyncConflict] = []
        remote_changes = 0
        if not remote.exists:
            operation = "publish"
            merged = local
            message = commit_message(diff_collections(None, local))
        elif remote.content_id == base_id:
            operation = "publish"
            merged = local
            message = commit_message(diff_collections(base_collection, local))
        else:
            outcome = merge_collections(base_collection, local, remote.collection)
            operation = "merge"
            merged = outcome.merged
            conflicts = outcome.conflicts
            message = merge_message(outcome)
            remote_changes = diff_collections(base_collection, remote.collection).total

        local_changes = diff_collections(base_collection, local).total

        if (remote.exists and merged == remote.collection) or (
            not remote.exists and len(merged) == 0
        ):
            logger.info("Nothing to publish to %s", self.ref)
            return SyncResult(
                success=True,
                operation="noop" if remote_changes == 0 else "pull",
                commit_sha=remote.content_id,
                had_conflicts=bool(conflicts),
                conflicts=conflicts,
                local_changes=local_changes,
                remote_changes=remote_changes,
                attempts=attempt,
                collection=merged,
            )

        commit_sha = call_with_retry(
            self.transient_retry, self.store.write, merged, remote.content_id, message, author
        )
        advanced = call_with_retry(
            self.transient_retry,
            self.store.advance_ref,
            self.ref,
            commit_sha,
            remote.content_id,
        )
        if advanced == AdvanceResult.REJECTED:
            return None

        return SyncResult(
            success=True,
            operation=operation,
            commit_sha=commit_sha,
            message=message,
            had_conflicts=bool(conflicts),
            conflicts=conflicts,
            local_changes=local_changes,
            remote_changes=remote_changes,
            attempts=attempt,
            collection=merged,
        )
