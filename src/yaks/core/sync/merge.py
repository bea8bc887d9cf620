"""
Three-way merge of yak collections.

Merging is entity-granular: a yak is kept or replaced as a whole, never
field by field. When both sides diverge from the base, the local version
wins (last-write-wins, where "last" is whoever syncs last).

| yak present in         | result                                   |
|------------------------|------------------------------------------|
| local only             | keep local                               |
| remote only, not base  | adopt remote                             |
| remote only, in base   | local delete wins                        |
| both, equal            | keep                                     |
| both, local == base    | adopt remote                             |
| both, remote == base   | keep local                               |
| both, both changed     | keep local, conflict                     |

Deletions that race with a keep on the other side are reported as
conflicts too, so a conflict-free merge gives the same result whichever
side is called local.
"""

from __future__ import annotations

import logging

from yaks.core.sync.models import ChangeSet, ConflictKind, MergeOutcome, SyncConflict
from yaks.core.yaks.models import Yak, YakCollection

logger = logging.getLogger(__name__)

MERGE_MESSAGE = "Merge yak maps"
CONFLICT_SUFFIX = " (conflicts auto-resolved with last-write-wins)"


def merge_collections(
    base: YakCollection | None,
    local: YakCollection,
    remote: YakCollection,
) -> MergeOutcome:
    """
    Merge *local* and *remote* using *base* as their common ancestor.

    Pure and deterministic: the same inputs always give the same merged
    collection and the same conflicts.

    Args:
        base: Collection as of the last successful sync, or None if never synced.
        local: Collection with the caller's pending edits.
        remote: Collection currently published at the shared ref.

    Returns:
        MergeOutcome with the merged collection and any resolved conflicts.
    """
    base_yaks = base.yaks if base is not None else {}
    merged: list[Yak] = []
    conflicts: list[SyncConflict] = []

    for yak_id in sorted(set(local.yaks) | set(remote.yaks)):
        local_yak = local.yaks.get(yak_id)
        remote_yak = remote.yaks.get(yak_id)
        base_yak = base_yaks.get(yak_id)

        if remote_yak is None:
            if local_yak is not None:
                merged.append(local_yak)
                if base_yak is not None:
                    conflicts.append(
                        SyncConflict(yak_id=yak_id, kind=ConflictKind.DELETED_REMOTELY)
                    )
            continue

        if local_yak is None:
            if base_yak is None:
                merged.append(remote_yak)
            else:
                conflicts.append(SyncConflict(yak_id=yak_id, kind=ConflictKind.DELETED_LOCALLY))
            continue

        if local_yak == remote_yak:
            merged.append(local_yak)
        elif base_yak is not None and local_yak == base_yak:
            merged.append(remote_yak)
        elif base_yak is not None and remote_yak == base_yak:
            merged.append(local_yak)
        else:
            merged.append(local_yak)
            conflicts.append(SyncConflict(yak_id=yak_id, kind=ConflictKind.BOTH_MODIFIED))

    for conflict in conflicts:
        logger.warning(
            "Conflict on %s (%s), keeping %s version",
            conflict.yak_id,
            conflict.kind.value,
            conflict.winner,
        )

    return MergeOutcome(merged=YakCollection.from_yaks(merged), conflicts=conflicts)


def diff_collections(old: YakCollection | None, new: YakCollection) -> ChangeSet:
    """List the ids added, removed and modified going from *old* to *new*."""
    old_yaks = old.yaks if old is not None else {}

    added = sorted(yak_id for yak_id in new.yaks if yak_id not in old_yaks)
    removed = sorted(yak_id for yak_id in old_yaks if yak_id not in new.yaks)
    modified = sorted(
        yak_id
        for yak_id, yak in new.yaks.items()
        if yak_id in old_yaks and old_yaks[yak_id] != yak
    )
    return ChangeSet(added=added, removed=removed, modified=modified)


def commit_message(changes: ChangeSet) -> str:
    """
    Describe a change set in one line.

    Example:
        >>> commit_message(ChangeSet(added=["a", "b"], modified=["c"]))
        'Add 2 yak(s), update 1 yak(s)'
    """
    parts = []
    if changes.added:
        parts.append(f"add {len(changes.added)} yak(s)")
    if changes.removed:
        parts.append(f"remove {len(changes.removed)} yak(s)")
    if changes.modified:
        parts.append(f"update {len(changes.modified)} yak(s)")

    if not parts:
        return "Update yak map"

    message = ", ".join(parts)
    return message[0].upper() + message[1:]


def merge_message(outcome: MergeOutcome) -> str:
    """Commit message for a published merge."""
    return MERGE_MESSAGE + (CONFLICT_SUFFIX if outcome.had_conflicts else "")
