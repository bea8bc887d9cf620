"""
Tests for the three-way merge, change sets and commit messages.

Tests cover:
- Every row of the merge table
- Conflict reporting and last-write-wins (local) resolution
- Determinism and commutativity of conflict-free merges
- diff_collections / commit_message formatting
"""

import itertools

import pytest

from yaks.core.sync import (
    ChangeSet,
    ConflictKind,
    commit_message,
    diff_collections,
    merge_collections,
    merge_message,
)
from yaks.core.yaks.models import Yak, YakCollection


def collection(*yaks: Yak) -> YakCollection:
    return YakCollection.from_yaks(yaks)


A = Yak(id="a")
A_DONE = Yak(id="a", done=True)
A_NOTES = Yak(id="a", context="notes")
B = Yak(id="b")


class TestMergeTable:
    def test_local_only_new(self):
        outcome = merge_collections(collection(), collection(A), collection())
        assert outcome.merged == collection(A)
        assert not outcome.had_conflicts

    def test_remote_only_new(self):
        outcome = merge_collections(collection(), collection(), collection(B))
        assert outcome.merged == collection(B)
        assert not outcome.had_conflicts

    def test_remote_only_but_in_base_is_local_delete(self):
        outcome = merge_collections(collection(A), collection(), collection(A))
        assert outcome.merged == collection()
        assert outcome.had_conflicts
        assert outcome.conflicts[0].kind == ConflictKind.DELETED_LOCALLY

    def test_local_only_but_in_base_is_kept(self):
        outcome = merge_collections(collection(A), collection(A), collection())
        assert outcome.merged == collection(A)
        assert outcome.conflicts[0].kind == ConflictKind.DELETED_REMOTELY
        assert outcome.conflicts[0].winner == "local"

    def test_both_equal(self):
        outcome = merge_collections(collection(A), collection(A_DONE), collection(A_DONE))
        assert outcome.merged == collection(A_DONE)
        assert not outcome.had_conflicts

    def test_only_remote_changed(self):
        outcome = merge_collections(collection(A), collection(A), collection(A_DONE))
        assert outcome.merged == collection(A_DONE)
        assert not outcome.had_conflicts

    def test_only_local_changed(self):
        outcome = merge_collections(collection(A), collection(A_DONE), collection(A))
        assert outcome.merged == collection(A_DONE)
        assert not outcome.had_conflicts

    def test_both_changed_keeps_local_entity(self):
        outcome = merge_collections(collection(A), collection(A_NOTES), collection(A_DONE))
        assert outcome.merged == collection(A_NOTES)
        assert outcome.had_conflicts
        conflict = outcome.conflicts[0]
        assert conflict.yak_id == "a"
        assert conflict.kind == ConflictKind.BOTH_MODIFIED
        assert conflict.resolution == "last_write_wins"

    def test_no_base_and_different_versions_conflict(self):
        outcome = merge_collections(None, collection(A_NOTES), collection(A_DONE))
        assert outcome.merged == collection(A_NOTES)
        assert outcome.had_conflicts

    def test_roots_rebuilt(self):
        outcome = merge_collections(
            collection(),
            collection(Yak(id="z"), Yak(id="z/1")),
            collection(Yak(id="m")),
        )
        assert outcome.merged.roots == ["m", "z"]


class TestReplicaScenario:
    def test_second_syncer_wins_whole_entity(self):
        """Replica 1 marks A done and syncs; replica 2 adds notes and syncs second."""
        base = collection(A)
        remote_after_replica_1 = collection(A_DONE)
        replica_2_local = collection(A_NOTES)

        outcome = merge_collections(base, replica_2_local, remote_after_replica_1)

        merged = outcome.merged.yaks["a"]
        assert merged.done is False
        assert merged.context == "notes"
        assert outcome.had_conflicts


VARIANTS = [None, A, A_DONE, A_NOTES]


def _with_bystander(version: Yak | None) -> YakCollection:
    return collection(*([version] if version is not None else []), B)


def _cases():
    """Every combination of (base, local, remote) versions of a single yak plus a bystander."""
    for versions in itertools.product(VARIANTS, repeat=3):
        yield tuple(_with_bystander(v) for v in versions)


class TestMergeLaws:
    @pytest.mark.parametrize("base,local,remote", list(_cases()))
    def test_deterministic(self, base, local, remote):
        first = merge_collections(base, local, remote)
        second = merge_collections(base, local, remote)
        assert first == second

    @pytest.mark.parametrize("base,local,remote", list(_cases()))
    def test_commutative_without_conflicts(self, base, local, remote):
        forward = merge_collections(base, local, remote)
        if forward.had_conflicts:
            return
        backward = merge_collections(base, remote, local)
        assert not backward.had_conflicts
        assert forward.merged == backward.merged

    def test_identity_when_nothing_changed(self, sample_collection):
        outcome = merge_collections(sample_collection, sample_collection, sample_collection)
        assert outcome.merged == sample_collection
        assert not outcome.had_conflicts


class TestDiffCollections:
    def test_diff(self, sample_collection):
        new = sample_collection.without(["chores"]).with_yaks(
            Yak(id="new"), Yak(id="ship v2/fix ci", done=True)
        )
        changes = diff_collections(sample_collection, new)
        assert changes.added == ["new"]
        assert changes.removed == ["chores"]
        assert changes.modified == ["ship v2/fix ci"]
        assert changes.total == 3

    def test_from_nothing(self, sample_collection):
        changes = diff_collections(None, sample_collection)
        assert changes.added == sample_collection.ids
        assert not changes.removed

    def test_no_changes(self, sample_collection):
        assert diff_collections(sample_collection, sample_collection).is_empty


class TestCommitMessage:
    def test_parts(self):
        message = commit_message(ChangeSet(added=["a", "b"], removed=["c"], modified=["d"]))
        assert message == "Add 2 yak(s), remove 1 yak(s), update 1 yak(s)"

    def test_only_updates(self):
        assert commit_message(ChangeSet(modified=["d"])) == "Update 1 yak(s)"

    def test_empty(self):
        assert commit_message(ChangeSet()) == "Update yak map"

    def test_merge_message(self):
        clean = merge_collections(collection(), collection(A), collection(B))
        assert merge_message(clean) == "Merge yak maps"

        conflicted = merge_collections(collection(A), collection(A_NOTES), collection(A_DONE))
        assert merge_message(conflicted) == (
            "Merge yak maps (conflicts auto-resolved with last-write-wins)"
        )
