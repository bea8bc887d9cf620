"""
Tests for SyncService: fetch, reconcile, publish against an in-memory store.

Tests cover:
- No remote configured
- First publish, fast-forward, merge and pull
- Idempotence of a second sync
- Optimistic retry when the ref moves, and giving up after max attempts
- Retry of transient storage failures
"""

import pytest

from yaks.core.storage import (
    DEFAULT_REF,
    AdvanceResult,
    Author,
    RefStore,
    RetryConfig,
    Snapshot,
)
from yaks.core.sync import ConflictKind, SyncService
from yaks.core.yaks.models import Yak, YakCollection

NO_WAIT = RetryConfig(max_retries=3, base_delay=0, jitter=False)


def make_service(store: RefStore, **kwargs) -> SyncService:
    kwargs.setdefault("retry_delay", 0)
    kwargs.setdefault("transient_retry", NO_WAIT)
    return SyncService(store, **kwargs)


def publish(store: RefStore, collection: YakCollection, message: str = "seed") -> str:
    """Publish *collection* on top of whatever the ref points at, as another replica would."""
    current = store.read(DEFAULT_REF)
    commit = store.write(collection, current.content_id, message)
    store.force_ref(DEFAULT_REF, commit)
    return commit


def snapshot_of(result) -> Snapshot:
    return Snapshot(collection=result.collection, content_id=result.commit_sha)


class TestNoRemote:
    def test_noop(self, store, backend, sample_collection):
        backend.remote = False
        result = make_service(store).sync(sample_collection)

        assert result.success
        assert result.operation == "noop"
        assert result.collection == sample_collection
        assert backend.refs == {}
        assert backend.update_calls == 0


class TestFirstSync:
    def test_publishes_local(self, store, backend, sample_collection):
        result = make_service(store).sync(sample_collection)

        assert result.success
        assert result.operation == "publish"
        assert result.attempts == 1
        assert result.local_changes == len(sample_collection)
        assert backend.refs[DEFAULT_REF] == result.commit_sha
        assert store.load(DEFAULT_REF) == sample_collection
        assert backend.message_of(DEFAULT_REF) == "Add 5 yak(s)"

    def test_root_commit_has_no_parent(self, store, backend, sample_collection):
        result = make_service(store).sync(sample_collection)
        assert backend.commits[result.commit_sha][1] == []

    def test_empty_collection_publishes_nothing(self, store, backend):
        result = make_service(store).sync(YakCollection())

        assert result.success
        assert result.operation == "noop"
        assert result.commit_sha is None
        assert backend.refs == {}

    def test_adopts_existing_remote(self, store, sample_collection):
        publish(store, sample_collection)
        result = make_service(store).sync(YakCollection())

        assert result.success
        assert result.operation == "pull"
        assert result.collection == sample_collection

    def test_author_recorded(self, store, backend, sample_collection):
        author = Author(name="Ada", email="ada@example.com")
        result = make_service(store).sync(sample_collection, author=author)
        assert backend.commits[result.commit_sha][3] == author


class TestFastForward:
    def test_publishes_on_top_of_base(self, store, backend, sample_collection):
        service = make_service(store)
        first = service.sync(sample_collection)

        local = first.collection.with_yaks(Yak(id="chores/laundry"))
        second = service.sync(local, base=snapshot_of(first))

        assert second.operation == "publish"
        assert not second.had_conflicts
        assert backend.commits[second.commit_sha][1] == [first.commit_sha]
        assert store.load(DEFAULT_REF) == local
        assert backend.message_of(DEFAULT_REF) == "Add 1 yak(s)"

    def test_second_sync_is_noop(self, store, backend, sample_collection):
        service = make_service(store)
        first = service.sync(sample_collection)
        calls = backend.update_calls

        second = service.sync(first.collection, base=snapshot_of(first))

        assert second.success
        assert second.operation == "noop"
        assert second.commit_sha == first.commit_sha
        assert backend.refs[DEFAULT_REF] == first.commit_sha
        assert backend.update_calls == calls


class TestMerge:
    def test_disjoint_changes_are_combined(self, store, backend, sample_collection):
        service = make_service(store)
        first = service.sync(sample_collection)
        base = snapshot_of(first)

        remote_head = publish(store, sample_collection.with_yaks(Yak(id="from remote")))
        local = sample_collection.with_yaks(Yak(id="from local"))

        result = service.sync(local, base=base)

        assert result.operation == "merge"
        assert not result.had_conflicts
        assert result.local_changes == 1
        assert result.remote_changes == 1
        assert "from local" in result.collection
        assert "from remote" in result.collection
        assert store.load(DEFAULT_REF) == result.collection
        assert backend.commits[result.commit_sha][1] == [remote_head]
        assert backend.message_of(DEFAULT_REF) == "Merge yak maps"

    def test_conflict_keeps_local(self, store, backend):
        service = make_service(store)
        first = service.sync(YakCollection.from_yaks([Yak(id="a")]))
        base = snapshot_of(first)

        publish(store, YakCollection.from_yaks([Yak(id="a", done=True)]))
        result = service.sync(YakCollection.from_yaks([Yak(id="a", context="notes")]), base=base)

        assert result.success
        assert result.had_conflicts
        assert result.conflicts[0].kind == ConflictKind.BOTH_MODIFIED
        assert result.collection.yaks["a"] == Yak(id="a", context="notes")
        assert store.load(DEFAULT_REF) == result.collection
        assert backend.message_of(DEFAULT_REF).endswith("last-write-wins)")

    def test_pull_when_only_remote_changed(self, store, backend, sample_collection):
        service = make_service(store)
        first = service.sync(sample_collection)

        remote = sample_collection.with_yaks(Yak(id="chores", done=True))
        remote_head = publish(store, remote)
        calls = backend.update_calls

        result = service.sync(first.collection, base=snapshot_of(first))

        assert result.operation == "pull"
        assert result.remote_changes == 1
        assert result.commit_sha == remote_head
        assert result.collection == remote
        assert backend.update_calls == calls


class TestConcurrentPublish:
    def test_retries_when_ref_moves(self, store, backend, sample_collection):
        service = make_service(store)
        first = service.sync(sample_collection)
        base = snapshot_of(first)

        def other_replica_publishes(ref):
            publish(store, sample_collection.with_yaks(Yak(id="racer")))

        backend.before_update = other_replica_publishes
        local = sample_collection.with_yaks(Yak(id="mine"))

        result = service.sync(local, base=base)

        assert result.success
        assert result.attempts == 2
        assert "racer" in result.collection
        assert "mine" in result.collection
        assert store.load(DEFAULT_REF) == result.collection

    def test_gives_up_after_max_attempts(self, store, backend, sample_collection, monkeypatch):
        monkeypatch.setattr(
            backend, "update_ref", lambda ref, new_id, expected_id: AdvanceResult.REJECTED
        )
        result = make_service(store, max_attempts=3).sync(sample_collection)

        assert not result.success
        assert result.operation == "sync"
        assert result.attempts == 3
        assert "3 attempts" in result.message
        assert result.collection == sample_collection
        assert DEFAULT_REF not in backend.refs

    def test_invalid_max_attempts(self, store):
        with pytest.raises(ValueError):
            SyncService(store, max_attempts=0)


class TestTransientFailures:
    def test_retried(self, store, backend, sample_collection):
        backend.transient_failures = 2
        result = make_service(store).sync(sample_collection)

        assert result.success
        assert result.operation == "publish"

    def test_reported_when_retries_exhausted(self, store, backend, sample_collection):
        backend.transient_failures = 10
        result = make_service(store).sync(sample_collection)

        assert not result.success
        assert "connection reset" in result.message
        assert DEFAULT_REF not in backend.refs


class TestSyncResult:
    def test_timing_and_summary(self, store, sample_collection):
        result = make_service(store).sync(sample_collection)

        assert result.duration_seconds is not None
        assert result.duration_seconds >= 0
        summary = result.summary()
        assert summary.startswith("publish succeeded")
        assert f"commit {result.commit_sha[:8]}" in summary
        assert "5 local change(s)" in summary

    def test_failure_summary(self, store, backend, sample_collection):
        backend.transient_failures = 10
        result = make_service(store).sync(sample_collection)
        assert result.summary() == "sync failed: connection reset"
