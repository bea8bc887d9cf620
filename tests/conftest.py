"""
Pytest configuration and shared fixtures.

Provides an in-memory object backend, throwaway git repositories (with a
bare "origin" to share through), sample collections, and isolation of
config/env state between tests.
"""

from __future__ import annotations

import hashlib
import subprocess
from collections.abc import Callable
from pathlib import Path

import pytest

from yaks.core.codec.tree import EntryKind
from yaks.core.config import clear_cache
from yaks.core.storage.exceptions import TransientStorageError
from yaks.core.storage.models import AdvanceResult, Author, ObjectEntry
from yaks.core.storage.refstore import RefStore
from yaks.core.yaks.models import Yak, YakCollection

# ==============================================================================
# Environment isolation
# ==============================================================================


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Keep user config, .env files and YAKS_* overrides out of every test."""
    for var in ("YAK_PATH", "YAKS_REF", "YAKS_REMOTE", "YAKS_BACKEND", "YAKS_GITHUB_REPO"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    clear_cache()
    yield
    clear_cache()


# ==============================================================================
# In-memory object store
# ==============================================================================


def _object_id(kind: str, payload: str) -> str:
    return hashlib.sha1(f"{kind}\0{payload}".encode()).hexdigest()


class InMemoryBackend:
    """
    ObjectBackend fake keeping blobs, trees, commits and refs in dicts.

    Hooks for simulating the outside world:
        before_update: called with the ref just before a conditional update,
            e.g. to let a "concurrent" writer publish first.
        transient_failures: number of upcoming resolve_ref calls that fail
            with TransientStorageError.
    """

    def __init__(self, remote: bool = True) -> None:
        self.remote = remote
        self.blobs: dict[str, str] = {}
        self.trees: dict[str, dict[str, str]] = {}
        self.commits: dict[str, tuple[str, list[str], str, Author | None]] = {}
        self.refs: dict[str, str] = {}
        self.before_update: Callable[[str], None] | None = None
        self.transient_failures = 0
        self.update_calls = 0

    def remote_configured(self) -> bool:
        return self.remote

    def resolve_ref(self, ref: str) -> str | None:
        if self.transient_failures > 0:
            self.transient_failures -= 1
            raise TransientStorageError("connection reset")
        return self.refs.get(ref)

    def list_tree(self, commit_id: str) -> list[ObjectEntry]:
        tree_id = self.commits[commit_id][0]
        files = self.trees[tree_id]

        directories: set[str] = set()
        for path in files:
            parts = path.split("/")
            for depth in range(1, len(parts)):
                directories.add("/".join(parts[:depth]))

        entries = [
            ObjectEntry(path=d, kind=EntryKind.TREE, object_id=_object_id("tree", d))
            for d in sorted(directories)
        ]
        entries.extend(
            ObjectEntry(path=path, kind=EntryKind.BLOB, object_id=blob_id)
            for path, blob_id in sorted(files.items())
        )
        return entries

    def read_blob(self, object_id: str) -> str:
        return self.blobs[object_id]

    def create_blob(self, content: str) -> str:
        blob_id = _object_id("blob", content)
        self.blobs[blob_id] = content
        return blob_id

    def create_tree(self, files: dict[str, str]) -> str:
        tree_id = _object_id("tree", repr(sorted(files.items())))
        self.trees[tree_id] = dict(files)
        return tree_id

    def create_commit(
        self,
        tree_id: str,
        parents: list[str],
        message: str,
        author: Author | None = None,
    ) -> str:
        commit_id = _object_id("commit", f"{tree_id}{parents}{message}{len(self.commits)}")
        self.commits[commit_id] = (tree_id, list(parents), message, author)
        return commit_id

    def update_ref(self, ref: str, new_id: str, expected_id: str | None) -> AdvanceResult:
        self.update_calls += 1
        if self.before_update is not None:
            hook, self.before_update = self.before_update, None
            hook(ref)
        if self.refs.get(ref) != expected_id:
            return AdvanceResult.REJECTED
        self.refs[ref] = new_id
        return AdvanceResult.ADVANCED

    def force_update_ref(self, ref: str, new_id: str) -> None:
        self.refs[ref] = new_id

    def message_of(self, ref: str) -> str:
        return self.commits[self.refs[ref]][2]


@pytest.fixture
def backend() -> InMemoryBackend:
    return InMemoryBackend()


@pytest.fixture
def store(backend: InMemoryBackend) -> RefStore:
    return RefStore(backend)


# ==============================================================================
# Git repositories
# ==============================================================================


def run_git(repo: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", *args], cwd=repo, capture_output=True, text=True, check=True
    )
    return result.stdout.strip()


def init_repo(path: Path) -> Path:
    path.mkdir(parents=True)
    run_git(path, "init")
    run_git(path, "config", "user.email", "test@example.com")
    run_git(path, "config", "user.name", "Test User")
    return path


@pytest.fixture
def git_repo(tmp_path: Path) -> Path:
    """Create a temporary git repository with one commit on its branch."""
    repo = init_repo(tmp_path / "repo")
    (repo / "README.md").write_text("# Test Repo\n")
    run_git(repo, "add", "README.md")
    run_git(repo, "commit", "-m", "Initial commit")
    return repo


@pytest.fixture
def origin(tmp_path: Path) -> Path:
    """Create a bare repository playing the shared remote."""
    bare = tmp_path / "origin.git"
    bare.mkdir()
    run_git(bare, "init", "--bare")
    return bare


@pytest.fixture
def make_clone(tmp_path: Path, origin: Path) -> Callable[[str], Path]:
    """Factory for repositories that have `origin` configured as remote."""

    def factory(name: str) -> Path:
        repo = init_repo(tmp_path / name)
        run_git(repo, "remote", "add", "origin", str(origin))
        return repo

    return factory


# ==============================================================================
# Sample Data
# ==============================================================================


@pytest.fixture
def sample_collection() -> YakCollection:
    """
    A small forest:

        ship v2
        ├── write docs        (done, with context)
        └── fix ci
            └── flaky test
        chores
    """
    return YakCollection.from_yaks(
        [
            Yak(id="ship v2"),
            Yak(id="ship v2/write docs", done=True, context="See docs/release.md"),
            Yak(id="ship v2/fix ci"),
            Yak(id="ship v2/fix ci/flaky test"),
            Yak(id="chores"),
        ]
    )
