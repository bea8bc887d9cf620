"""
Storage adapters for yak collections.

``RefStore`` publishes collections through a named ref on any
``ObjectBackend`` (local git, GitHub API). ``DirectoryStore`` keeps the
caller's working copy as a plain directory tree.
"""

from yaks.core.storage.backend import ObjectBackend
from yaks.core.storage.directory import DEFAULT_YAK_DIR, DirectoryStore
from yaks.core.storage.exceptions import (
    GitError,
    RefConflictError,
    StorageError,
    TransientGitError,
    TransientStorageError,
)
from yaks.core.storage.git import GitBackend
from yaks.core.storage.github import GitHubBackend
from yaks.core.storage.models import DEFAULT_REF, AdvanceResult, Author, ObjectEntry, Snapshot
from yaks.core.storage.refstore import RefStore
from yaks.core.storage.retry import RetryConfig, call_with_retry

__all__ = [
    "DEFAULT_REF",
    "DEFAULT_YAK_DIR",
    "AdvanceResult",
    "Author",
    "DirectoryStore",
    "GitBackend",
    "GitError",
    "GitHubBackend",
    "ObjectBackend",
    "ObjectEntry",
    "RefConflictError",
    "RefStore",
    "RetryConfig",
    "Snapshot",
    "StorageError",
    "TransientGitError",
    "TransientStorageError",
    "call_with_retry",
]
