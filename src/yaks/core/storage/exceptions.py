"""
Storage exceptions.

Exception Hierarchy:
    StorageError (base)
    ├── TransientStorageError (network failures, timeouts; safe to retry)
    ├── RefConflictError (ref kept moving; optimistic retries exhausted)
    └── GitError (a git command failed)

A missing ref is not an error: reads return an empty snapshot, and a
rejected conditional ref update is reported as ``AdvanceResult.REJECTED``.
"""

from __future__ import annotations


class StorageError(Exception):
    """
    Base exception for object store failures.

    Attributes:
        message: Human-readable error message
        context: Optional dictionary of additional context
    """

    def __init__(self, message: str, **context: object) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        return self.message


class TransientStorageError(StorageError):
    """Network or timeout failure that may succeed if retried."""


class RefConflictError(StorageError):
    """The shared ref moved on every attempt to publish."""

    def __init__(self, ref: str, attempts: int) -> None:
        super().__init__(
            f"Ref {ref} was updated concurrently on all {attempts} attempts",
            ref=ref,
            attempts=attempts,
        )
        self.ref = ref
        self.attempts = attempts


class GitError(StorageError):
    """Exception raised when a git operation fails."""

    def __init__(self, message: str, command: list[str] | None = None, stderr: str = ""):
        super().__init__(message, command=command, stderr=stderr)
        self.command = command
        self.stderr = stderr


class TransientGitError(GitError, TransientStorageError):
    """A git command failed talking to the remote (network, timeout)."""
