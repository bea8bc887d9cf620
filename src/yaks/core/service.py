"""
Workspace service: the local yak directory, its sync state and the shared ref.

Collaborators (the CLI, editors, scripts) go through ``YakService`` rather
than wiring stores and backends themselves.
"""

from __future__ import annotations

import json
import logging
import shlex
from collections.abc import Callable
from pathlib import Path
from typing import Any

from yaks.core.config.env import resolve_github_token
from yaks.core.config.models import YaksConfig
from yaks.core.storage.backend import ObjectBackend
from yaks.core.storage.directory import DirectoryStore
from yaks.core.storage.exceptions import GitError, StorageError
from yaks.core.storage.git import GitBackend
from yaks.core.storage.github import GitHubBackend
from yaks.core.storage.models import AdvanceResult, Author, Snapshot
from yaks.core.storage.refstore import RefStore
from yaks.core.storage.retry import RetryConfig
from yaks.core.sync.models import SyncResult, SyncState
from yaks.core.sync.service import SyncService
from yaks.core.validation.errors import ValidationError, not_found
from yaks.core.yaks.models import YakCollection

logger = logging.getLogger(__name__)

Operation = Callable[..., "YakCollection | ValidationError"]


class YakService:
    """
    Load, mutate, and sync the yaks of one project.

    Example:
        >>> service = YakService(Path("."), load_config())
        >>> service.apply(operations.add, "ship/docs")
        >>> result = service.sync()
        >>> print(result.summary())
    """

    STATE_FILE = ".sync-state.json"

    def __init__(
        self,
        project_dir: Path | None = None,
        config: YaksConfig | None = None,
        backend: ObjectBackend | None = None,
    ) -> None:
        """
        Initialize the service.

        Args:
            project_dir: Project root (defaults to cwd).
            config: Loaded configuration (defaults to built-in defaults).
            backend: Object backend override; built from config when None.
        """
        self.project_dir = (project_dir or Path.cwd()).resolve()
        self.config = config or YaksConfig()
        self._backend = backend
        self._state: SyncState | None = None
        self.directory = DirectoryStore(self.yak_dir)

    @property
    def yak_dir(self) -> Path:
        """Directory holding the local copy of the collection."""
        return self.project_dir / self.config.yak_path

    @property
    def state_file_path(self) -> Path:
        """Full path to the sync state file."""
        return self.yak_dir / self.STATE_FILE

    @property
    def ref(self) -> str:
        return self.config.storage.ref

    @property
    def backend(self) -> ObjectBackend:
        if self._backend is None:
            self._backend = self._build_backend()
        return self._backend

    def _build_backend(self) -> ObjectBackend:
        storage = self.config.storage
        if storage.backend == "github":
            return GitHubBackend(
                repo=storage.github_repo or "",
                token=resolve_github_token(storage),
                api_url=storage.github_api_url,
                timeout=storage.timeout,
            )
        return GitBackend(
            project_dir=self.project_dir,
            remote=storage.remote,
            timeout=storage.timeout,
        )

    # ------------------------------------------------------------------
    # Local collection
    # ------------------------------------------------------------------

    def load(self) -> YakCollection:
        return self.directory.load()

    def apply(
        self,
        operation: Operation,
        *args: Any,
        command: str | None = None,
        **kwargs: Any,
    ) -> YakCollection | ValidationError:
        """
        Load the collection, apply *operation* and save the result.

        The saved collection is then recorded on the log ref with *command*
        as the commit message (defaults to the operation and its arguments).

        Returns the new collection, or the ValidationError (nothing is saved).
        """
        result = operation(self.load(), *args, **kwargs)
        if isinstance(result, ValidationError):
            logger.debug("Rejected %s: %s", getattr(operation, "__name__", operation), result)
            return result

        self.directory.save(result)
        if command is None:
            name = getattr(operation, "__name__", "edit")
            command = shlex.join([name, *(arg for arg in args if isinstance(arg, str))])
        self.log_command(command, result)
        return result

    def log_command(self, command: str, collection: YakCollection) -> str | None:
        """
        Commit *collection* to the local log ref with *command* as message.

        The log ref is private history of local edits. It is never pushed
        and sync never reads it. Returns the new commit, or None when the
        log is disabled or could not be written.
        """
        log_ref = self.config.storage.log_ref
        if log_ref is None:
            return None

        backend = GitBackend(
            project_dir=self.project_dir, remote=None, timeout=self.config.storage.timeout
        )
        store = RefStore(backend)
        try:
            parent = backend.resolve_ref(log_ref)
            commit = store.write(collection, parent, command, self.default_author())
            outcome = store.advance_ref(log_ref, commit, parent)
        except GitError as e:
            logger.warning("Could not record %r in %s: %s", command, log_ref, e)
            return None

        if outcome == AdvanceResult.REJECTED:
            logger.warning("%s moved while recording %r; entry skipped", log_ref, command)
            return None
        return commit

    def show_context(self, yak_id: str) -> str | ValidationError:
        """Context of *yak_id* ("" when it has none)."""
        yak = self.load().get(yak_id)
        if yak is None:
            return not_found(yak_id)
        return yak.context or ""

    # ------------------------------------------------------------------
    # Sync state
    # ------------------------------------------------------------------

    def _load_state(self) -> SyncState:
        """Load sync state from file or return default state."""
        if self._state is not None:
            return self._state

        if self.state_file_path.exists():
            try:
                content = self.state_file_path.read_text()
                self._state = SyncState.model_validate_json(content)
                return self._state
            except (json.JSONDecodeError, ValueError) as e:
                logger.warning("Failed to load sync state: %s", e)

        self._state = SyncState(ref=self.ref)
        return self._state

    def _save_state(self, state: SyncState) -> None:
        """Save sync state to file atomically."""
        self._state = state

        self.state_file_path.parent.mkdir(parents=True, exist_ok=True)

        temp_path = self.state_file_path.with_suffix(".tmp")
        try:
            temp_path.write_text(state.model_dump_json(indent=2))
            temp_path.replace(self.state_file_path)
        except OSError:
            if temp_path.exists():
                temp_path.unlink()
            raise

    def get_state(self) -> SyncState:
        return self._load_state()

    # ------------------------------------------------------------------
    # Sync
    # ------------------------------------------------------------------

    def default_author(self) -> Author | None:
        author = self.config.author
        if author.name and author.email:
            return Author(name=author.name, email=author.email)
        return None

    def _read_base(self, store: RefStore, state: SyncState) -> Snapshot | None:
        """Rebuild the base snapshot from the commit recorded at the last sync."""
        if state.base_commit is None or state.ref != self.ref:
            return None

        try:
            collection = store.read_commit(state.base_commit)
        except StorageError as e:
            logger.warning(
                "Base commit %s unavailable, merging without base: %s", state.base_commit[:8], e
            )
            return None
        return Snapshot(collection=collection, content_id=state.base_commit)

    def sync(self, author: Author | None = None) -> SyncResult:
        """
        Sync the local directory with the shared ref.

        On success the merged collection replaces the local directory and
        becomes the base of the next sync.
        """
        sync_config = self.config.sync
        store = RefStore(self.backend)
        service = SyncService(
            store,
            ref=self.ref,
            max_attempts=sync_config.max_attempts,
            retry_delay=sync_config.retry_delay_ms / 1000,
            retry_backoff=sync_config.retry_backoff,
            transient_retry=RetryConfig(max_retries=sync_config.transient_retries),
        )

        state = self._load_state()
        result = service.sync(
            self.load(),
            base=self._read_base(store, state),
            author=author or self.default_author(),
        )

        if result.success and result.collection is not None:
            self.directory.save(result.collection)
            state.ref = self.ref
            state.mark_synced(result.commit_sha, result.had_conflicts)
            self._save_state(state)

        return result
