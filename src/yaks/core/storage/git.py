"""
Git object backend using plumbing commands.

Stores yak collections in a git repository without touching the working
tree, the index or any branch:

- `git hash-object -w` to store file content as blobs
- `git mktree` to create tree objects
- `git commit-tree` to create commits without checkout
- `git update-ref <ref> <new> <old>` for conditional local ref moves
- `git fetch` into a private tracking ref and
  `git push --force-with-lease` for the shared ref on a remote
"""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path
from typing import Any

from yaks.core.codec.tree import EntryKind, decode_content

from .exceptions import GitError, TransientGitError
from .models import AdvanceResult, Author, ObjectEntry

logger = logging.getLogger(__name__)

ZERO_OID = "0" * 40

# stderr fragments that mean the remote could not be reached
TRANSIENT_PATTERNS = (
    "could not read from remote repository",
    "unable to access",
    "could not resolve host",
    "connection timed out",
    "connection refused",
    "the remote end hung up",
    "early eof",
)

# stderr fragments that mean a conditional ref update lost the race
REF_CONFLICT_PATTERNS = (
    "cannot lock ref",
    "[rejected]",
    "stale info",
    "non-fast-forward",
    "fetch first",
)


class GitBackend:
    """
    Object backend backed by a local git repository.

    With a remote name, the shared ref lives on that remote: reads fetch it
    into ``refs/yaks/remotes/<remote>/...`` and updates are leased pushes.
    With ``remote=None`` the local ref itself is the shared ref, which is
    what worktrees of a single repository see.

    Example:
        >>> backend = GitBackend(project_dir=Path("."), remote="origin")
        >>> backend.resolve_ref("refs/notes/yaks")
        'a1b2c3...'
    """

    def __init__(
        self,
        project_dir: Path | None = None,
        remote: str | None = "origin",
        timeout: float = 60.0,
    ) -> None:
        """
        Initialize the git backend.

        Args:
            project_dir: Any directory inside the git repository.
                        Defaults to current working directory.
            remote: Remote holding the shared ref, or None for local-only.
            timeout: Seconds before a git command is abandoned.
        """
        self.project_dir = (project_dir or Path.cwd()).resolve()
        self.remote = remote
        self.timeout = timeout

    def tracking_ref(self, ref: str) -> str:
        """Private ref that mirrors *ref* as last fetched from the remote."""
        short = ref.removeprefix("refs/")
        return f"refs/yaks/remotes/{self.remote}/{short}"

    def _run_git(
        self,
        args: list[str],
        *,
        check: bool = True,
        input_data: str | None = None,
        env: dict[str, str] | None = None,
    ) -> str:
        """
        Run a git command and return its stdout.

        Args:
            args: Git command arguments (without "git" prefix).
            check: Whether to raise on non-zero exit code.
            input_data: Optional stdin data to pass to the command.
            env: Extra environment variables for the command.

        Returns:
            Command stdout as string (stripped).

        Raises:
            TransientGitError: If the command could not reach the remote.
            GitError: If the command fails for any other reason and check=True.
        """
        stdin = input_data.encode("utf-8") if input_data is not None else None
        stdout = self._run_git_bytes(args, check=check, input_data=stdin, env=env)
        return stdout.decode("utf-8", errors="replace").strip()

    def _run_git_bytes(
        self,
        args: list[str],
        *,
        check: bool = True,
        input_data: bytes | None = None,
        env: dict[str, str] | None = None,
    ) -> bytes:
        """Run a git command and return its raw stdout."""
        cmd = ["git"] + args
        logger.debug("Running git command: %s", " ".join(cmd))

        run_env: dict[str, Any] | None = None
        if env:
            run_env = {**os.environ, **env}

        try:
            result = subprocess.run(
                cmd,
                cwd=self.project_dir,
                capture_output=True,
                timeout=self.timeout,
                input=input_data,
                env=run_env,
            )
        except subprocess.TimeoutExpired as e:
            raise TransientGitError(f"Git command timed out: {' '.join(cmd)}", command=cmd) from e
        except FileNotFoundError as e:
            raise GitError("git not found in PATH", command=cmd) from e

        if check and result.returncode != 0:
            stderr = result.stderr.decode("utf-8", errors="replace").strip()
            error_type = GitError
            if any(pattern in stderr.lower() for pattern in TRANSIENT_PATTERNS):
                error_type = TransientGitError
            raise error_type(
                f"Git command failed: {' '.join(cmd)}",
                command=cmd,
                stderr=stderr,
            )

        return result.stdout

    def _rev_parse(self, ref: str) -> str | None:
        """Get the commit a ref points at, or None if it doesn't exist."""
        sha = self._run_git(["rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}"], check=False)
        return sha or None

    @staticmethod
    def _is_ref_conflict(error: GitError) -> bool:
        stderr = error.stderr.lower()
        return any(pattern in stderr for pattern in REF_CONFLICT_PATTERNS)

    # ------------------------------------------------------------------
    # ObjectBackend
    # ------------------------------------------------------------------

    def remote_configured(self) -> bool:
        if self.remote is None:
            return True
        try:
            self._run_git(["remote", "get-url", self.remote])
            return True
        except GitError:
            return False

    def resolve_ref(self, ref: str) -> str | None:
        if self.remote is None:
            return self._rev_parse(ref)

        tracking = self.tracking_ref(ref)
        try:
            self._run_git(["fetch", "--no-tags", "--quiet", self.remote, f"+{ref}:{tracking}"])
        except GitError as e:
            if "couldn't find remote ref" in e.stderr.lower():
                logger.debug("Remote %s has no %s yet", self.remote, ref)
                self._run_git(["update-ref", "-d", tracking], check=False)
                return None
            raise

        return self._rev_parse(tracking)

    def list_tree(self, commit_id: str) -> list[ObjectEntry]:
        output = self._run_git(["ls-tree", "-r", "-t", "-z", "--full-tree", commit_id])
        entries: list[ObjectEntry] = []
        for record in output.split("\0"):
            if not record:
                continue
            # Format: <mode> <type> <sha>\t<path>
            meta, path = record.split("\t", 1)
            _, object_type, object_id = meta.split()
            if object_type not in (EntryKind.BLOB.value, EntryKind.TREE.value):
                continue
            entries.append(ObjectEntry(path=path, kind=EntryKind(object_type), object_id=object_id))
        return entries

    def read_blob(self, object_id: str) -> str:
        data = self._run_git_bytes(["cat-file", "blob", object_id])
        return decode_content(data, f"blob {object_id}")

    def create_blob(self, content: str) -> str:
        return self._run_git(["hash-object", "-w", "--stdin"], input_data=content)

    def create_tree(self, files: dict[str, str]) -> str:
        root: dict[str, Any] = {}
        for path, blob_id in files.items():
            parts = path.split("/")
            node = root
            for dirname in parts[:-1]:
                node = node.setdefault(dirname, {})
            node[parts[-1]] = blob_id

        return self._mktree(root)

    def _mktree(self, node: dict[str, Any]) -> str:
        """
        Write one tree level, innermost directories first.

        Git's mktree doesn't handle paths with slashes, so each directory
        becomes its own tree object referenced by its parent.
        """
        records = []
        for name in sorted(node):
            value = node[name]
            if isinstance(value, dict):
                records.append(f"040000 tree {self._mktree(value)}\t{name}\0")
            else:
                records.append(f"100644 blob {value}\t{name}\0")
        return self._run_git(["mktree", "-z"], input_data="".join(records))

    def create_commit(
        self,
        tree_id: str,
        parents: list[str],
        message: str,
        author: Author | None = None,
    ) -> str:
        args = ["commit-tree", tree_id]
        for parent in parents:
            args.extend(["-p", parent])
        args.extend(["-m", message])

        env = None
        if author is not None:
            env = {
                "GIT_AUTHOR_NAME": author.name,
                "GIT_AUTHOR_EMAIL": author.email,
                "GIT_COMMITTER_NAME": author.name,
                "GIT_COMMITTER_EMAIL": author.email,
            }

        commit_id = self._run_git(args, env=env)
        logger.debug("Created commit: %s", commit_id)
        return commit_id

    def update_ref(self, ref: str, new_id: str, expected_id: str | None) -> AdvanceResult:
        try:
            if self.remote is None:
                self._run_git(["update-ref", ref, new_id, expected_id or ZERO_OID])
            else:
                self._run_git(
                    [
                        "push",
                        "--quiet",
                        f"--force-with-lease={ref}:{expected_id or ''}",
                        self.remote,
                        f"{new_id}:{ref}",
                    ]
                )
        except GitError as e:
            if self._is_ref_conflict(e):
                logger.debug("Ref update rejected: %s", e.stderr)
                return AdvanceResult.REJECTED
            raise

        if self.remote is not None:
            self._mirror_locally(ref, new_id)
        return AdvanceResult.ADVANCED

    def force_update_ref(self, ref: str, new_id: str) -> None:
        if self.remote is None:
            self._run_git(["update-ref", ref, new_id])
            return

        self._run_git(["push", "--quiet", "--force", self.remote, f"{new_id}:{ref}"])
        self._mirror_locally(ref, new_id)

    def _mirror_locally(self, ref: str, new_id: str) -> None:
        """Keep the tracking ref and the local copy of *ref* at the pushed commit."""
        self._run_git(["update-ref", self.tracking_ref(ref), new_id])
        self._run_git(["update-ref", ref, new_id])
