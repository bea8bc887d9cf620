"""
GitHub git-data API object backend.

Reads and publishes the yaks ref of a GitHub repository over HTTPS, without
a local clone. Uses the REST git database endpoints:

- GET   /repos/{repo}/git/ref/{ref}
- GET   /repos/{repo}/git/commits/{sha}
- GET   /repos/{repo}/git/trees/{sha}?recursive=1
- GET   /repos/{repo}/git/blobs/{sha}
- POST  /repos/{repo}/git/blobs, /git/trees, /git/commits, /git/refs
- PATCH /repos/{repo}/git/refs/{ref}

A non-forced PATCH only succeeds as a fast-forward. Every commit published
by the sync engine has the expected previous commit as its parent, so a
fast-forward check is equivalent to "the ref still points at expected".
"""

from __future__ import annotations

import base64
import logging
from typing import Any

import httpx

from yaks.core.codec.tree import EntryKind, decode_content

from .exceptions import StorageError, TransientStorageError
from .models import AdvanceResult, Author, ObjectEntry

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"

# 422 messages that mean a conditional ref update lost the race
REF_CONFLICT_MESSAGES = (
    "not a fast forward",
    "reference already exists",
    "reference does not exist",
    "reference update failed",
)


class GitHubBackend:
    """
    Object backend for a repository hosted on GitHub.

    Example:
        >>> backend = GitHubBackend("owner/repo", token=os.environ["GITHUB_TOKEN"])
        >>> RefStore(backend).read("refs/notes/yaks")
    """

    def __init__(
        self,
        repo: str,
        token: str | None = None,
        api_url: str = DEFAULT_API_URL,
        timeout: float = 30.0,
        client: httpx.Client | None = None,
    ) -> None:
        """
        Initialize the GitHub backend.

        Args:
            repo: Repository as "owner/name".
            token: Personal access or app token with contents write access.
            api_url: API root, for GitHub Enterprise installs.
            timeout: Request timeout in seconds.
            client: Pre-built client (tests pass one with a mock transport).
        """
        self.repo = repo
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"

        if client is None:
            client = httpx.Client(timeout=timeout, follow_redirects=True)
        client.base_url = httpx.URL(api_url.rstrip("/"))
        client.headers.update(headers)
        self._client = client

    def close(self) -> None:
        self._client.close()

    def _path(self, suffix: str) -> str:
        return f"/repos/{self.repo}/git/{suffix}"

    def _request(self, method: str, suffix: str, **kwargs: Any) -> httpx.Response:
        """
        Send a request, translating transport failures into storage errors.

        5xx responses and rate limiting (429) are transient. Other statuses
        are returned for the caller to interpret.
        """
        url = self._path(suffix)
        logger.debug("GitHub %s %s", method, url)
        try:
            response = self._client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            raise TransientStorageError(f"Request timed out: {method} {url}", url=url) from e
        except httpx.TransportError as e:
            raise TransientStorageError(f"Connection error: {method} {url}: {e}", url=url) from e

        if response.status_code >= 500 or response.status_code == 429:
            raise TransientStorageError(
                f"GitHub returned {response.status_code} for {method} {url}",
                url=url,
                status_code=response.status_code,
            )
        return response

    @staticmethod
    def _json(response: httpx.Response) -> dict[str, Any]:
        """Return the JSON body of a successful response or raise StorageError."""
        if response.is_error:
            message = ""
            try:
                message = response.json().get("message", "")
            except ValueError:
                message = response.text
            raise StorageError(
                f"GitHub API error {response.status_code}: {message}",
                status_code=response.status_code,
            )
        data: dict[str, Any] = response.json()
        return data

    @staticmethod
    def _is_ref_conflict(response: httpx.Response) -> bool:
        try:
            message = str(response.json().get("message", ""))
        except ValueError:
            message = response.text
        return any(fragment in message.lower() for fragment in REF_CONFLICT_MESSAGES)

    @staticmethod
    def _short_ref(ref: str) -> str:
        return ref.removeprefix("refs/")

    # ------------------------------------------------------------------
    # ObjectBackend
    # ------------------------------------------------------------------

    def remote_configured(self) -> bool:
        return bool(self.repo)

    def resolve_ref(self, ref: str) -> str | None:
        response = self._request("GET", f"ref/{self._short_ref(ref)}")
        if response.status_code == 404:
            return None
        sha: str = self._json(response)["object"]["sha"]
        return sha

    def list_tree(self, commit_id: str) -> list[ObjectEntry]:
        commit = self._json(self._request("GET", f"commits/{commit_id}"))
        tree_sha = commit["tree"]["sha"]
        tree = self._json(self._request("GET", f"trees/{tree_sha}", params={"recursive": "1"}))
        if tree.get("truncated"):
            logger.warning("Tree %s was truncated by the GitHub API", tree_sha[:8])

        entries = []
        for item in tree.get("tree", []):
            if item["type"] not in (EntryKind.BLOB.value, EntryKind.TREE.value):
                continue
            entries.append(
                ObjectEntry(path=item["path"], kind=EntryKind(item["type"]), object_id=item["sha"])
            )
        return entries

    def read_blob(self, object_id: str) -> str:
        blob = self._json(self._request("GET", f"blobs/{object_id}"))
        content = blob.get("content", "")
        if blob.get("encoding") == "base64":
            return decode_content(base64.b64decode(content), f"blob {object_id}")
        return str(content)

    def create_blob(self, content: str) -> str:
        response = self._request("POST", "blobs", json={"content": content, "encoding": "utf-8"})
        sha: str = self._json(response)["sha"]
        return sha

    def create_tree(self, files: dict[str, str]) -> str:
        tree = [
            {"path": path, "mode": "100644", "type": "blob", "sha": blob_id}
            for path, blob_id in sorted(files.items())
        ]
        sha: str = self._json(self._request("POST", "trees", json={"tree": tree}))["sha"]
        return sha

    def create_commit(
        self,
        tree_id: str,
        parents: list[str],
        message: str,
        author: Author | None = None,
    ) -> str:
        payload: dict[str, Any] = {"message": message, "tree": tree_id, "parents": parents}
        if author is not None:
            payload["author"] = {"name": author.name, "email": author.email}

        sha: str = self._json(self._request("POST", "commits", json=payload))["sha"]
        logger.debug("Created commit: %s", sha)
        return sha

    def update_ref(self, ref: str, new_id: str, expected_id: str | None) -> AdvanceResult:
        if expected_id is None:
            response = self._request("POST", "refs", json={"ref": ref, "sha": new_id})
        else:
            response = self._request(
                "PATCH",
                f"refs/{self._short_ref(ref)}",
                json={"sha": new_id, "force": False},
            )

        if response.status_code == 422 and self._is_ref_conflict(response):
            logger.debug("Ref update rejected: %s", response.text)
            return AdvanceResult.REJECTED
        self._json(response)
        return AdvanceResult.ADVANCED

    def force_update_ref(self, ref: str, new_id: str) -> None:
        response = self._request(
            "PATCH",
            f"refs/{self._short_ref(ref)}",
            json={"sha": new_id, "force": True},
        )
        if response.status_code in (404, 422):
            # ref does not exist yet
            response = self._request("POST", "refs", json={"ref": ref, "sha": new_id})
        self._json(response)
