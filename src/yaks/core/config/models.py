"""
Configuration data models for yaks.

These models define the structure of .yaks.json and
~/.config/yaks/config.json files, with validation via Pydantic.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from yaks.core.storage.models import DEFAULT_REF


class StorageConfig(BaseModel):
    """
    Where the shared collection is published.

    The git backend uses the repository containing the project directory;
    the github backend talks to the REST API and needs no clone.
    """
    backend: str = Field(
        default="git",
        pattern="^(git|github)$",
        description="Object store backend: 'git' or 'github'"
    )
    ref: str = Field(
        default=DEFAULT_REF,
        pattern="^refs/",
        description="Shared ref holding the yak tree"
    )
    remote: Optional[str] = Field(
        default="origin",
        description="Git remote holding the shared ref (null for local-only)"
    )
    log_ref: Optional[str] = Field(
        default="refs/yaks/log",
        pattern="^refs/",
        description="Local ref recording every edit as a commit (null to disable)"
    )
    github_repo: Optional[str] = Field(
        default=None,
        description="GitHub repository as owner/name (github backend)"
    )
    github_api_url: str = Field(
        default="https://api.github.com",
        description="GitHub API root URL"
    )
    github_token_env: str = Field(
        default="GITHUB_TOKEN",
        description="Environment variable holding the GitHub token"
    )
    timeout: float = Field(
        default=60.0,
        gt=0,
        description="Seconds before a storage call is abandoned"
    )


class SyncConfig(BaseModel):
    """
    Retry behavior of the sync loop.
    """
    max_attempts: int = Field(
        default=5,
        ge=1,
        description="Publish attempts before giving up on a busy ref"
    )
    retry_delay_ms: int = Field(
        default=100,
        ge=0,
        description="Delay after the first rejected publish, in milliseconds"
    )
    retry_backoff: float = Field(
        default=2.0,
        ge=1.0,
        description="Multiplier applied to the delay after each rejection"
    )
    transient_retries: int = Field(
        default=3,
        ge=0,
        description="Retries of a single storage call on network failures"
    )


class AuthorConfig(BaseModel):
    """
    Commit author for published snapshots.

    When unset, git falls back to its own user.name / user.email.
    """
    name: Optional[str] = Field(default=None, description="Author name")
    email: Optional[str] = Field(default=None, description="Author email")


class YaksConfig(BaseModel):
    """
    Top-level yaks configuration.

    Loaded from defaults, user config, project config, and env vars.

    Example:
        >>> config = YaksConfig(storage=StorageConfig(remote=None))
        >>> config.storage.ref
        'refs/notes/yaks'
    """
    yak_path: str = Field(
        default=".yaks",
        description="Directory holding the local copy, relative to the project"
    )
    storage: StorageConfig = Field(
        default_factory=StorageConfig,
        description="Shared ref storage"
    )
    sync: SyncConfig = Field(
        default_factory=SyncConfig,
        description="Sync retry behavior"
    )
    author: AuthorConfig = Field(
        default_factory=AuthorConfig,
        description="Commit author"
    )

    model_config = ConfigDict(
        extra="allow",  # Allow extra fields for forward compatibility
        validate_assignment=True,  # Validate on field assignment
    )
