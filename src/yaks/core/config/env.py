"""Environment loading for yx.

The GitHub token and YAKS_* overrides can live in .env files beside the
project's .yaks.json or in the user config directory:

    os.environ (pre-existing) > <project>/.env > ~/.config/yaks/.env

A variable exported in the shell is never overridden by a .env file.
Call ``load_layered_env`` before ``load_config`` so the overrides it sets
are visible to the config loader.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from dotenv import dotenv_values

from .loader import get_xdg_config_home
from .models import StorageConfig

logger = logging.getLogger(__name__)


def get_user_env_path() -> Path:
    """Path to ~/.config/yaks/.env (or XDG equivalent)."""
    return get_xdg_config_home() / "yaks" / ".env"


def get_project_env_path(project_dir: Path | None = None) -> Path:
    """Path to the .env file in the project root."""
    return (project_dir or Path.cwd()) / ".env"


def read_env_file(path: Path) -> dict[str, str]:
    """Read KEY=value pairs from *path*; a missing file has none."""
    if not path.is_file():
        return {}
    return {
        str(key): str(value)
        for key, value in dotenv_values(path).items()
        if key is not None and value is not None
    }


def load_layered_env(project_dir: Path | None = None) -> dict[str, Path]:
    """
    Copy variables from the user and project .env files into os.environ.

    Args:
        project_dir: Project root holding .env (defaults to cwd).

    Returns:
        Every variable that was set, mapped to the file it came from.
    """
    applied: dict[str, Path] = {}
    for path in (get_user_env_path(), get_project_env_path(project_dir)):
        for key, value in read_env_file(path).items():
            # project values replace user values, never exported ones
            if key in os.environ and key not in applied:
                continue
            os.environ[key] = value
            applied[key] = path

    if applied:
        logger.debug("Loaded %s from .env files", ", ".join(sorted(applied)))
    return applied


def resolve_github_token(storage: StorageConfig) -> str | None:
    """Token for the GitHub backend, read from ``storage.github_token_env``."""
    token = os.environ.get(storage.github_token_env)
    if not token:
        logger.warning(
            "%s is not set; GitHub requests will be unauthenticated", storage.github_token_env
        )
        return None
    return token
