"""
Configuration loading with multi-layer merging.

Implements the configuration precedence chain:
    defaults < user config < project config < env vars
"""

import json
import logging
import os
from pathlib import Path
from typing import Any

from .models import YaksConfig

logger = logging.getLogger(__name__)

# Global cache to avoid reloading config multiple times per session
_config_cache: YaksConfig | None = None

# Env var -> (section, key); section None means top level
ENV_OVERRIDES: dict[str, tuple[str | None, str]] = {
    "YAK_PATH": (None, "yak_path"),
    "YAKS_REF": ("storage", "ref"),
    "YAKS_REMOTE": ("storage", "remote"),
    "YAKS_BACKEND": ("storage", "backend"),
    "YAKS_GITHUB_REPO": ("storage", "github_repo"),
}


def get_xdg_config_home() -> Path:
    """
    Get XDG config home directory.

    Returns:
        Path to config directory (defaults to ~/.config)
    """
    if xdg_home := os.environ.get("XDG_CONFIG_HOME"):
        return Path(xdg_home)
    return Path.home() / ".config"


# Files or directories that mark the root of a project, nearest wins
PROJECT_ROOT_MARKERS = (".yaks.json", ".yaks", ".git")


def find_project_dir(start: Path | None = None) -> Path:
    """
    Find the project root by searching upward for a marker.

    Falls back to *start* (or cwd) when no parent holds a marker, so yx
    still works in a bare directory.

    Example:
        >>> find_project_dir(Path("/project/src/module"))
        PosixPath('/project')
    """
    start = (start or Path.cwd()).resolve()
    for directory in (start, *start.parents):
        if any((directory / marker).exists() for marker in PROJECT_ROOT_MARKERS):
            return directory
    return start


def get_user_config_path() -> Path:
    """Path to ~/.config/yaks/config.json (or XDG equivalent)."""
    return get_xdg_config_home() / "yaks" / "config.json"


def get_project_config_path(cwd: Path | None = None) -> Path:
    """Path to .yaks.json in the project root."""
    if cwd is None:
        cwd = Path.cwd()
    return cwd / ".yaks.json"


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Deep merge two dictionaries.

    Values in `override` take precedence over values in `base`.
    Nested dicts are merged, not replaced.

    Example:
        >>> base = {"a": 1, "b": {"x": 10, "y": 20}}
        >>> override = {"b": {"y": 30, "z": 40}, "c": 3}
        >>> deep_merge(base, override)
        {'a': 1, 'b': {'x': 10, 'y': 30, 'z': 40}, 'c': 3}
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def load_json_file(path: Path) -> dict[str, Any] | None:
    """
    Load a JSON file, returning None if it doesn't exist or is invalid.
    """
    if not path.exists():
        return None

    try:
        with path.open() as f:
            data = json.load(f)
            if isinstance(data, dict):
                return data
            return None
    except (json.JSONDecodeError, OSError) as e:
        # Config system should be resilient to a broken file
        logger.warning("Failed to parse config at %s: %s", path, e)
        return None


def apply_env_overrides(config_dict: dict[str, Any]) -> dict[str, Any]:
    """
    Apply environment variable overrides to configuration.

    Env vars have the highest precedence and override all config files.

    Supported env vars:
        YAK_PATH - overrides yak_path
        YAKS_REF - overrides storage.ref
        YAKS_REMOTE - overrides storage.remote ("none" for local-only)
        YAKS_BACKEND - overrides storage.backend
        YAKS_GITHUB_REPO - overrides storage.github_repo
    """
    result = config_dict.copy()

    for env_var, (section, key) in ENV_OVERRIDES.items():
        value: str | None = os.environ.get(env_var)
        if not value:
            continue

        if env_var == "YAKS_REMOTE" and value.lower() == "none":
            value = None

        if section is None:
            result[key] = value
        else:
            result[section] = {**result.get(section, {}), key: value}

    return result


def get_default_config() -> dict[str, Any]:
    """Hardcoded default configuration."""
    return {
        "yak_path": ".yaks",
        "storage": {"backend": "git", "remote": "origin"},
    }


def load_config(project_dir: Path | None = None, use_cache: bool = True) -> YaksConfig:
    """
    Load configuration with multi-layer merging.

    Configuration precedence (highest to lowest):
        1. Environment variables (YAK_PATH, YAKS_*)
        2. Project config (.yaks.json)
        3. User config (~/.config/yaks/config.json)
        4. Hardcoded defaults

    Args:
        project_dir: Project directory to load .yaks.json from (defaults to cwd)
        use_cache: If True, return cached config from previous load

    Returns:
        Validated YaksConfig instance

    Raises:
        pydantic.ValidationError: If the merged config fails validation

    Example:
        >>> config = load_config()
        >>> config.storage.ref
        'refs/notes/yaks'
    """
    global _config_cache

    if use_cache and _config_cache is not None:
        return _config_cache

    merged = get_default_config()

    if user_config := load_json_file(get_user_config_path()):
        merged = deep_merge(merged, user_config)

    if project_config := load_json_file(get_project_config_path(project_dir)):
        merged = deep_merge(merged, project_config)

    merged = apply_env_overrides(merged)

    config = YaksConfig(**merged)
    _config_cache = config
    return config


def clear_cache() -> None:
    """
    Clear the cached configuration.

    Useful for testing or when config files change during execution.
    """
    global _config_cache
    _config_cache = None
