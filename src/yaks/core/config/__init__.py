"""
Configuration models and loading.

Pydantic models for yaks configuration with multi-layer merging:
defaults < user < project < env vars.
"""

from .env import load_layered_env, resolve_github_token
from .loader import (
    clear_cache,
    find_project_dir,
    get_project_config_path,
    get_user_config_path,
    get_xdg_config_home,
    load_config,
)
from .models import AuthorConfig, StorageConfig, SyncConfig, YaksConfig

__all__ = [
    # Models
    "AuthorConfig",
    "StorageConfig",
    "SyncConfig",
    "YaksConfig",
    # Loader functions
    "clear_cache",
    "find_project_dir",
    "get_project_config_path",
    "get_user_config_path",
    "get_xdg_config_home",
    "load_config",
    "load_layered_env",
    "resolve_github_token",
]
