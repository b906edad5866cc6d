"""Storage utilities for skillhub."""

from skillhub.storage.paths import (
    ensure_directory,
    expand_path,
    get_central_repo_dir,
    get_db_path,
    get_git_cache_dir,
    get_global_config_path,
    get_log_path,
    get_skillhub_home,
)

__all__ = [
    "ensure_directory",
    "expand_path",
    "get_central_repo_dir",
    "get_db_path",
    "get_git_cache_dir",
    "get_global_config_path",
    "get_log_path",
    "get_skillhub_home",
]
