"""
Path utilities for skillhub.

Provides consistent path resolution for configuration, the registry database,
the canonical skill store and the git cache.
"""

import os
from pathlib import Path


def get_skillhub_home() -> Path:
    """
    Get the skillhub home directory.

    Resolution order:
    1. SKILLHUB_HOME environment variable
    2. Default: ~/.skillhub

    Returns:
        Path to the skillhub home directory.
    """
    env_home = os.environ.get("SKILLHUB_HOME")
    if env_home:
        return Path(env_home).expanduser().resolve()
    return Path.home() / ".skillhub"


def get_global_config_path() -> Path:
    """
    Get the path to the global configuration file.

    Returns:
        Path to ~/.skillhub/config.yaml
    """
    return get_skillhub_home() / "config.yaml"


def get_central_repo_dir() -> Path:
    """
    Get the default canonical skill store.

    Returns:
        Path to ~/.skillhub/skills/
    """
    return get_skillhub_home() / "skills"


def get_git_cache_dir() -> Path:
    """
    Get the git clone cache directory.

    Returns:
        Path to ~/.skillhub/cache/git/
    """
    return get_skillhub_home() / "cache" / "git"


def get_db_path() -> Path:
    """
    Get the registry database path.

    Returns:
        Path to ~/.skillhub/skillhub.db
    """
    return get_skillhub_home() / "skillhub.db"


def get_log_path() -> Path:
    """
    Get the log file path.

    Returns:
        Path to ~/.skillhub/logs/skillhub.log
    """
    return get_skillhub_home() / "logs" / "skillhub.log"


def expand_path(path: str | Path) -> Path:
    """
    Expand a path string, handling ~ and environment variables.

    Args:
        path: Path string or Path object.

    Returns:
        Expanded absolute Path. Symlinks are not resolved.
    """
    if isinstance(path, str):
        path = os.path.expandvars(path)
        path = os.path.expanduser(path)
    return Path(os.path.abspath(path))


def ensure_directory(path: Path, mode: int = 0o755) -> Path:
    """
    Ensure a directory exists, creating it if necessary.

    Args:
        path: Directory path.
        mode: Permission mode for created directories.

    Returns:
        The path (for chaining).
    """
    path.mkdir(parents=True, exist_ok=True, mode=mode)
    return path
