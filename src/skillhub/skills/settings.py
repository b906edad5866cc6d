"""
Registry-backed settings.

Values stored in the registry's settings table win over the config file, so
choices made at runtime (``skillhub settings set``) persist.
"""

import logging
from pathlib import Path
from typing import Protocol

from skillhub.config.schema import Config
from skillhub.storage.paths import expand_path, get_central_repo_dir

logger = logging.getLogger(__name__)

CENTRAL_REPO_PATH = "central_repo_path"
GIT_CACHE_TTL_SECS = "git_cache_ttl_secs"
GIT_CACHE_CLEANUP_DAYS = "git_cache_cleanup_days"

KNOWN_SETTINGS = (CENTRAL_REPO_PATH, GIT_CACHE_TTL_SECS, GIT_CACHE_CLEANUP_DAYS)


class SettingsStore(Protocol):
    def get_setting(self, key: str) -> str | None: ...

    def set_setting(self, key: str, value: str) -> None: ...


def _get_int(store: SettingsStore, key: str, default: int) -> int:
    raw = store.get_setting(key)
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except ValueError:
        logger.warning(f"Ignoring non-integer setting {key}={raw!r}")
        return default


def resolve_central_repo_path(store: SettingsStore, config: Config) -> Path:
    """Canonical store root: registry setting, then config, then default."""
    stored = store.get_setting(CENTRAL_REPO_PATH)
    if stored and stored.strip():
        return expand_path(stored.strip())
    if config.skills.central_repo:
        return expand_path(config.skills.central_repo)
    return get_central_repo_dir()


def get_git_cache_ttl_secs(store: SettingsStore, config: Config) -> int:
    return _get_int(store, GIT_CACHE_TTL_SECS, config.git.cache_ttl_secs)


def get_git_cache_cleanup_days(store: SettingsStore, config: Config) -> int:
    return max(0, _get_int(store, GIT_CACHE_CLEANUP_DAYS, config.git.cache_cleanup_days))


def set_setting_value(store: SettingsStore, key: str, value: str) -> None:
    """Validate and store one of :data:`KNOWN_SETTINGS`.

    Raises:
        ValueError: For unknown keys or non-integer numeric settings.
    """
    if key not in KNOWN_SETTINGS:
        raise ValueError(f"Unknown setting: {key} (known: {', '.join(KNOWN_SETTINGS)})")
    if key in (GIT_CACHE_TTL_SECS, GIT_CACHE_CLEANUP_DAYS):
        try:
            int(value)
        except ValueError:
            raise ValueError(f"{key} must be an integer, got {value!r}") from None
    if key == CENTRAL_REPO_PATH:
        value = str(expand_path(value))
    store.set_setting(key, value)
