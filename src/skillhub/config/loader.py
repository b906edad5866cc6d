"""
Configuration loader for skillhub.

Loads and merges configuration from:
1. Default values
2. Global config (~/.skillhub/config.yaml)
3. Environment variables (SKILLHUB_<SECTION>_<KEY>)
"""

import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from skillhub.config.schema import Config
from skillhub.storage.paths import get_global_config_path

ENV_PREFIX = "SKILLHUB_"

# Variables with their own meaning that must not be treated as config overrides.
RESERVED_ENV_VARS = {"SKILLHUB_HOME", "SKILLHUB_DEBUG", "SKILLHUB_COMPUTE_HASH"}


class ConfigurationError(Exception):
    """Raised when configuration loading or validation fails."""

    pass


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a YAML configuration file.

    Args:
        path: Path to the YAML file.

    Returns:
        Parsed configuration dictionary (empty if the file is missing).

    Raises:
        ConfigurationError: If the file cannot be read or parsed.
    """
    try:
        with open(path, encoding="utf-8") as f:
            content = yaml.safe_load(f)
    except FileNotFoundError:
        return {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Cannot read {path}: {e}") from e

    if content is None:
        return {}
    if not isinstance(content, dict):
        raise ConfigurationError(f"{path} must contain a YAML mapping")
    return content


def save_yaml_file(path: Path, config: dict[str, Any]) -> None:
    """
    Save a configuration dictionary to a YAML file.

    Raises:
        ConfigurationError: If the file cannot be written.
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(config, f, default_flow_style=False, sort_keys=False)
    except OSError as e:
        raise ConfigurationError(f"Cannot write {path}: {e}") from e


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Recursively merge ``override`` into a copy of ``base``.

    Nested mappings merge key by key; every other value replaces the base
    value outright.
    """
    result = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def set_nested_value(config: dict[str, Any], key_path: str, value: Any) -> dict[str, Any]:
    """
    Set a dotted key (``git.cache_ttl_secs``), creating sections as needed.
    """
    keys = key_path.split(".")
    current = config
    for key in keys[:-1]:
        if not isinstance(current.get(key), dict):
            current[key] = {}
        current = current[key]
    current[keys[-1]] = value
    return config


def _parse_env_value(value: str) -> Any:
    if value.lower() in ("true", "yes", "on"):
        return True
    if value.lower() in ("false", "no", "off"):
        return False
    if re.match(r"^-?\d+$", value):
        return int(value)
    return value


def apply_env_overrides(config: dict[str, Any]) -> dict[str, Any]:
    """
    Apply SKILLHUB_<SECTION>_<KEY> environment overrides.

    The first underscore-separated token names the section and the rest is
    the key, so ``SKILLHUB_GIT_CACHE_TTL_SECS=0`` sets ``git.cache_ttl_secs``.
    """
    for key, value in os.environ.items():
        if not key.startswith(ENV_PREFIX) or key in RESERVED_ENV_VARS:
            continue
        section, _, name = key[len(ENV_PREFIX) :].lower().partition("_")
        if not section or not name:
            continue
        config = set_nested_value(config, f"{section}.{name}", _parse_env_value(value))
    return config


def load_config(config_path: Path | None = None, skip_env: bool = False) -> Config:
    """
    Load and merge configuration from all sources.

    Args:
        config_path: Explicit config file (default: ~/.skillhub/config.yaml).
        skip_env: Skip environment variable overrides.

    Returns:
        Merged and validated Config object.

    Raises:
        ConfigurationError: If configuration is invalid.
    """
    config_dict = Config().model_dump()

    path = config_path or get_global_config_path()
    config_dict = deep_merge(config_dict, load_yaml_file(path))

    if not skip_env:
        config_dict = apply_env_overrides(config_dict)

    try:
        return Config.model_validate(config_dict)
    except ValidationError as e:
        raise ConfigurationError(f"Configuration validation failed: {e}") from e


_cached_config: Config | None = None


def get_config(reload: bool = False) -> Config:
    """Get the cached configuration, loading it on first use."""
    global _cached_config

    if _cached_config is None or reload:
        _cached_config = load_config()

    return _cached_config


def clear_config_cache() -> None:
    """Clear the cached configuration."""
    global _cached_config
    _cached_config = None
