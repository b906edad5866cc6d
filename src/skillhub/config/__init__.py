"""Configuration for skillhub."""

from skillhub.config.loader import (
    ConfigurationError,
    apply_env_overrides,
    clear_config_cache,
    deep_merge,
    get_config,
    load_config,
    load_yaml_file,
    save_yaml_file,
    set_nested_value,
)
from skillhub.config.schema import Config, GitConfig, LoggingConfig, SkillsConfig, SyncConfig

__all__ = [
    "Config",
    "ConfigurationError",
    "GitConfig",
    "LoggingConfig",
    "SkillsConfig",
    "SyncConfig",
    "apply_env_overrides",
    "clear_config_cache",
    "deep_merge",
    "get_config",
    "load_config",
    "load_yaml_file",
    "save_yaml_file",
    "set_nested_value",
]
