"""
Pydantic configuration schema for skillhub.

This module defines all configuration models with validation.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

# =============================================================================
# Skills Configuration
# =============================================================================


class SkillsConfig(BaseModel):
    """Canonical store configuration."""

    model_config = ConfigDict(extra="allow")

    central_repo: str | None = Field(
        default=None,
        description="Canonical skill store (None = ~/.skillhub/skills)",
    )
    compute_hash: bool = Field(
        default=False,
        description="Always compute content hashes on install/update",
    )


# =============================================================================
# Git Configuration
# =============================================================================


class GitConfig(BaseModel):
    """Git cache configuration."""

    model_config = ConfigDict(extra="allow")

    cache_ttl_secs: int = Field(
        default=60,
        description="Reuse a cached clone for this long; <= 0 always refetches",
    )
    cache_cleanup_days: int = Field(
        default=30,
        ge=0,
        description="Remove cached clones untouched for this many days (0 = never)",
    )
    shallow: bool = True


# =============================================================================
# Sync Configuration
# =============================================================================


class SyncConfig(BaseModel):
    """Target propagation configuration."""

    prefer_copy: bool = Field(
        default=False,
        description="Copy into tool directories even where links are supported",
    )


# =============================================================================
# Logging Configuration
# =============================================================================


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "WARNING"
    file: bool = True


# =============================================================================
# Root Configuration Model
# =============================================================================


class Config(BaseModel):
    """
    Root configuration model for skillhub.

    Loaded from ~/.skillhub/config.yaml and SKILLHUB_* environment variables,
    merged over these defaults.
    """

    model_config = ConfigDict(extra="allow")

    skills: SkillsConfig = Field(default_factory=SkillsConfig)
    git: GitConfig = Field(default_factory=GitConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
