"""
Skill models for skillhub.

Registry records, parsed metadata, discovery results and the result types
returned by install, update and sync operations.
"""

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field


class SourceType(str, Enum):
    """Where a skill's authoritative content comes from."""

    LOCAL = "local"
    GIT = "git"


class SyncMode(str, Enum):
    """How a skill is propagated into a tool directory."""

    COPY = "copy"
    LINK = "link"


class SkillMetadata(BaseModel):
    """Metadata from an in-bundle skill.yaml / skill.json descriptor."""

    name: str = Field(..., description="Skill name")
    version: str = Field(default="", description="Skill version")
    description: str | None = None
    author: str | None = None
    tags: list[str] = Field(default_factory=list)
    dependencies: list[str] = Field(default_factory=list)


class SkillFrontmatter(BaseModel):
    """The ``name`` and ``description`` fields of a SKILL.md front matter."""

    name: str
    description: str | None = None


class SkillRecord(BaseModel):
    """A managed skill. ``central_path`` is unique across records."""

    id: str
    name: str
    source_type: str
    source_ref: str | None = None
    source_revision: str | None = None
    central_path: str
    content_hash: str | None = None
    created_at: int
    updated_at: int
    last_sync_at: int | None = None
    last_seen_at: int
    status: str = "ok"
    metadata: SkillMetadata | None = None


class SkillTargetRecord(BaseModel):
    """A skill propagated into one tool's directory; one per (skill_id, tool)."""

    id: str
    skill_id: str
    tool: str
    target_path: str
    mode: str
    status: str = "ok"
    last_error: str | None = None
    synced_at: int | None = None


class ParsedGitSource(BaseModel):
    """A user reference normalised into something fetchable."""

    clone_url: str
    branch: str | None = None
    subpath: str | None = None


class RepoCacheMeta(BaseModel):
    """Marker file stored next to each cached clone."""

    last_fetched_ms: int
    head: str | None = None


class InstallResult(BaseModel):
    """Outcome of installing a skill into the canonical store."""

    skill_id: str
    name: str
    central_path: Path
    content_hash: str | None = None


class UpdateResult(BaseModel):
    """Outcome of refreshing a skill's canonical copy from its source."""

    skill_id: str
    name: str
    central_path: Path
    content_hash: str | None = None
    source_revision: str | None = None
    updated_targets: list[str] = Field(default_factory=list)
    failed_targets: dict[str, str] = Field(default_factory=dict)


class SyncResult(BaseModel):
    """Where and how a skill landed in a tool directory."""

    target_path: Path
    mode: SyncMode
    replaced: bool = False


class GitSkillCandidate(BaseModel):
    """A skill found inside a git repository."""

    name: str
    description: str | None = None
    subpath: str


class LocalSkillCandidate(BaseModel):
    """A skill directory found under a local path, valid or not."""

    name: str
    description: str | None = None
    subpath: str
    valid: bool = True
    reason: str | None = None


class DetectedSkill(BaseModel):
    """A skill-shaped directory found inside a tool's skills directory."""

    tool: str
    name: str
    path: Path
    is_link: bool = False
    link_target: Path | None = None


class OnboardingVariant(BaseModel):
    """One tool's copy of a discovered skill."""

    tool: str
    name: str
    path: Path
    fingerprint: str | None = None
    is_link: bool = False
    link_target: Path | None = None


class OnboardingGroup(BaseModel):
    """All discovered copies sharing a name."""

    name: str
    variants: list[OnboardingVariant] = Field(default_factory=list)
    has_conflict: bool = False


class OnboardingPlan(BaseModel):
    """Result of scanning the tool directories for unmanaged skills."""

    total_tools_scanned: int = 0
    total_skills_found: int = 0
    groups: list[OnboardingGroup] = Field(default_factory=list)
