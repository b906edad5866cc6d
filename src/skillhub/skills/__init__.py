"""
Skill acquisition, caching and synchronization for skillhub.

Skills are directories with a SKILL.md descriptor. They are installed once
into the canonical store and propagated into each tool's skills directory.
"""

from skillhub.skills.errors import (
    GitFetchError,
    MultipleSkillsError,
    SkillExistsError,
    SkillHubError,
    SkillInvalidError,
    SkillNotFoundError,
    SourceNotFoundError,
    TargetExistsError,
    ToolNotInstalledError,
    UnknownToolError,
    UnsupportedSourceError,
)
from skillhub.skills.fingerprint import hash_dir, try_hash_dir
from skillhub.skills.git_cache import GitCache, GitPythonFetcher, get_git_cache
from skillhub.skills.installer import SkillInstaller, SwapOutcome
from skillhub.skills.manager import SkillManager, get_skill_manager
from skillhub.skills.models import (
    InstallResult,
    OnboardingGroup,
    OnboardingPlan,
    OnboardingVariant,
    ParsedGitSource,
    SkillRecord,
    SkillTargetRecord,
    SourceType,
    SyncMode,
    UpdateResult,
)
from skillhub.skills.onboarding import build_onboarding_plan, build_onboarding_plan_in_home
from skillhub.skills.source import parse_git_source
from skillhub.skills.targets import TargetSynchronizer

__all__ = [
    # Errors
    "GitFetchError",
    "MultipleSkillsError",
    "SkillExistsError",
    "SkillHubError",
    "SkillInvalidError",
    "SkillNotFoundError",
    "SourceNotFoundError",
    "TargetExistsError",
    "ToolNotInstalledError",
    "UnknownToolError",
    "UnsupportedSourceError",
    # Models
    "InstallResult",
    "OnboardingGroup",
    "OnboardingPlan",
    "OnboardingVariant",
    "ParsedGitSource",
    "SkillRecord",
    "SkillTargetRecord",
    "SourceType",
    "SyncMode",
    "UpdateResult",
    # Engine
    "GitCache",
    "GitPythonFetcher",
    "SkillInstaller",
    "SkillManager",
    "SwapOutcome",
    "TargetSynchronizer",
    "build_onboarding_plan",
    "build_onboarding_plan_in_home",
    "get_git_cache",
    "get_skill_manager",
    "hash_dir",
    "parse_git_source",
    "try_hash_dir",
]
