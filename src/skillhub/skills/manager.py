"""
Skill manager for skillhub.

Provides the main interface for working with managed skills. The CLI talks
to a single :class:`SkillManager`; the manager wires the registry, git cache,
installer, target synchronizer and discovery scanner together.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from skillhub.config import Config, get_config
from skillhub.skills.errors import SkillNotFoundError
from skillhub.skills.git_cache import GitCache, get_git_cache
from skillhub.skills.installer import SkillInstaller
from skillhub.skills.models import (
    GitSkillCandidate,
    InstallResult,
    LocalSkillCandidate,
    OnboardingPlan,
    SkillRecord,
    SkillTargetRecord,
    UpdateResult,
)
from skillhub.skills.onboarding import build_onboarding_plan
from skillhub.skills.settings import (
    get_git_cache_cleanup_days,
    get_git_cache_ttl_secs,
    resolve_central_repo_path,
    set_setting_value,
)
from skillhub.skills.sync import remove_target
from skillhub.skills.targets import TargetSynchronizer, load_skill
from skillhub.skills.tools import ToolAdapter, default_tool_adapters, is_tool_installed

if TYPE_CHECKING:
    from skillhub.registry import SkillStore

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60


class SkillManager:
    """Main interface for working with managed skills.

    Provides methods to:
    - Install skills from local paths or git repositories
    - Update canonical copies and propagate them to tools
    - Sync and unsync skills per tool
    - Discover and import skills already present in tool directories
    - Maintain the git cache and registry settings
    """

    def __init__(
        self,
        store: SkillStore | None = None,
        git_cache: GitCache | None = None,
        config: Config | None = None,
        home: Path | None = None,
        adapters: list[ToolAdapter] | None = None,
    ):
        """Initialize the skill manager.

        Args:
            store: Registry (default: the SQLite registry under the home dir).
            git_cache: Git clone cache (default: the process-wide cache).
            config: Configuration (default: loaded config).
            home: Home directory holding the tools' dot-directories.
            adapters: Tool adapters (default: all known tools).
        """
        self.config = config or get_config()
        if store is None:
            from skillhub.registry import SkillStore

            store = SkillStore()
            store.ensure_schema()
        self.store = store
        self.git_cache = git_cache or get_git_cache()
        self.home = home or Path.home()
        self.adapters = adapters if adapters is not None else default_tool_adapters()
        self.synchronizer = TargetSynchronizer(
            store, self.home, self.adapters, prefer_copy=self.config.sync.prefer_copy
        )

    @property
    def central_root(self) -> Path:
        """Canonical store root; re-read so setting changes apply immediately."""
        return resolve_central_repo_path(self.store, self.config)

    @property
    def installer(self) -> SkillInstaller:
        return SkillInstaller(
            self.store,
            self.git_cache,
            self.central_root,
            synchronizer=self.synchronizer,
            compute_hash=self.config.skills.compute_hash,
            ttl_secs=get_git_cache_ttl_secs(self.store, self.config),
        )

    # =========================================================================
    # Queries
    # =========================================================================

    def list_skills(self) -> list[SkillRecord]:
        """List managed skills, most recently updated first."""
        return self.store.list_skills()

    def get_skill(self, id_or_name: str) -> SkillRecord:
        """Look a skill up by id, falling back to its name.

        Raises:
            SkillNotFoundError: If nothing matches.
        """
        record = self.store.get_skill_by_id(id_or_name)
        if record is not None:
            return record
        for record in self.store.list_skills():
            if record.name == id_or_name:
                return record
        raise SkillNotFoundError(id_or_name)

    def list_targets(self, skill_id: str) -> list[SkillTargetRecord]:
        return self.store.list_skill_targets(skill_id)

    def tool_status(self) -> list[tuple[ToolAdapter, bool]]:
        """Every known tool with whether it is installed."""
        return [(adapter, is_tool_installed(adapter, self.home)) for adapter in self.adapters]

    # =========================================================================
    # Install / update / remove
    # =========================================================================

    def install_local(self, source_path: Path, name: str | None = None) -> InstallResult:
        return self.installer.install_local(source_path, name)

    def install_git(self, repo_ref: str, name: str | None = None) -> InstallResult:
        return self.installer.install_git(repo_ref, name)

    def install_local_selection(
        self, base_path: Path, subpath: str, name: str | None = None
    ) -> InstallResult:
        return self.installer.install_local_selection(base_path, subpath, name)

    def install_git_selection(
        self, repo_ref: str, subpath: str, name: str | None = None
    ) -> InstallResult:
        return self.installer.install_git_selection(repo_ref, subpath, name)

    def list_git_candidates(self, repo_ref: str) -> list[GitSkillCandidate]:
        return self.installer.list_git_skills(repo_ref)

    def list_local_candidates(self, base_path: Path) -> list[LocalSkillCandidate]:
        return self.installer.list_local_skills(base_path)

    def update_skill(self, skill_id: str) -> UpdateResult:
        """Refresh a skill from its source and re-sync its copy targets."""
        return self.installer.update(skill_id)

    def delete_managed_skill(self, skill_id: str) -> list[str]:
        """Remove a skill from every tool, the canonical store and the registry.

        Returns:
            Keys of the tools it was removed from.

        Raises:
            SkillNotFoundError: If no record has this id.
        """
        record = load_skill(self.store, skill_id)
        removed = self.synchronizer.unsync_all(record.id)

        central_path = Path(record.central_path)
        if remove_target(central_path):
            logger.info(f"Deleted canonical copy {central_path}")
        self.store.delete_skill(record.id)
        return removed

    # =========================================================================
    # Tool targets
    # =========================================================================

    def sync_skill_to_tool(
        self, skill_id: str, tool: str, overwrite: bool = False
    ) -> SkillTargetRecord:
        """Propagate a managed skill into one tool's skills directory."""
        record = load_skill(self.store, skill_id)
        return self.synchronizer.sync_skill_to_tool(record, tool, overwrite=overwrite)

    def unsync_skill_from_tool(self, skill_id: str, tool: str) -> bool:
        """Remove a managed skill from one tool. False when it was not synced."""
        load_skill(self.store, skill_id)
        return self.synchronizer.unsync_skill_from_tool(skill_id, tool)

    # =========================================================================
    # Onboarding
    # =========================================================================

    def onboarding_plan(self) -> OnboardingPlan:
        """Find unmanaged skills in the installed tools' directories."""
        return build_onboarding_plan(self.store, self.central_root, self.home, self.adapters)

    def import_existing_skill(
        self,
        path: Path,
        name: str | None = None,
        tools: list[str] | None = None,
    ) -> InstallResult:
        """Adopt a discovered skill.

        The directory is copied into the canonical store, then every tool in
        ``tools`` has its copy replaced by the managed one.
        """
        result = self.install_local(Path(path), name)
        record = load_skill(self.store, result.skill_id)
        for tool in tools or []:
            self.synchronizer.sync_skill_to_tool(record, tool, overwrite=True)
        return result

    # =========================================================================
    # Maintenance
    # =========================================================================

    def clear_git_cache(self) -> int:
        """Delete every cached clone. Returns the number removed."""
        return self.git_cache.clear()

    def cleanup_git_cache(self) -> int:
        """Delete clones older than the configured number of days (0 = never)."""
        days = get_git_cache_cleanup_days(self.store, self.config)
        if days <= 0:
            return 0
        return self.git_cache.cleanup_older_than(days * SECONDS_PER_DAY)

    def get_setting(self, key: str) -> str | None:
        return self.store.get_setting(key)

    def set_setting(self, key: str, value: str) -> None:
        set_setting_value(self.store, key, value)


_manager: SkillManager | None = None


def get_skill_manager() -> SkillManager:
    """Get the global skill manager instance."""
    global _manager
    if _manager is None:
        _manager = SkillManager()
    return _manager


def reset_skill_manager() -> None:
    """Forget the global skill manager (tests, home changes)."""
    global _manager
    _manager = None
