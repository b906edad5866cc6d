"""
Target synchronizer for skillhub.

Keeps the registry's skill-target rows in step with what is on disk in each
tool directory. Link targets follow the canonical copy by themselves; copy
targets (and every target of a tool that cannot use links) must be re-synced
after each canonical update.
"""

from __future__ import annotations

import logging
import uuid
from pathlib import Path
from typing import TYPE_CHECKING

from skillhub.skills.clock import now_ms
from skillhub.skills.errors import SkillHubError, SkillNotFoundError, ToolNotInstalledError
from skillhub.skills.models import SkillRecord, SkillTargetRecord, SyncMode, SyncResult
from skillhub.skills.sync import remove_target, sync_dir, sync_dir_copy_with_overwrite
from skillhub.skills.tools import (
    ToolAdapter,
    adapter_by_key,
    default_tool_adapters,
    is_tool_installed,
    require_adapter,
)

if TYPE_CHECKING:
    from skillhub.registry import SkillStore

logger = logging.getLogger(__name__)


class TargetSynchronizer:
    """Propagates canonical skill directories into tool directories."""

    def __init__(
        self,
        store: SkillStore,
        home: Path | None = None,
        adapters: list[ToolAdapter] | None = None,
        prefer_copy: bool = False,
    ):
        self.store = store
        self.home = home or Path.home()
        self.adapters = adapters if adapters is not None else default_tool_adapters()
        self.prefer_copy = prefer_copy

    def mode_for(self, adapter: ToolAdapter) -> SyncMode:
        if self.prefer_copy or not adapter.supports_links:
            return SyncMode.COPY
        return SyncMode.LINK

    def sync_skill_to_tool(
        self,
        skill: SkillRecord,
        tool: str,
        overwrite: bool = False,
        name: str | None = None,
    ) -> SkillTargetRecord:
        """Propagate a skill into one tool and record the target row.

        Raises:
            UnknownToolError: If no adapter has this key.
            ToolNotInstalledError: If the tool's detection directory is missing.
            TargetExistsError: If the target exists and ``overwrite`` is False.
        """
        adapter = require_adapter(tool, self.adapters)
        if not is_tool_installed(adapter, self.home):
            raise ToolNotInstalledError(tool)

        target = adapter.skills_dir(self.home) / (name or skill.name)
        result = sync_dir(Path(skill.central_path), target, self.mode_for(adapter), overwrite)
        return self._record_success(skill.id, tool, result)

    def unsync_skill_from_tool(self, skill_id: str, tool: str) -> bool:
        """Remove a skill from one tool. Returns False when it was not synced."""
        target = self.store.get_skill_target(skill_id, tool)
        if target is None:
            return False
        path = Path(target.target_path)
        if remove_target(path):
            logger.info(f"Removed {path} from {tool}")
        self.store.delete_skill_target(skill_id, tool)
        return True

    def unsync_all(self, skill_id: str) -> list[str]:
        """Remove a skill from every tool it was propagated to."""
        removed = []
        for target in self.store.list_skill_targets(skill_id):
            if self.unsync_skill_from_tool(skill_id, target.tool):
                removed.append(target.tool)
        return removed

    def resync_copy_targets(
        self, skill_id: str, central_path: Path
    ) -> tuple[list[str], dict[str, str]]:
        """Re-copy the canonical directory to every target that needs it.

        Targets of tools that are no longer installed are skipped and their
        rows left untouched. A failing target records its error on its own
        row and does not stop the others.

        Returns:
            Tuple of (updated tool keys, {tool key: error message}).
        """
        updated: list[str] = []
        failed: dict[str, str] = {}

        for target in self.store.list_skill_targets(skill_id):
            adapter = adapter_by_key(target.tool, self.adapters)
            if adapter is not None and not is_tool_installed(adapter, self.home):
                logger.info(f"Skipping {target.tool}: tool not installed")
                continue

            link_capable = adapter is None or adapter.supports_links
            if target.mode != SyncMode.COPY.value and link_capable:
                continue

            target_path = Path(target.target_path)
            try:
                result = sync_dir_copy_with_overwrite(central_path, target_path, overwrite=True)
            except (OSError, SkillHubError) as e:
                logger.warning(f"Sync to {target.tool} failed: {e}")
                self.store.upsert_skill_target(
                    target.model_copy(update={"status": "error", "last_error": str(e)})
                )
                failed[target.tool] = str(e)
                continue

            self._record_success(skill_id, target.tool, result, existing=target)
            updated.append(target.tool)

        return updated, failed

    def _record_success(
        self,
        skill_id: str,
        tool: str,
        result: SyncResult,
        existing: SkillTargetRecord | None = None,
    ) -> SkillTargetRecord:
        if existing is None:
            existing = self.store.get_skill_target(skill_id, tool)
        record = SkillTargetRecord(
            id=existing.id if existing else str(uuid.uuid4()),
            skill_id=skill_id,
            tool=tool,
            target_path=str(result.target_path),
            mode=result.mode.value,
            status="ok",
            last_error=None,
            synced_at=now_ms(),
        )
        self.store.upsert_skill_target(record)
        return record


def load_skill(store: SkillStore, skill_id: str) -> SkillRecord:
    """Fetch a skill record or raise SkillNotFoundError."""
    record = store.get_skill_by_id(skill_id)
    if record is None:
        raise SkillNotFoundError(skill_id)
    return record
