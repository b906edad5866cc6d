"""
Discovery of skills that already live in tool directories.

Scans every installed tool's skills directory, drops what skillhub already
manages, and groups the rest by declared name. Copies of the same skill whose
content differs between tools are flagged as conflicting so the user can pick
one before importing.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from skillhub.skills.fingerprint import try_hash_dir
from skillhub.skills.models import DetectedSkill, OnboardingGroup, OnboardingPlan, OnboardingVariant
from skillhub.skills.tools import ToolAdapter, default_tool_adapters, is_tool_installed, scan_tool_dir

if TYPE_CHECKING:
    from skillhub.registry import SkillStore

logger = logging.getLogger(__name__)

# Filesystems that ignore case by default.
CASE_INSENSITIVE_PLATFORMS = ("win32", "darwin")


def normalize_path_for_key(path: Path | str) -> str:
    """Collapse ``.``/``..`` and separators; fold case where the filesystem does."""
    normalized = os.path.normpath(str(path))
    if sys.platform in CASE_INSENSITIVE_PLATFORMS:
        normalized = normalized.lower()
    return normalized


def managed_target_key(tool: str, path: Path | str) -> str:
    """Key identifying a registered (tool, target path) pair."""
    return f"{tool.lower()}\n{normalize_path_for_key(path)}"


def _is_under(path: Path, root: Path) -> bool:
    path_key = normalize_path_for_key(path)
    for base in {normalize_path_for_key(root), normalize_path_for_key(os.path.realpath(root))}:
        if path_key == base or path_key.startswith(base.rstrip(os.sep) + os.sep):
            return True
    return False


def _is_excluded(
    skill: DetectedSkill,
    exclude_root: Path | None,
    managed_targets: set[str] | None,
) -> bool:
    if exclude_root is not None:
        if _is_under(skill.path, exclude_root):
            return True
        # A linked skills directory or parent puts the real path elsewhere.
        if _is_under(Path(os.path.realpath(skill.path)), exclude_root):
            return True
        if skill.link_target is not None and _is_under(skill.link_target, exclude_root):
            return True
    if managed_targets and managed_target_key(skill.tool, skill.path) in managed_targets:
        return True
    return False


def build_onboarding_plan_in_home(
    home: Path,
    exclude_root: Path | None = None,
    managed_targets: set[str] | None = None,
    managed_names: set[str] | None = None,
    adapters: list[ToolAdapter] | None = None,
) -> OnboardingPlan:
    """Scan the tool directories under ``home``.

    Args:
        home: Home directory holding the tools' dot-directories.
        exclude_root: Canonical store root; copies inside it (or links into
            it) are skillhub's own propagated targets.
        managed_targets: Keys from :func:`managed_target_key` of registered
            targets.
        managed_names: Names of skills already in the registry.
        adapters: Tool adapters to scan (default: all known tools).

    Returns:
        Plan with one group per declared name, sorted by name.
    """
    adapters = adapters if adapters is not None else default_tool_adapters()
    managed_names = managed_names or set()

    scanned = 0
    grouped: dict[str, list[OnboardingVariant]] = {}

    for adapter in adapters:
        if not is_tool_installed(adapter, home):
            continue
        scanned += 1

        for skill in scan_tool_dir(adapter, adapter.skills_dir(home)):
            if _is_excluded(skill, exclude_root, managed_targets):
                logger.debug(f"Skipping managed copy {skill.path}")
                continue
            if skill.name in managed_names:
                continue

            grouped.setdefault(skill.name, []).append(
                OnboardingVariant(
                    tool=skill.tool,
                    name=skill.name,
                    path=skill.path,
                    fingerprint=try_hash_dir(skill.path),
                    is_link=skill.is_link,
                    link_target=skill.link_target,
                )
            )

    groups = []
    for name in sorted(grouped):
        variants = grouped[name]
        distinct = {v.fingerprint for v in variants if v.fingerprint}
        # No fingerprint at all counts as a single version.
        groups.append(
            OnboardingGroup(name=name, variants=variants, has_conflict=max(len(distinct), 1) > 1)
        )

    return OnboardingPlan(
        total_tools_scanned=scanned,
        total_skills_found=sum(len(g.variants) for g in groups),
        groups=groups,
    )


def build_onboarding_plan(
    store: SkillStore,
    central_root: Path,
    home: Path | None = None,
    adapters: list[ToolAdapter] | None = None,
) -> OnboardingPlan:
    """Scan the user's tool directories, excluding everything the registry manages."""
    managed_targets = {
        managed_target_key(tool, path) for tool, path in store.list_all_skill_target_paths()
    }
    managed_names = {skill.name for skill in store.list_skills()}
    return build_onboarding_plan_in_home(
        home or Path.home(),
        exclude_root=central_root,
        managed_targets=managed_targets,
        managed_names=managed_names,
        adapters=adapters,
    )
