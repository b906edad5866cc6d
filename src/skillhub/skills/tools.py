"""
Tool adapters for skillhub.

Each supported AI-assistant tool keeps its skills in a private directory
under the user's home. An adapter records where that directory is, how to
tell whether the tool is installed, and whether the tool follows symlinks.
"""

import logging
import os
from pathlib import Path

from pydantic import BaseModel

from skillhub.skills.errors import UnknownToolError
from skillhub.skills.models import DetectedSkill
from skillhub.skills.parser import SKILL_MD, try_read_skill_md
from skillhub.skills.sync import is_link

logger = logging.getLogger(__name__)


class ToolAdapter(BaseModel):
    """Where one tool keeps its skills."""

    key: str
    label: str
    relative_detect_dir: str
    relative_skills_dir: str
    supports_links: bool = True

    def detect_dir(self, home: Path) -> Path:
        return home / self.relative_detect_dir

    def skills_dir(self, home: Path) -> Path:
        return home / self.relative_skills_dir


def default_tool_adapters() -> list[ToolAdapter]:
    """The adapters skillhub knows about, in display order."""
    return [
        ToolAdapter(
            key="claude_code",
            label="Claude Code",
            relative_detect_dir=".claude",
            relative_skills_dir=".claude/skills",
        ),
        ToolAdapter(
            key="codex",
            label="Codex",
            relative_detect_dir=".codex",
            relative_skills_dir=".codex/skills",
        ),
        # Cursor does not follow symlinks or junctions in its skills directory.
        ToolAdapter(
            key="cursor",
            label="Cursor",
            relative_detect_dir=".cursor",
            relative_skills_dir=".cursor/skills",
            supports_links=False,
        ),
        ToolAdapter(
            key="gemini_cli",
            label="Gemini CLI",
            relative_detect_dir=".gemini",
            relative_skills_dir=".gemini/skills",
        ),
        ToolAdapter(
            key="opencode",
            label="OpenCode",
            relative_detect_dir=".config/opencode",
            relative_skills_dir=".config/opencode/skill",
        ),
        ToolAdapter(
            key="windsurf",
            label="Windsurf",
            relative_detect_dir=".codeium/windsurf",
            relative_skills_dir=".codeium/windsurf/skills",
        ),
    ]


def adapter_by_key(key: str, adapters: list[ToolAdapter] | None = None) -> ToolAdapter | None:
    """Find an adapter by its stable key."""
    for adapter in adapters if adapters is not None else default_tool_adapters():
        if adapter.key == key:
            return adapter
    return None


def require_adapter(key: str, adapters: list[ToolAdapter] | None = None) -> ToolAdapter:
    """Like :func:`adapter_by_key` but raises UnknownToolError."""
    adapter = adapter_by_key(key, adapters)
    if adapter is None:
        raise UnknownToolError(key)
    return adapter


def is_tool_installed(adapter: ToolAdapter, home: Path | None = None) -> bool:
    """A tool counts as installed when its detection directory exists."""
    return adapter.detect_dir(home or Path.home()).exists()


def scan_tool_dir(adapter: ToolAdapter, directory: Path) -> list[DetectedSkill]:
    """List skill-shaped subdirectories of a tool's skills directory.

    Hidden entries (``.system`` and friends) are skipped. The declared name
    comes from SKILL.md front matter when it parses, else the directory name.
    """
    if not directory.is_dir():
        return []

    detected: list[DetectedSkill] = []
    for entry in sorted(directory.iterdir()):
        if entry.name.startswith(".") or not entry.is_dir():
            continue

        linked = is_link(entry)
        link_target = None
        if linked:
            try:
                link_target = Path(os.path.realpath(entry))
            except OSError as e:
                logger.debug(f"Cannot resolve link {entry}: {e}")

        frontmatter = try_read_skill_md(entry / SKILL_MD)
        name = frontmatter.name if frontmatter else entry.name

        detected.append(
            DetectedSkill(
                tool=adapter.key,
                name=name,
                path=entry,
                is_link=linked,
                link_target=link_target,
            )
        )
    return detected
