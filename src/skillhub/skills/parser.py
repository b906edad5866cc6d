"""
Skill descriptor parsing for skillhub.

A skill bundle is identified by a SKILL.md whose first line is ``---``,
followed by front matter holding at least ``name:``, closed by a second
``---`` line. Optional richer metadata lives in skill.yaml / skill.json.
"""

import json
import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from skillhub.skills.errors import SkillInvalidError
from skillhub.skills.models import SkillFrontmatter, SkillMetadata

logger = logging.getLogger(__name__)

SKILL_MD = "SKILL.md"
METADATA_FILES = ("skill.yaml", "skill.yml", "skill.json")

# Validation reason codes
MISSING_SKILL_MD = "missing_skill_md"
INVALID_FRONTMATTER = "invalid_frontmatter"
MISSING_NAME = "missing_name"
READ_FAILED = "read_failed"


def split_frontmatter(content: str) -> tuple[str, str] | None:
    """Split a markdown document into (front matter text, body).

    Returns:
        None when the opening or closing ``---`` marker is missing.
    """
    lines = content.splitlines()
    if not lines or lines[0].strip() != "---":
        return None

    for i, line in enumerate(lines[1:], start=1):
        if line.strip() == "---":
            return "\n".join(lines[1:i]), "\n".join(lines[i + 1 :]).strip()

    return None


def _scan_fields(text: str) -> dict[str, Any]:
    # Front matter that is not valid YAML (e.g. an unquoted colon inside a
    # description) is still read line by line.
    fields: dict[str, Any] = {}
    for line in text.splitlines():
        stripped = line.strip()
        for key in ("name", "description"):
            prefix = f"{key}:"
            if stripped.startswith(prefix):
                fields[key] = stripped[len(prefix) :].strip().strip('"').strip("'")
    return fields


def parse_frontmatter(content: str, path: Path | None = None) -> SkillFrontmatter:
    """Parse the front matter of a SKILL.md document.

    Raises:
        SkillInvalidError: ``invalid_frontmatter`` when a marker is missing,
            ``missing_name`` when there is no non-empty ``name``.
    """
    parts = split_frontmatter(content)
    if parts is None:
        raise SkillInvalidError(INVALID_FRONTMATTER, path)
    text, _body = parts

    try:
        data = yaml.safe_load(text) if text.strip() else {}
    except yaml.YAMLError:
        data = None
    if not isinstance(data, dict):
        data = _scan_fields(text)

    name = data.get("name")
    if name is None or not str(name).strip():
        raise SkillInvalidError(MISSING_NAME, path)

    description = data.get("description")
    return SkillFrontmatter(
        name=str(name).strip(),
        description=str(description).strip() if description is not None else None,
    )


def read_skill_md(path: Path) -> SkillFrontmatter:
    """Read and parse a SKILL.md file.

    Raises:
        SkillInvalidError: With ``read_failed`` when the file cannot be read,
            otherwise as :func:`parse_frontmatter`.
    """
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise SkillInvalidError(READ_FAILED, path) from e
    return parse_frontmatter(content, path)


def try_read_skill_md(path: Path) -> SkillFrontmatter | None:
    """Best-effort variant of :func:`read_skill_md`; logs and returns None."""
    try:
        return read_skill_md(path)
    except SkillInvalidError as e:
        logger.debug(f"Ignoring SKILL.md at {path}: {e.reason}")
        return None


def validate_skill_dir(skill_dir: Path) -> SkillFrontmatter:
    """Validate that a directory is a skill bundle.

    Raises:
        SkillInvalidError: ``missing_skill_md`` or any descriptor reason.
    """
    skill_md = skill_dir / SKILL_MD
    if not skill_md.is_file():
        raise SkillInvalidError(MISSING_SKILL_MD, skill_dir)
    return read_skill_md(skill_md)


def _load_metadata_file(path: Path) -> SkillMetadata | None:
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(f"Failed to read {path.name} at {path}: {e}")
        return None

    try:
        if path.suffix == ".json":
            data = json.loads(content)
        else:
            data = yaml.safe_load(content)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        logger.warning(f"Failed to parse {path.name} at {path}: {e}")
        return None

    if not isinstance(data, dict):
        logger.warning(f"Failed to parse {path.name} at {path}: expected a mapping")
        return None

    try:
        return SkillMetadata.model_validate(data)
    except ValidationError as e:
        logger.warning(f"Invalid metadata in {path}: {e}")
        return None


def load_skill_metadata(skill_dir: Path) -> SkillMetadata | None:
    """Load skill.yaml, skill.yml or skill.json (first one present wins).

    Returns:
        Parsed metadata, or None when no descriptor exists or it is invalid.
    """
    for filename in METADATA_FILES:
        path = skill_dir / filename
        if path.exists():
            return _load_metadata_file(path)
    return None
