"""
Exceptions raised by the skillhub engine.

User-input errors (missing source, existing destination, bad reference) are
raised as-is for the caller to display; nothing is retried for them.
"""

from pathlib import Path


class SkillHubError(Exception):
    """Base class for all skillhub errors."""

    pass


class SourceNotFoundError(SkillHubError):
    """A source path, repository subpath or canonical directory is missing."""

    def __init__(self, path: Path | str, what: str = "source path"):
        self.path = Path(path)
        super().__init__(f"{what} not found: {path}")


class SkillExistsError(SkillHubError):
    """The canonical destination for a new skill already exists."""

    def __init__(self, path: Path):
        self.path = path
        super().__init__(f"skill already exists in central repo: {path}")


class SkillNotFoundError(SkillHubError):
    """No registry record for the requested skill id."""

    def __init__(self, skill_id: str):
        self.skill_id = skill_id
        super().__init__(f"skill not found: {skill_id}")


class SkillInvalidError(SkillHubError):
    """A skill directory failed descriptor validation.

    ``reason`` is one of ``missing_skill_md``, ``invalid_frontmatter``,
    ``missing_name`` or ``read_failed``.
    """

    def __init__(self, reason: str, path: Path | None = None):
        self.reason = reason
        self.path = path
        super().__init__(f"invalid skill ({reason})" + (f" at {path}" if path else ""))


class MultipleSkillsError(SkillHubError):
    """A repository root holds several skills and no subpath was given."""

    def __init__(self, repo_ref: str, count: int):
        self.repo_ref = repo_ref
        self.count = count
        super().__init__(
            f"{repo_ref} contains {count} skills; pass a folder URL such as "
            "https://github.com/<owner>/<repo>/tree/<branch>/skills/<name>"
        )


class UnsupportedSourceError(SkillHubError):
    """A record's source_type cannot be updated."""

    def __init__(self, source_type: str):
        self.source_type = source_type
        super().__init__(f"unsupported source_type for update: {source_type}")


class GitFetchError(SkillHubError):
    """Cloning or fetching a repository failed."""

    pass


class TargetExistsError(SkillHubError):
    """A tool target already exists and overwriting was not requested."""

    def __init__(self, path: Path):
        self.path = path
        super().__init__(f"target already exists: {path}")


class UnknownToolError(SkillHubError):
    """No adapter is registered under the given tool key."""

    def __init__(self, tool: str):
        self.tool = tool
        super().__init__(f"unknown tool: {tool}")


class ToolNotInstalledError(SkillHubError):
    """The tool's detection directory does not exist."""

    def __init__(self, tool: str):
        self.tool = tool
        super().__init__(f"tool not installed: {tool}")
