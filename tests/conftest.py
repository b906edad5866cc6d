"""
Pytest configuration and fixtures for skillhub tests.
"""

import shutil
import tempfile
from collections.abc import Callable, Generator
from pathlib import Path

import pytest
from typer.testing import CliRunner

from skillhub.config import clear_config_cache
from skillhub.registry import SkillStore
from skillhub.skills.errors import GitFetchError
from skillhub.skills.git_cache import GitCache, reset_git_cache
from skillhub.skills.manager import reset_skill_manager

SKILL_MD_TEMPLATE = """---
name: {name}
description: {description}
---

# {name}

Instructions for {name}.
"""


class FakeFetcher:
    """In-memory stand-in for the git fetch capability.

    Every fetch rewrites ``local_dir`` from ``files`` and marks it as a clone
    with an empty ``.git`` directory.
    """

    def __init__(self, files: dict[str, str] | None = None, revision: str = "rev-1"):
        self.files = dict(files or {})
        self.revision = revision
        self.calls: list[tuple[str, Path, str | None]] = []
        self.failures = 0

    def clone_or_pull(self, clone_url: str, local_dir: Path, branch: str | None) -> str:
        self.calls.append((clone_url, local_dir, branch))
        if self.failures:
            self.failures -= 1
            local_dir.mkdir(parents=True, exist_ok=True)
            (local_dir / "half-written").write_text("partial")
            raise GitFetchError(f"network down for {clone_url}")

        if local_dir.exists():
            shutil.rmtree(local_dir)
        (local_dir / ".git").mkdir(parents=True)
        for relative, content in self.files.items():
            path = local_dir / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)
        return self.revision


def write_skill_dir(
    path: Path,
    name: str,
    description: str = "A test skill",
    files: dict[str, str] | None = None,
) -> Path:
    """Create a skill bundle at ``path``."""
    path.mkdir(parents=True, exist_ok=True)
    (path / "SKILL.md").write_text(SKILL_MD_TEMPLATE.format(name=name, description=description))
    for relative, content in (files or {}).items():
        file_path = path / relative
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(content)
    return path


def skill_md(name: str, description: str = "A test skill") -> str:
    return SKILL_MD_TEMPLATE.format(name=name, description=description)


@pytest.fixture(autouse=True)
def isolated_skillhub(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[Path, None, None]:
    """Point SKILLHUB_HOME and HOME at scratch directories for every test."""
    skillhub_home = tmp_path / "skillhub-home"
    user_home = tmp_path / "user-home"
    user_home.mkdir()
    monkeypatch.setenv("SKILLHUB_HOME", str(skillhub_home))
    monkeypatch.setenv("HOME", str(user_home))
    for var in ("SKILLHUB_DEBUG", "SKILLHUB_COMPUTE_HASH"):
        monkeypatch.delenv(var, raising=False)

    clear_config_cache()
    reset_git_cache()
    reset_skill_manager()
    yield skillhub_home
    clear_config_cache()
    reset_git_cache()
    reset_skill_manager()


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Typer CLI test runner."""
    return CliRunner()


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def fake_home(temp_dir: Path) -> Path:
    """A home directory for tool adapters to scan."""
    home = temp_dir / "home"
    home.mkdir()
    return home


@pytest.fixture
def central_root(temp_dir: Path) -> Path:
    return temp_dir / "central"


@pytest.fixture
def store(temp_dir: Path) -> SkillStore:
    """Provide a registry backed by a scratch SQLite file."""
    skill_store = SkillStore(temp_dir / "registry.db")
    skill_store.ensure_schema()
    return skill_store


@pytest.fixture
def fake_fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture
def git_cache(temp_dir: Path, fake_fetcher: FakeFetcher) -> GitCache:
    """Git cache using the fake fetcher and a controllable clock."""
    return GitCache(temp_dir / "git-cache", fetcher=fake_fetcher, ttl_secs=60)


@pytest.fixture
def make_skill() -> Callable[..., Path]:
    """Factory that writes a skill bundle to disk."""
    return write_skill_dir


@pytest.fixture
def sample_skill_md() -> str:
    """Provide sample SKILL.md content."""
    return skill_md("test-skill", "A test skill for unit tests")
