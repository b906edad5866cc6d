"""
Unit tests for installing skills into the canonical store.
"""

from pathlib import Path

import pytest
from git import Actor, Repo

from skillhub.skills.errors import (
    MultipleSkillsError,
    SkillExistsError,
    SkillInvalidError,
    SourceNotFoundError,
)
from skillhub.skills.installer import (
    SkillInstaller,
    detect_git_origin,
    should_compute_content_hash,
)
from skillhub.skills.models import SourceType
from skillhub.skills.parser import INVALID_FRONTMATTER, MISSING_SKILL_MD

SKILL_A = "---\nname: alpha\ndescription: First\n---\n"
SKILL_B = "---\nname: beta\ndescription: Second\n---\n"


@pytest.fixture
def installer(store, git_cache, central_root) -> SkillInstaller:
    return SkillInstaller(store, git_cache, central_root)


def _leftovers(root: Path) -> list[str]:
    return [p.name for p in root.iterdir() if p.name.startswith(".skillhub-")]


class TestInstallLocal:
    """Tests for install_local."""

    def test_copies_tree_and_records(self, installer, store, temp_dir, make_skill, central_root):
        source = make_skill(temp_dir / "src" / "pdf", "pdf", files={".hidden": "h", "lib/a.py": "a"})

        result = installer.install_local(source)

        assert result.name == "pdf"
        assert result.central_path == central_root / "pdf"
        assert (central_root / "pdf" / ".hidden").read_text() == "h"
        assert (central_root / "pdf" / "lib" / "a.py").read_text() == "a"
        assert _leftovers(central_root) == []

        record = store.get_skill_by_id(result.skill_id)
        assert record.source_type == SourceType.LOCAL.value
        assert record.source_ref == str(source)
        assert record.source_revision is None
        assert record.created_at == record.updated_at == record.last_seen_at

    def test_custom_name(self, installer, temp_dir, make_skill, central_root):
        source = make_skill(temp_dir / "src" / "pdf", "pdf")
        result = installer.install_local(source, "documents")
        assert result.central_path == central_root / "documents"

    def test_missing_source(self, installer, temp_dir):
        with pytest.raises(SourceNotFoundError):
            installer.install_local(temp_dir / "nope")

    def test_existing_destination_untouched(self, installer, store, temp_dir, make_skill, central_root):
        existing = central_root / "pdf"
        existing.mkdir(parents=True)
        (existing / "keep.txt").write_text("original")
        source = make_skill(temp_dir / "src" / "pdf", "pdf")

        with pytest.raises(SkillExistsError):
            installer.install_local(source)

        assert [p.name for p in existing.iterdir()] == ["keep.txt"]
        assert (existing / "keep.txt").read_text() == "original"
        assert store.list_skills() == []
        assert _leftovers(central_root) == []

    def test_metadata_loaded(self, installer, temp_dir, make_skill, store):
        source = make_skill(temp_dir / "pdf", "pdf", files={"skill.yaml": "name: pdf\nversion: 2.0.0\n"})
        result = installer.install_local(source)
        assert store.get_skill_by_id(result.skill_id).metadata.version == "2.0.0"

    def test_hash_only_when_enabled(self, installer, temp_dir, make_skill, monkeypatch):
        first = installer.install_local(make_skill(temp_dir / "one", "one"))
        assert first.content_hash is None

        monkeypatch.setenv("SKILLHUB_COMPUTE_HASH", "true")
        second = installer.install_local(make_skill(temp_dir / "two", "two"))
        assert second.content_hash is not None and len(second.content_hash) == 64


class TestHashPolicy:
    """Tests for should_compute_content_hash."""

    def test_default_off(self):
        assert not should_compute_content_hash()

    @pytest.mark.parametrize("value", ["1", "true", "TRUE"])
    def test_opt_in(self, monkeypatch, value):
        monkeypatch.setenv("SKILLHUB_COMPUTE_HASH", value)
        assert should_compute_content_hash()

    def test_opt_in_requires_exact_values(self, monkeypatch):
        monkeypatch.setenv("SKILLHUB_COMPUTE_HASH", "maybe")
        assert not should_compute_content_hash()

    def test_debug_build(self, monkeypatch):
        monkeypatch.setenv("SKILLHUB_DEBUG", "1")
        assert should_compute_content_hash()

    def test_config_flag(self):
        assert should_compute_content_hash(config_flag=True)


class TestDetectGitOrigin:
    """Tests for detect_git_origin."""

    def test_plain_directory(self, temp_dir):
        assert detect_git_origin(temp_dir) == (SourceType.LOCAL, str(temp_dir), None)

    def test_checkout_with_origin(self, temp_dir, make_skill):
        source = make_skill(temp_dir / "checkout", "pdf")
        repo = Repo.init(source)
        repo.index.add(["SKILL.md"])
        actor = Actor("Test", "test@example.com")
        commit = repo.index.commit("init", author=actor, committer=actor)
        repo.create_remote("origin", "https://github.com/owner/pdf.git")

        source_type, ref, revision = detect_git_origin(source)

        assert source_type == SourceType.GIT
        assert ref == "https://github.com/owner/pdf.git"
        assert revision == commit.hexsha

    def test_checkout_without_origin(self, temp_dir, make_skill):
        source = make_skill(temp_dir / "checkout", "pdf")
        Repo.init(source)
        assert detect_git_origin(source)[0] == SourceType.LOCAL

    def test_symlinked_checkout(self, temp_dir, make_skill):
        source = make_skill(temp_dir / "checkout", "pdf")
        repo = Repo.init(source)
        repo.create_remote("origin", "https://github.com/owner/pdf.git")
        link = temp_dir / "link"
        link.symlink_to(source, target_is_directory=True)

        source_type, ref, revision = detect_git_origin(link)
        assert source_type == SourceType.GIT
        assert ref == "https://github.com/owner/pdf.git"
        assert revision is None


class TestInstallGit:
    """Tests for install_git and install_git_selection."""

    def test_single_skill_repo(self, installer, fake_fetcher, store, central_root):
        fake_fetcher.files = {"SKILL.md": SKILL_A, "README.md": "readme"}

        result = installer.install_git("owner/alpha")

        assert result.name == "alpha"
        assert (central_root / "alpha" / "README.md").exists()
        assert not (central_root / "alpha" / ".git").exists()
        record = store.get_skill_by_id(result.skill_id)
        assert record.source_type == "git"
        assert record.source_ref == "owner/alpha"
        assert record.source_revision == "rev-1"
        assert fake_fetcher.calls[0][0] == "https://github.com/owner/alpha.git"

    def test_multi_skill_repo_requires_subpath(self, installer, fake_fetcher, central_root):
        fake_fetcher.files = {"skills/alpha/SKILL.md": SKILL_A, "skills/beta/SKILL.md": SKILL_B}

        with pytest.raises(MultipleSkillsError) as exc_info:
            installer.install_git("owner/repo")

        assert exc_info.value.count == 2
        assert not (central_root / "repo").exists()

    def test_folder_url(self, installer, fake_fetcher, store, central_root):
        fake_fetcher.files = {"skills/alpha/SKILL.md": SKILL_A, "skills/beta/SKILL.md": SKILL_B}
        ref = "https://github.com/owner/repo/tree/main/skills/beta"

        result = installer.install_git(ref)

        assert result.name == "beta"
        assert (central_root / "beta" / "SKILL.md").read_text() == SKILL_B
        assert fake_fetcher.calls[0][2] == "main"
        assert store.get_skill_by_id(result.skill_id).source_ref == ref

    def test_missing_subpath(self, installer, fake_fetcher):
        fake_fetcher.files = {"SKILL.md": SKILL_A}
        with pytest.raises(SourceNotFoundError):
            installer.install_git("owner/repo/tree/main/skills/nope")

    def test_selection_records_folder_url(self, installer, fake_fetcher, store, central_root):
        fake_fetcher.files = {"skills/alpha/SKILL.md": SKILL_A, "skills/beta/SKILL.md": SKILL_B}

        result = installer.install_git_selection(
            "https://github.com/owner/repo/tree/main", "skills/alpha"
        )

        assert result.name == "alpha"
        record = store.get_skill_by_id(result.skill_id)
        assert record.source_ref == "https://github.com/owner/repo/tree/main/skills/alpha"

    def test_selection_shares_the_cached_clone(self, installer, fake_fetcher):
        fake_fetcher.files = {"skills/alpha/SKILL.md": SKILL_A, "skills/beta/SKILL.md": SKILL_B}

        installer.list_git_skills("owner/repo")
        installer.install_git_selection("owner/repo", "skills/alpha")
        installer.install_git_selection("owner/repo", "skills/beta")

        assert len(fake_fetcher.calls) == 1


class TestCandidates:
    """Tests for list_git_skills and list_local_skills."""

    def test_git_candidates(self, installer, fake_fetcher):
        fake_fetcher.files = {
            "skills/beta/SKILL.md": SKILL_B,
            "skills/alpha/SKILL.md": SKILL_A,
            "skills/.curated/gamma/SKILL.md": "---\nname: gamma\n---\n",
            "skills/broken/SKILL.md": "no front matter",
            "docs/readme.md": "docs",
        }

        found = installer.list_git_skills("owner/repo")

        assert [c.name for c in found] == ["alpha", "beta", "gamma"]
        assert [c.subpath for c in found] == [
            "skills/alpha",
            "skills/beta",
            "skills/.curated/gamma",
        ]

    def test_local_candidates_report_reasons(self, installer, temp_dir, make_skill):
        base = temp_dir / "repo"
        make_skill(base, "root-skill")
        make_skill(base / "skills" / "alpha", "alpha")
        (base / "skills" / "empty").mkdir(parents=True)
        (base / "skills" / "broken").mkdir()
        (base / "skills" / "broken" / "SKILL.md").write_text("# no front matter")

        found = {c.subpath: c for c in installer.list_local_skills(base)}

        assert found["."].valid and found["."].name == "root-skill"
        assert found["skills/alpha"].valid
        assert found["skills/empty"].reason == MISSING_SKILL_MD
        assert found["skills/broken"].reason == INVALID_FRONTMATTER

    def test_local_selection(self, installer, temp_dir, make_skill, central_root):
        base = temp_dir / "repo"
        make_skill(base / "skills" / "alpha", "alpha-skill")

        result = installer.install_local_selection(base, "skills/alpha")

        assert result.name == "alpha-skill"
        assert (central_root / "alpha-skill" / "SKILL.md").exists()

    def test_local_selection_invalid(self, installer, temp_dir):
        base = temp_dir / "repo"
        (base / "skills" / "empty").mkdir(parents=True)

        with pytest.raises(SkillInvalidError) as exc_info:
            installer.install_local_selection(base, "skills/empty")
        assert exc_info.value.reason == MISSING_SKILL_MD
