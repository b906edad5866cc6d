"""
Unit tests for SkillManager and registry-backed settings.
"""

import os
import time
from pathlib import Path

import pytest

from skillhub.config import Config
from skillhub.skills.errors import SkillNotFoundError
from skillhub.skills.manager import SkillManager
from skillhub.skills.settings import (
    CENTRAL_REPO_PATH,
    GIT_CACHE_CLEANUP_DAYS,
    GIT_CACHE_TTL_SECS,
    get_git_cache_cleanup_days,
    get_git_cache_ttl_secs,
    resolve_central_repo_path,
    set_setting_value,
)


@pytest.fixture
def config(central_root: Path) -> Config:
    return Config.model_validate({"skills": {"central_repo": str(central_root)}})


@pytest.fixture
def manager(store, git_cache, config, fake_home) -> SkillManager:
    return SkillManager(store=store, git_cache=git_cache, config=config, home=fake_home)


class TestSettings:
    """Tests for settings resolution and validation."""

    def test_central_repo_precedence(self, store, temp_dir, isolated_skillhub):
        assert resolve_central_repo_path(store, Config()) == isolated_skillhub / "skills"

        configured = Config.model_validate({"skills": {"central_repo": str(temp_dir / "cfg")}})
        assert resolve_central_repo_path(store, configured) == temp_dir / "cfg"

        set_setting_value(store, CENTRAL_REPO_PATH, str(temp_dir / "stored"))
        assert resolve_central_repo_path(store, configured) == temp_dir / "stored"

    def test_ttl_setting_overrides_config(self, store):
        assert get_git_cache_ttl_secs(store, Config()) == 60
        set_setting_value(store, GIT_CACHE_TTL_SECS, "0")
        assert get_git_cache_ttl_secs(store, Config()) == 0

    def test_garbage_stored_value_falls_back(self, store):
        store.set_setting(GIT_CACHE_CLEANUP_DAYS, "weekly")
        assert get_git_cache_cleanup_days(store, Config()) == 30

    def test_unknown_key(self, store):
        with pytest.raises(ValueError):
            set_setting_value(store, "colour", "blue")

    def test_non_integer_value(self, store):
        with pytest.raises(ValueError):
            set_setting_value(store, GIT_CACHE_TTL_SECS, "soon")
        assert store.get_setting(GIT_CACHE_TTL_SECS) is None


class TestSkillManager:
    """Tests for the SkillManager facade."""

    def test_get_skill_by_id_or_name(self, manager, temp_dir, make_skill):
        result = manager.install_local(make_skill(temp_dir / "src" / "pdf", "pdf"))

        assert manager.get_skill(result.skill_id).name == "pdf"
        assert manager.get_skill("pdf").id == result.skill_id
        with pytest.raises(SkillNotFoundError):
            manager.get_skill("nope")

    def test_central_root_follows_setting(self, manager, temp_dir, central_root):
        assert manager.central_root == central_root
        manager.set_setting(CENTRAL_REPO_PATH, str(temp_dir / "moved"))
        assert manager.central_root == temp_dir / "moved"
        assert manager.installer.central_root == temp_dir / "moved"

    def test_installer_uses_ttl_setting(self, manager):
        manager.set_setting(GIT_CACHE_TTL_SECS, "5")
        assert manager.installer.ttl_secs == 5

    def test_tool_status(self, manager, fake_home):
        (fake_home / ".codex").mkdir()
        status = {adapter.key: installed for adapter, installed in manager.tool_status()}
        assert status["codex"] is True
        assert status["cursor"] is False

    def test_delete_managed_skill(self, manager, store, temp_dir, make_skill, fake_home):
        (fake_home / ".claude").mkdir()
        (fake_home / ".cursor").mkdir()
        result = manager.install_local(make_skill(temp_dir / "src" / "pdf", "pdf"))
        manager.sync_skill_to_tool(result.skill_id, "claude_code")
        manager.sync_skill_to_tool(result.skill_id, "cursor")

        removed = manager.delete_managed_skill(result.skill_id)

        assert sorted(removed) == ["claude_code", "cursor"]
        assert not os.path.lexists(fake_home / ".claude" / "skills" / "pdf")
        assert not (fake_home / ".cursor" / "skills" / "pdf").exists()
        assert not result.central_path.exists()
        assert store.get_skill_by_id(result.skill_id) is None

    def test_delete_unknown_skill(self, manager):
        with pytest.raises(SkillNotFoundError):
            manager.delete_managed_skill("nope")

    def test_unsync_not_synced(self, manager, temp_dir, make_skill):
        result = manager.install_local(make_skill(temp_dir / "src" / "pdf", "pdf"))
        assert manager.unsync_skill_from_tool(result.skill_id, "codex") is False

    def test_import_existing_skill(self, manager, store, make_skill, fake_home):
        (fake_home / ".claude").mkdir()
        existing = make_skill(fake_home / ".cursor" / "skills" / "notes", "notes")
        assert manager.onboarding_plan().total_skills_found == 1

        result = manager.import_existing_skill(existing, tools=["cursor", "claude_code"])

        targets = {t.tool: t for t in store.list_skill_targets(result.skill_id)}
        assert targets["cursor"].mode == "copy"
        assert targets["claude_code"].mode == "link"
        assert (existing / "SKILL.md").exists()
        assert manager.onboarding_plan().groups == []

    def test_cleanup_git_cache(self, manager, git_cache):
        stale = git_cache.cache_root / "stale-clone"
        stale.mkdir(parents=True)
        long_ago = time.time() - 10 * 24 * 60 * 60
        os.utime(stale, (long_ago, long_ago))
        fresh = git_cache.cache_root / "fresh-clone"
        fresh.mkdir()

        manager.set_setting(GIT_CACHE_CLEANUP_DAYS, "0")
        assert manager.cleanup_git_cache() == 0

        manager.set_setting(GIT_CACHE_CLEANUP_DAYS, "7")
        assert manager.cleanup_git_cache() == 1
        assert not stale.exists()
        assert fresh.exists()

    def test_clear_git_cache(self, manager, git_cache):
        (git_cache.cache_root / "one").mkdir(parents=True)
        (git_cache.cache_root / "two").mkdir()
        assert manager.clear_git_cache() == 2
