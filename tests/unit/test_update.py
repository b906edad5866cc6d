"""
Unit tests for refreshing canonical copies and propagating them to tools.
"""

import errno
import os
from pathlib import Path

import pytest

from skillhub.skills.clock import now_ms
from skillhub.skills.errors import (
    SkillHubError,
    SkillNotFoundError,
    SourceNotFoundError,
    UnsupportedSourceError,
)
from skillhub.skills.installer import SkillInstaller, SwapOutcome, move_into_place, swap_directory
from skillhub.skills.models import SkillRecord, SyncMode
from skillhub.skills.targets import TargetSynchronizer

SKILL_V1 = "---\nname: alpha\n---\nversion one\n"
SKILL_V2 = "---\nname: alpha\n---\nversion two\n"


@pytest.fixture
def synchronizer(store, fake_home) -> TargetSynchronizer:
    for tool_dir in (".claude", ".cursor", ".codex"):
        (fake_home / tool_dir).mkdir()
    return TargetSynchronizer(store, fake_home)


@pytest.fixture
def installer(store, git_cache, central_root, synchronizer) -> SkillInstaller:
    return SkillInstaller(store, git_cache, central_root, synchronizer=synchronizer, ttl_secs=0)


@pytest.fixture
def local_skill(installer, temp_dir, make_skill):
    source = make_skill(temp_dir / "src" / "alpha", "alpha", files={"notes.txt": "v1"})
    result = installer.install_local(source)
    return source, result


def _fail_rename(*args, **kwargs):
    raise OSError(errno.EXDEV, "Invalid cross-device link")


class TestSwap:
    """Tests for the staged move helpers."""

    def test_rename_path(self, temp_dir):
        staging = temp_dir / "staging"
        staging.mkdir()
        (staging / "a.txt").write_text("new")

        assert move_into_place(staging, temp_dir / "dest") == SwapOutcome.RENAMED
        assert (temp_dir / "dest" / "a.txt").read_text() == "new"
        assert not staging.exists()

    def test_copy_fallback_when_rename_fails(self, temp_dir, monkeypatch):
        staging = temp_dir / "staging"
        (staging / "sub").mkdir(parents=True)
        (staging / "sub" / "a.txt").write_text("new")
        monkeypatch.setattr("skillhub.skills.installer.os.rename", _fail_rename)

        assert move_into_place(staging, temp_dir / "dest") == SwapOutcome.COPIED
        assert (temp_dir / "dest" / "sub" / "a.txt").read_text() == "new"
        assert not staging.exists()

    def test_swap_replaces_whole_directory(self, temp_dir):
        dest = temp_dir / "dest"
        dest.mkdir()
        (dest / "old.txt").write_text("old")
        staging = temp_dir / "staging"
        staging.mkdir()
        (staging / "new.txt").write_text("new")

        swap_directory(staging, dest)

        assert sorted(p.name for p in dest.iterdir()) == ["new.txt"]
        assert sorted(p.name for p in temp_dir.iterdir()) == ["dest"]

    def test_swap_restores_old_content_when_move_fails(self, temp_dir, monkeypatch):
        dest = temp_dir / "dest"
        dest.mkdir()
        (dest / "old.txt").write_text("old")
        staging = temp_dir / "staging"
        staging.mkdir()

        def fail_everything(staging_dir, destination):
            raise SkillHubError("disk full")

        monkeypatch.setattr("skillhub.skills.installer.move_into_place", fail_everything)

        with pytest.raises(SkillHubError):
            swap_directory(staging, dest)
        assert (dest / "old.txt").read_text() == "old"


class TestUpdate:
    """Tests for SkillInstaller.update."""

    def test_local_update_refreshes_content(self, installer, store, local_skill, central_root):
        source, result = local_skill
        (source / "notes.txt").write_text("v2")
        (source / "added.txt").write_text("new file")
        before = store.get_skill_by_id(result.skill_id)

        update = installer.update(result.skill_id)

        canonical = central_root / "alpha"
        assert update.central_path == canonical
        assert (canonical / "notes.txt").read_text() == "v2"
        assert (canonical / "added.txt").exists()
        assert sorted(p.name for p in central_root.iterdir()) == ["alpha"]

        after = store.get_skill_by_id(result.skill_id)
        assert after.updated_at >= before.updated_at
        assert after.created_at == before.created_at

    def test_removed_files_disappear(self, installer, local_skill, central_root):
        source, result = local_skill
        (source / "notes.txt").unlink()
        installer.update(result.skill_id)
        assert not (central_root / "alpha" / "notes.txt").exists()

    def test_update_with_copy_fallback(self, installer, local_skill, central_root, monkeypatch):
        source, result = local_skill
        (source / "notes.txt").write_text("v2")
        monkeypatch.setattr("skillhub.skills.installer.os.rename", _fail_rename)

        installer.update(result.skill_id)

        assert (central_root / "alpha" / "notes.txt").read_text() == "v2"
        assert sorted(p.name for p in central_root.iterdir()) == ["alpha"]

    def test_git_update_tracks_revision(self, installer, fake_fetcher, store, central_root):
        fake_fetcher.files = {"SKILL.md": SKILL_V1}
        result = installer.install_git("owner/alpha")

        fake_fetcher.files = {"SKILL.md": SKILL_V2}
        fake_fetcher.revision = "rev-2"
        update = installer.update(result.skill_id)

        assert update.source_revision == "rev-2"
        assert "version two" in (central_root / "alpha" / "SKILL.md").read_text()
        assert store.get_skill_by_id(result.skill_id).source_revision == "rev-2"

    def test_local_update_keeps_revision(self, installer, store, local_skill):
        _, result = local_skill
        record = store.get_skill_by_id(result.skill_id)
        store.upsert_skill(record.model_copy(update={"source_revision": "pinned"}))

        assert installer.update(result.skill_id).source_revision == "pinned"

    def test_unknown_skill(self, installer):
        with pytest.raises(SkillNotFoundError):
            installer.update("missing-id")

    def test_missing_canonical_dir(self, installer, local_skill, central_root):
        _, result = local_skill
        (central_root / "alpha" / "SKILL.md").unlink()
        (central_root / "alpha" / "notes.txt").unlink()
        (central_root / "alpha").rmdir()

        with pytest.raises(SourceNotFoundError):
            installer.update(result.skill_id)

    def test_unsupported_source_mutates_nothing(self, installer, store, central_root):
        canonical = central_root / "legacy"
        canonical.mkdir(parents=True)
        (canonical / "keep.txt").write_text("keep")
        now = now_ms()
        store.upsert_skill(
            SkillRecord(
                id="legacy-id",
                name="legacy",
                source_type="svn",
                source_ref="svn://example/legacy",
                central_path=str(canonical),
                created_at=now,
                updated_at=now,
                last_seen_at=now,
            )
        )

        with pytest.raises(UnsupportedSourceError):
            installer.update("legacy-id")

        assert (canonical / "keep.txt").read_text() == "keep"
        assert store.get_skill_by_id("legacy-id").updated_at == now

    def test_missing_local_source_leaves_canonical(self, installer, local_skill, central_root):
        source, result = local_skill
        for path in source.iterdir():
            path.unlink()
        source.rmdir()

        with pytest.raises(SourceNotFoundError):
            installer.update(result.skill_id)

        assert (central_root / "alpha" / "notes.txt").read_text() == "v1"
        assert sorted(p.name for p in central_root.iterdir()) == ["alpha"]


class TestTargetPropagation:
    """Tests for re-syncing targets after an update."""

    def test_copy_targets_resynced_link_targets_skipped(
        self, installer, synchronizer, store, local_skill, fake_home
    ):
        source, result = local_skill
        record = store.get_skill_by_id(result.skill_id)
        cursor = synchronizer.sync_skill_to_tool(record, "cursor")
        claude = synchronizer.sync_skill_to_tool(record, "claude_code")
        assert cursor.mode == SyncMode.COPY.value
        assert claude.mode == SyncMode.LINK.value

        (source / "notes.txt").write_text("v2")
        update = installer.update(result.skill_id)

        assert update.updated_targets == ["cursor"]
        assert update.failed_targets == {}
        assert (fake_home / ".cursor" / "skills" / "alpha" / "notes.txt").read_text() == "v2"
        assert (fake_home / ".claude" / "skills" / "alpha" / "notes.txt").read_text() == "v2"

    def test_failing_target_is_isolated(
        self, installer, synchronizer, store, local_skill, fake_home, monkeypatch
    ):
        source, result = local_skill
        synchronizer.prefer_copy = True
        record = store.get_skill_by_id(result.skill_id)
        synchronizer.sync_skill_to_tool(record, "codex")
        synchronizer.sync_skill_to_tool(record, "cursor")

        from skillhub.skills import targets

        real_sync = targets.sync_dir_copy_with_overwrite

        def flaky_sync(source_dir: Path, target: Path, overwrite: bool = True):
            if ".cursor" in str(target):
                raise OSError(errno.EACCES, "Permission denied")
            return real_sync(source_dir, target, overwrite)

        monkeypatch.setattr(targets, "sync_dir_copy_with_overwrite", flaky_sync)
        (source / "notes.txt").write_text("v2")

        update = installer.update(result.skill_id)

        assert update.updated_targets == ["codex"]
        assert "Permission denied" in update.failed_targets["cursor"]
        assert (fake_home / ".codex" / "skills" / "alpha" / "notes.txt").read_text() == "v2"
        cursor_row = store.get_skill_target(result.skill_id, "cursor")
        assert cursor_row.status == "error"
        assert "Permission denied" in cursor_row.last_error
        assert store.get_skill_target(result.skill_id, "codex").status == "ok"

    def test_uninstalled_tool_is_skipped(
        self, installer, synchronizer, store, local_skill, fake_home
    ):
        source, result = local_skill
        record = store.get_skill_by_id(result.skill_id)
        before = synchronizer.sync_skill_to_tool(record, "cursor")

        cursor_home = fake_home / ".cursor"
        target = cursor_home / "skills" / "alpha"
        for path in target.iterdir():
            path.unlink()
        target.rmdir()
        (cursor_home / "skills").rmdir()
        cursor_home.rmdir()
        (source / "notes.txt").write_text("v2")

        update = installer.update(result.skill_id)

        assert update.updated_targets == []
        assert update.failed_targets == {}
        assert store.get_skill_target(result.skill_id, "cursor") == before
        assert not cursor_home.exists()
