"""
Canonical store writer for skillhub.

Installs skills into the canonical store and refreshes them from their
source. New content is always assembled in a hidden sibling staging
directory and moved into place, so the canonical directory of a skill only
ever holds one complete version.
"""

from __future__ import annotations

import logging
import os
import shutil
import uuid
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from git import GitCommandError, InvalidGitRepositoryError, NoSuchPathError, Repo

from skillhub.skills.clock import now_ms
from skillhub.skills.errors import (
    MultipleSkillsError,
    SkillExistsError,
    SkillHubError,
    SkillInvalidError,
    SkillNotFoundError,
    SourceNotFoundError,
    UnsupportedSourceError,
)
from skillhub.skills.fingerprint import try_hash_dir
from skillhub.skills.git_cache import GitCache
from skillhub.skills.models import (
    GitSkillCandidate,
    InstallResult,
    LocalSkillCandidate,
    ParsedGitSource,
    SkillRecord,
    SourceType,
    UpdateResult,
)
from skillhub.skills.parser import SKILL_MD, load_skill_metadata, validate_skill_dir
from skillhub.skills.source import GITHUB_PREFIX, derive_name, parse_git_source
from skillhub.skills.sync import copy_dir_recursive
from skillhub.skills.targets import TargetSynchronizer

if TYPE_CHECKING:
    from skillhub.registry import SkillStore

logger = logging.getLogger(__name__)

STAGING_PREFIX = ".skillhub-update-"
INSTALL_STAGING_PREFIX = ".skillhub-install-"
BACKUP_PREFIX = ".skillhub-backup-"

# Where multi-skill repositories keep their bundles.
SKILL_BASES = ("skills", "skills/.curated", "skills/.experimental", "skills/.system")

_TRUTHY = ("1", "true", "yes", "on")


class SwapOutcome(str, Enum):
    """How staged content reached its final location."""

    RENAMED = "renamed"
    COPIED = "copied"


# =============================================================================
# Helpers
# =============================================================================


def should_compute_content_hash(config_flag: bool = False) -> bool:
    """Whether install/update should fingerprint the canonical copy.

    Always on for development runs (``SKILLHUB_DEBUG``); otherwise only when
    ``SKILLHUB_COMPUTE_HASH`` is ``1``/``true`` or the config asks for it.
    """
    if os.environ.get("SKILLHUB_DEBUG", "").strip().lower() in _TRUTHY:
        return True
    if os.environ.get("SKILLHUB_COMPUTE_HASH", "").strip().lower() in ("1", "true"):
        return True
    return config_flag


def detect_git_origin(source_path: Path) -> tuple[SourceType, str, str | None]:
    """Work out where a local directory really comes from.

    Symlinks are resolved first. A directory that is a git checkout with an
    ``origin`` remote is recorded as a git source so later updates pull from
    the remote; anything else is a plain local source.

    Returns:
        Tuple of (source type, source reference, revision or None).
    """
    resolved = Path(os.path.realpath(source_path))
    local = (SourceType.LOCAL, str(source_path), None)
    if not (resolved / ".git").exists():
        return local

    try:
        repo = Repo(resolved)
        origin_url = next(iter(repo.remote("origin").urls), None)
    except (InvalidGitRepositoryError, NoSuchPathError, GitCommandError, ValueError) as e:
        logger.debug(f"No usable origin for {resolved}: {e}")
        return local
    if not origin_url:
        return local

    try:
        revision = repo.head.commit.hexsha
    except ValueError as e:
        # Empty repository: no commit yet.
        logger.debug(f"No HEAD commit in {resolved}: {e}")
        revision = None

    return SourceType.GIT, origin_url, revision


def _check_name(name: str) -> str:
    name = name.strip()
    if not name or name in (".", "..") or "/" in name or "\\" in name:
        raise SkillHubError(f"invalid skill name: {name!r}")
    return name


def _resolve_subpath(root: Path, subpath: str) -> Path:
    candidate = (root / subpath.strip("/")).resolve()
    if candidate != root.resolve() and root.resolve() not in candidate.parents:
        raise SkillHubError(f"subpath escapes the repository: {subpath}")
    if not candidate.is_dir():
        raise SourceNotFoundError(candidate, "subpath")
    return candidate


def _skill_dirs(root: Path) -> list[tuple[str, Path]]:
    """Candidate bundle directories as (relative subpath, path) pairs."""
    found: list[tuple[str, Path]] = []
    if (root / SKILL_MD).is_file():
        found.append((".", root))
    for base in SKILL_BASES:
        base_dir = root / base
        if not base_dir.is_dir():
            continue
        for entry in sorted(base_dir.iterdir()):
            if entry.is_dir() and not (base == "skills" and entry.name.startswith(".")):
                found.append((f"{base}/{entry.name}", entry))
    return found


def checked_out_branch(repo_dir: Path) -> str | None:
    """Name of the branch checked out in a clone, None when detached or unreadable."""
    try:
        return Repo(repo_dir).active_branch.name
    except (InvalidGitRepositoryError, NoSuchPathError, TypeError) as e:
        logger.debug(f"No active branch in {repo_dir}: {e}")
        return None


def _selection_ref(
    repo_ref: str, parsed: ParsedGitSource, repo_dir: Path, subpath: str | None
) -> str:
    if not subpath:
        return repo_ref
    if parsed.clone_url.startswith(GITHUB_PREFIX) and parsed.clone_url.endswith(".git"):
        branch = parsed.branch or checked_out_branch(repo_dir)
        if branch:
            return f"{parsed.clone_url[: -len('.git')]}/tree/{branch}/{subpath}"
    logger.warning(
        f"Cannot express {subpath} of {parsed.clone_url} as a folder URL; "
        "updates will refresh from the repository root"
    )
    return repo_ref


def count_repo_skills(root: Path) -> int:
    """Count ``skills/*/SKILL.md`` bundles at the top of a repository."""
    skills_dir = root / "skills"
    if not skills_dir.is_dir():
        return 0
    return sum(
        1
        for entry in skills_dir.iterdir()
        if entry.is_dir() and not entry.name.startswith(".") and (entry / SKILL_MD).is_file()
    )


# =============================================================================
# Staged moves
# =============================================================================


def _try_rename(staging: Path, destination: Path) -> OSError | None:
    try:
        os.rename(staging, destination)
    except OSError as e:
        return e
    return None


def _try_copy(staging: Path, destination: Path) -> OSError | None:
    try:
        copy_dir_recursive(staging, destination)
    except OSError as e:
        if destination.exists():
            shutil.rmtree(destination, ignore_errors=True)
        return e
    if staging.exists():
        shutil.rmtree(staging, ignore_errors=True)
    return None


_MOVE_ATTEMPTS = (
    (SwapOutcome.RENAMED, _try_rename),
    (SwapOutcome.COPIED, _try_copy),
)


def move_into_place(staging: Path, destination: Path) -> SwapOutcome:
    """Move a staged directory to ``destination``, which must not exist.

    Tries an atomic rename first; when that is impossible (staging and
    destination on different volumes, for instance) copies and removes the
    staging directory instead. A failed copy leaves nothing at
    ``destination``.

    Raises:
        SkillHubError: If every attempt failed.
    """
    failures: list[str] = []
    for outcome, attempt in _MOVE_ATTEMPTS:
        error = attempt(staging, destination)
        if error is None:
            if failures:
                logger.warning(
                    f"Moved {staging.name} to {destination} by {outcome.value} "
                    f"after: {'; '.join(failures)}"
                )
            return outcome
        failures.append(f"{outcome.value} failed: {error}")
    raise SkillHubError(f"could not move {staging} to {destination}: {'; '.join(failures)}")


def swap_directory(staging: Path, destination: Path) -> SwapOutcome:
    """Replace ``destination`` with ``staging``.

    The old directory is renamed aside first and only deleted once the new
    content is in place; if the new content cannot be moved in, the old
    directory is put back.
    """
    backup = destination.with_name(f"{BACKUP_PREFIX}{uuid.uuid4().hex}")
    try:
        os.rename(destination, backup)
    except OSError as e:
        logger.warning(f"Could not set {destination} aside ({e}); removing it instead")
        shutil.rmtree(destination)
        backup = None

    try:
        outcome = move_into_place(staging, destination)
    except SkillHubError:
        if backup is not None:
            os.rename(backup, destination)
        raise

    if backup is not None:
        shutil.rmtree(backup, ignore_errors=True)
    return outcome


# =============================================================================
# Installer
# =============================================================================


class SkillInstaller:
    """Writes skills into the canonical store and keeps the registry in step."""

    def __init__(
        self,
        store: SkillStore,
        git_cache: GitCache,
        central_root: Path,
        synchronizer: TargetSynchronizer | None = None,
        compute_hash: bool = False,
        ttl_secs: int | None = None,
    ):
        """Initialize the installer.

        Args:
            store: Registry the records are written to.
            git_cache: Shared git clone cache.
            central_root: Canonical store root.
            synchronizer: Propagates updates to copy targets.
            compute_hash: Config opt-in for content hashing.
            ttl_secs: Git cache freshness override (None = cache default).
        """
        self.store = store
        self.git_cache = git_cache
        self.central_root = Path(central_root)
        self.synchronizer = synchronizer or TargetSynchronizer(store)
        self.compute_hash = compute_hash
        self.ttl_secs = ttl_secs

    # -------------------------------------------------------------------------
    # Install
    # -------------------------------------------------------------------------

    def install_local(self, source_path: Path, name: str | None = None) -> InstallResult:
        """Install a local directory.

        Raises:
            SourceNotFoundError: If ``source_path`` is not a directory.
            SkillExistsError: If the canonical destination already exists.
        """
        source_path = Path(source_path)
        if not source_path.is_dir():
            raise SourceNotFoundError(source_path)

        name = _check_name(name or source_path.name or "unnamed-skill")
        destination = self._destination(name)
        source_type, source_ref, revision = detect_git_origin(source_path)

        self._stage_and_place(source_path, destination, ignore_git=False)
        return self._record_install(name, destination, source_type, source_ref, revision)

    def install_local_selection(
        self, base_path: Path, subpath: str, name: str | None = None
    ) -> InstallResult:
        """Install one bundle found by :meth:`list_local_skills`.

        Raises:
            SourceNotFoundError: If the base path or subpath is missing.
            SkillInvalidError: If the selected directory has no valid SKILL.md.
        """
        base_path = Path(base_path)
        if not base_path.is_dir():
            raise SourceNotFoundError(base_path)
        selected = _resolve_subpath(base_path, subpath)
        frontmatter = validate_skill_dir(selected)
        return self.install_local(selected, name or frontmatter.name)

    def install_git(self, repo_ref: str, name: str | None = None) -> InstallResult:
        """Install from a repository reference (URL, shorthand or folder URL).

        Raises:
            MultipleSkillsError: If the repository root holds several skills
                and the reference does not point at one of them.
            SourceNotFoundError: If the referenced subpath does not exist.
            SkillExistsError: If the canonical destination already exists.
            GitFetchError: If the repository cannot be fetched.
        """
        parsed = parse_git_source(repo_ref)
        name = _check_name(name or derive_name(parsed))
        destination = self._destination(name)

        repo_dir, revision = self.git_cache.acquire(
            parsed.clone_url, parsed.branch, ttl_secs=self.ttl_secs
        )
        if parsed.subpath:
            source = _resolve_subpath(repo_dir, parsed.subpath)
        else:
            count = count_repo_skills(repo_dir)
            if count >= 2:
                raise MultipleSkillsError(repo_ref, count)
            source = repo_dir

        self._stage_and_place(source, destination, ignore_git=True)
        return self._record_install(name, destination, SourceType.GIT, repo_ref, revision)

    def install_git_selection(
        self, repo_ref: str, subpath: str, name: str | None = None
    ) -> InstallResult:
        """Install one bundle found by :meth:`list_git_skills`.

        ``subpath`` is relative to the reference (``.`` for its root). For
        GitHub repositories the stored source is a folder URL, so later
        updates pull the same bundle rather than the whole repository.
        """
        parsed = parse_git_source(repo_ref)
        leaf = subpath.strip("/")
        if leaf in ("", "."):
            leaf = None
        full_subpath = "/".join(p.strip("/") for p in (parsed.subpath, leaf) if p) or None

        name = _check_name(name or (Path(leaf).name if leaf else derive_name(parsed)))
        destination = self._destination(name)

        repo_dir, revision = self.git_cache.acquire(
            parsed.clone_url, parsed.branch, ttl_secs=self.ttl_secs
        )
        source = _resolve_subpath(repo_dir, full_subpath) if full_subpath else repo_dir

        self._stage_and_place(source, destination, ignore_git=True)
        source_ref = _selection_ref(repo_ref, parsed, repo_dir, full_subpath)
        return self._record_install(name, destination, SourceType.GIT, source_ref, revision)

    # -------------------------------------------------------------------------
    # Candidate listing
    # -------------------------------------------------------------------------

    def list_git_skills(self, repo_ref: str) -> list[GitSkillCandidate]:
        """List the valid skill bundles inside a repository."""
        parsed = parse_git_source(repo_ref)
        repo_dir, _revision = self.git_cache.acquire(
            parsed.clone_url, parsed.branch, ttl_secs=self.ttl_secs
        )
        root = _resolve_subpath(repo_dir, parsed.subpath) if parsed.subpath else repo_dir

        candidates: dict[str, GitSkillCandidate] = {}
        for subpath, skill_dir in _skill_dirs(root):
            try:
                frontmatter = validate_skill_dir(skill_dir)
            except SkillInvalidError as e:
                logger.debug(f"Skipping {subpath} in {repo_ref}: {e.reason}")
                continue
            candidates.setdefault(
                subpath,
                GitSkillCandidate(
                    name=frontmatter.name,
                    description=frontmatter.description,
                    subpath=subpath,
                ),
            )
        return sorted(candidates.values(), key=lambda c: c.name)

    def list_local_skills(self, base_path: Path) -> list[LocalSkillCandidate]:
        """List bundle directories under a local path, invalid ones included.

        Raises:
            SourceNotFoundError: If ``base_path`` is not a directory.
        """
        base_path = Path(base_path)
        if not base_path.is_dir():
            raise SourceNotFoundError(base_path)

        candidates: dict[str, LocalSkillCandidate] = {}
        for subpath, skill_dir in _skill_dirs(base_path):
            try:
                frontmatter = validate_skill_dir(skill_dir)
                candidate = LocalSkillCandidate(
                    name=frontmatter.name,
                    description=frontmatter.description,
                    subpath=subpath,
                )
            except SkillInvalidError as e:
                candidate = LocalSkillCandidate(
                    name=skill_dir.name, subpath=subpath, valid=False, reason=e.reason
                )
            candidates.setdefault(subpath, candidate)
        return sorted(candidates.values(), key=lambda c: c.name)

    # -------------------------------------------------------------------------
    # Update
    # -------------------------------------------------------------------------

    def update(self, skill_id: str) -> UpdateResult:
        """Refresh a skill's canonical copy from its recorded source.

        Raises:
            SkillNotFoundError: If no record has this id.
            SourceNotFoundError: If the canonical directory or a local source
                is missing.
            UnsupportedSourceError: If the record's source type is unknown.
            GitFetchError: If the repository cannot be fetched.
        """
        record = self.store.get_skill_by_id(skill_id)
        if record is None:
            raise SkillNotFoundError(skill_id)

        central_path = Path(record.central_path)
        if not central_path.is_dir():
            raise SourceNotFoundError(central_path, "central path")
        if record.source_type not in (SourceType.GIT.value, SourceType.LOCAL.value):
            raise UnsupportedSourceError(record.source_type)
        if not record.source_ref:
            raise SkillHubError(f"skill {record.name} has no recorded source")

        staging = central_path.with_name(f"{STAGING_PREFIX}{uuid.uuid4().hex}")
        try:
            new_revision = self._build_staging(record, staging)
            outcome = swap_directory(staging, central_path)
        finally:
            if staging.exists():
                shutil.rmtree(staging, ignore_errors=True)
        logger.info(f"Updated {record.name} in place ({outcome.value})")

        now = now_ms()
        content_hash = self._content_hash(central_path)
        updated = record.model_copy(
            update={
                "source_revision": new_revision or record.source_revision,
                "content_hash": content_hash,
                "metadata": load_skill_metadata(central_path),
                "updated_at": now,
                "last_seen_at": now,
                "status": "ok",
            }
        )
        self.store.upsert_skill(updated)

        updated_targets, failed_targets = self.synchronizer.resync_copy_targets(
            record.id, central_path
        )
        if updated_targets or failed_targets:
            self.store.upsert_skill(updated.model_copy(update={"last_sync_at": now_ms()}))

        return UpdateResult(
            skill_id=record.id,
            name=record.name,
            central_path=central_path,
            content_hash=content_hash,
            source_revision=updated.source_revision,
            updated_targets=updated_targets,
            failed_targets=failed_targets,
        )

    def _build_staging(self, record: SkillRecord, staging: Path) -> str | None:
        if record.source_type == SourceType.GIT.value:
            parsed = parse_git_source(record.source_ref)
            repo_dir, revision = self.git_cache.acquire(
                parsed.clone_url, parsed.branch, ttl_secs=self.ttl_secs
            )
            source = _resolve_subpath(repo_dir, parsed.subpath) if parsed.subpath else repo_dir
            copy_dir_recursive(source, staging, ignore_git=True)
            return revision

        source = Path(record.source_ref)
        if not source.is_dir():
            raise SourceNotFoundError(source)
        copy_dir_recursive(source, staging)
        return None

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _destination(self, name: str) -> Path:
        destination = self.central_root / name
        if destination.exists() or destination.is_symlink():
            raise SkillExistsError(destination)
        return destination

    def _stage_and_place(self, source: Path, destination: Path, ignore_git: bool) -> None:
        self.central_root.mkdir(parents=True, exist_ok=True)
        staging = self.central_root / f"{INSTALL_STAGING_PREFIX}{uuid.uuid4().hex}"
        try:
            copy_dir_recursive(source, staging, ignore_git=ignore_git)
            # Someone else may have installed under this name meanwhile.
            if destination.exists():
                raise SkillExistsError(destination)
            move_into_place(staging, destination)
        finally:
            if staging.exists():
                shutil.rmtree(staging, ignore_errors=True)

    def _content_hash(self, path: Path) -> str | None:
        if not should_compute_content_hash(self.compute_hash):
            return None
        return try_hash_dir(path)

    def _record_install(
        self,
        name: str,
        central_path: Path,
        source_type: SourceType,
        source_ref: str,
        revision: str | None,
    ) -> InstallResult:
        now = now_ms()
        content_hash = self._content_hash(central_path)
        record = SkillRecord(
            id=str(uuid.uuid4()),
            name=name,
            source_type=source_type.value,
            source_ref=source_ref,
            source_revision=revision,
            central_path=str(central_path),
            content_hash=content_hash,
            created_at=now,
            updated_at=now,
            last_seen_at=now,
            metadata=load_skill_metadata(central_path),
        )
        self.store.upsert_skill(record)
        logger.info(f"Installed {name} from {source_type.value} source {source_ref}")
        return InstallResult(
            skill_id=record.id, name=name, central_path=central_path, content_hash=content_hash
        )
