"""
Directory propagation for skillhub.

Copies (or links) a canonical skill directory into a tool directory. A sync
always replaces the whole destination; nothing is merged.
"""

import logging
import os
import shutil
from pathlib import Path

from skillhub.skills.errors import SourceNotFoundError, TargetExistsError
from skillhub.skills.models import SyncMode, SyncResult

logger = logging.getLogger(__name__)


def copy_dir_recursive(source: Path, destination: Path, ignore_git: bool = False) -> None:
    """Copy a directory tree, hidden files included.

    Symlinks inside the tree are copied as the content they point to.

    Args:
        source: Directory to copy.
        destination: Must not exist yet.
        ignore_git: Skip ``.git`` directories (used for git sources).
    """
    ignore = shutil.ignore_patterns(".git") if ignore_git else None
    destination.parent.mkdir(parents=True, exist_ok=True)
    shutil.copytree(source, destination, symlinks=False, ignore=ignore)


def is_link(path: Path) -> bool:
    """Whether ``path`` is a symlink or a Windows junction."""
    if path.is_symlink():
        return True
    is_junction = getattr(os.path, "isjunction", None)
    return bool(is_junction and is_junction(path))


def remove_target(path: Path) -> bool:
    """Remove a link, file or directory tree. Returns False if nothing existed."""
    if is_link(path):
        path.unlink()
        return True
    if path.is_dir():
        shutil.rmtree(path)
        return True
    if path.exists():
        path.unlink()
        return True
    return False


def _prepare_target(source: Path, target: Path, overwrite: bool) -> bool:
    if not source.is_dir():
        raise SourceNotFoundError(source, "canonical directory")
    exists = target.exists() or is_link(target)
    if exists and not overwrite:
        raise TargetExistsError(target)
    if exists:
        remove_target(target)
    target.parent.mkdir(parents=True, exist_ok=True)
    return exists


def sync_dir_copy_with_overwrite(source: Path, target: Path, overwrite: bool = True) -> SyncResult:
    """Replace ``target`` with a full copy of ``source``.

    Raises:
        SourceNotFoundError: If ``source`` is not a directory.
        TargetExistsError: If ``target`` exists and ``overwrite`` is False.
    """
    replaced = _prepare_target(source, target, overwrite)
    copy_dir_recursive(source, target)
    return SyncResult(target_path=target, mode=SyncMode.COPY, replaced=replaced)


def sync_dir_link(source: Path, target: Path, overwrite: bool = True) -> SyncResult:
    """Point ``target`` at ``source`` with a directory symlink.

    Falls back to a copy when the platform refuses to create the link; the
    returned mode says which one happened.
    """
    replaced = _prepare_target(source, target, overwrite)
    try:
        target.symlink_to(source.resolve(), target_is_directory=True)
    except (OSError, NotImplementedError) as e:
        logger.warning(f"Cannot link {target} -> {source} ({e}); copying instead")
        copy_dir_recursive(source, target)
        return SyncResult(target_path=target, mode=SyncMode.COPY, replaced=replaced)
    return SyncResult(target_path=target, mode=SyncMode.LINK, replaced=replaced)


def sync_dir(source: Path, target: Path, mode: SyncMode, overwrite: bool = True) -> SyncResult:
    """Propagate ``source`` to ``target`` using ``mode``."""
    if mode == SyncMode.LINK:
        return sync_dir_link(source, target, overwrite)
    return sync_dir_copy_with_overwrite(source, target, overwrite)
