"""
Content fingerprints for skill directories.

The same directory tree always produces the same digest, regardless of file
timestamps or the order the filesystem lists entries in.
"""

import hashlib
import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024
SKIP_DIRS = {".git"}


def _iter_files(root: Path) -> list[str]:
    relative: list[str] = []
    for dirpath, dirnames, filenames in os.walk(root, followlinks=True):
        dirnames[:] = [d for d in dirnames if d not in SKIP_DIRS]
        base = Path(dirpath)
        for filename in filenames:
            path = base / filename
            if path.is_file():
                relative.append(path.relative_to(root).as_posix())
    return sorted(relative)


def hash_dir(path: Path) -> str:
    """Compute a SHA-256 fingerprint of a directory tree.

    Every regular file contributes its relative POSIX path and its bytes,
    each prefixed with its length. Hidden files are included and ``.git``
    directories are skipped.

    Raises:
        FileNotFoundError: If ``path`` is not a directory.
        OSError: If a file cannot be read.
    """
    root = Path(path)
    if not root.is_dir():
        raise FileNotFoundError(f"not a directory: {root}")

    digest = hashlib.sha256()
    for relative in _iter_files(root):
        file_path = root / relative
        encoded = relative.encode("utf-8")
        # Length prefixes keep path and content boundaries unambiguous.
        digest.update(len(encoded).to_bytes(8, "big"))
        digest.update(encoded)
        digest.update(file_path.stat().st_size.to_bytes(8, "big"))
        with open(file_path, "rb") as f:
            for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
                digest.update(chunk)
    return digest.hexdigest()


def try_hash_dir(path: Path) -> str | None:
    """Best-effort :func:`hash_dir`; the failure cause is logged, not raised."""
    try:
        return hash_dir(path)
    except OSError as e:
        logger.debug(f"Could not fingerprint {path}: {e}")
        return None
