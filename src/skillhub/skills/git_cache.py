"""
Git clone cache for skillhub.

Each ``(clone_url, branch)`` pair maps to one cached working clone under the
cache root. A clone is reused without touching the network while its marker
file says it was fetched less than ``ttl_secs`` ago. A failed fetch wipes the
clone and retries once from scratch, so a half-written clone cannot poison
later acquisitions.

All fetch decisions and fetches go through one lock per :class:`GitCache`;
use :func:`get_git_cache` to share a single instance across the process.
"""

import hashlib
import logging
import shutil
import threading
import time
from collections.abc import Callable
from pathlib import Path
from typing import Protocol

from git import GitCommandError, InvalidGitRepositoryError, NoSuchPathError, Repo
from pydantic import ValidationError

from skillhub.skills.clock import now_ms
from skillhub.skills.errors import GitFetchError
from skillhub.skills.models import RepoCacheMeta
from skillhub.storage.paths import get_git_cache_dir

logger = logging.getLogger(__name__)

CACHE_META_FILE = ".skillhub-cache.json"
DEFAULT_TTL_SECS = 60

# Distinguishes "no branch requested" from every real branch name, including "".
_NO_BRANCH = "\x00none"


class GitFetcher(Protocol):
    """Fetch capability used by the cache."""

    def clone_or_pull(self, clone_url: str, local_dir: Path, branch: str | None) -> str:
        """Bring ``local_dir`` up to date and return the checked-out revision."""
        ...


class GitPythonFetcher:
    """Clone or fast-forward a working copy with GitPython.

    An existing clone is fetched from ``origin`` and hard-reset to the fetched
    head, so local edits in the cache never survive a refresh.
    """

    def __init__(self, shallow: bool = True):
        self.shallow = shallow

    def clone_or_pull(self, clone_url: str, local_dir: Path, branch: str | None) -> str:
        depth = {"depth": 1} if self.shallow else {}
        try:
            if (local_dir / ".git").exists():
                repo = Repo(local_dir)
                origin = repo.remote("origin")
                origin.fetch(branch or "HEAD", **depth)
                repo.git.reset("--hard", "FETCH_HEAD")
            else:
                local_dir.parent.mkdir(parents=True, exist_ok=True)
                kwargs = dict(depth)
                if branch:
                    kwargs["branch"] = branch
                repo = Repo.clone_from(clone_url, local_dir, **kwargs)
            return repo.head.commit.hexsha
        except (GitCommandError, InvalidGitRepositoryError, NoSuchPathError, ValueError) as e:
            raise GitFetchError(f"git fetch failed for {clone_url}: {e}") from e


def repo_cache_key(clone_url: str, branch: str | None) -> str:
    """Fixed-length cache directory name for a ``(clone_url, branch)`` pair."""
    marker = _NO_BRANCH if branch is None else f"branch:{branch}"
    digest = hashlib.sha256()
    digest.update(clone_url.encode("utf-8"))
    digest.update(b"\n")
    digest.update(marker.encode("utf-8"))
    return digest.hexdigest()


def is_fresh(meta: RepoCacheMeta, ttl_secs: int, now: int) -> bool:
    """Whether a cached clone may be reused. ``ttl_secs <= 0`` never is."""
    if meta.head is None or ttl_secs <= 0:
        return False
    return now - meta.last_fetched_ms < ttl_secs * 1000


def read_cache_meta(repo_dir: Path) -> RepoCacheMeta | None:
    """Read a clone's marker file; missing or malformed markers give None."""
    meta_path = repo_dir / CACHE_META_FILE
    try:
        return RepoCacheMeta.model_validate_json(meta_path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return None
    except (OSError, ValidationError) as e:
        logger.debug(f"Ignoring cache metadata at {meta_path}: {e}")
        return None


class GitCache:
    """TTL-based cache of git working clones."""

    def __init__(
        self,
        cache_root: Path,
        fetcher: GitFetcher | None = None,
        ttl_secs: int = DEFAULT_TTL_SECS,
        clock: Callable[[], int] = now_ms,
    ):
        """Initialize the cache.

        Args:
            cache_root: Directory holding one subdirectory per cached clone.
            fetcher: Fetch capability (default: GitPython).
            ttl_secs: Default freshness window; ``<= 0`` always refetches.
            clock: Millisecond clock, replaceable in tests.
        """
        self.cache_root = Path(cache_root)
        self.fetcher = fetcher or GitPythonFetcher()
        self.ttl_secs = ttl_secs
        self._clock = clock
        self._lock = threading.Lock()

    def repo_dir(self, clone_url: str, branch: str | None) -> Path:
        return self.cache_root / repo_cache_key(clone_url, branch)

    def acquire(
        self,
        clone_url: str,
        branch: str | None = None,
        ttl_secs: int | None = None,
    ) -> tuple[Path, str]:
        """Return a local clone of ``clone_url`` and its resolved revision.

        The returned directory belongs to the cache: copy out what you need
        before the next ``acquire`` call, which may refresh or delete it.

        Raises:
            GitFetchError: If fetching fails twice.
        """
        ttl = self.ttl_secs if ttl_secs is None else ttl_secs
        repo_dir = self.repo_dir(clone_url, branch)
        started = time.monotonic()

        with self._lock:
            self.cache_root.mkdir(parents=True, exist_ok=True)

            if (repo_dir / ".git").exists():
                meta = read_cache_meta(repo_dir)
                if meta is not None and is_fresh(meta, ttl, self._clock()):
                    logger.info(
                        f"git cache hit (fresh) {time.monotonic() - started:.2f}s "
                        f"url={clone_url} branch={branch}"
                    )
                    return repo_dir, meta.head  # type: ignore[return-value]

            logger.info(f"git cache miss/stale; fetching url={clone_url} branch={branch}")
            revision = self._fetch_with_retry(clone_url, repo_dir, branch)
            self._write_meta(repo_dir, revision)

        logger.info(
            f"git cache ready {time.monotonic() - started:.2f}s "
            f"url={clone_url} branch={branch} head={revision}"
        )
        return repo_dir, revision

    def _fetch_with_retry(self, clone_url: str, repo_dir: Path, branch: str | None) -> str:
        try:
            return self.fetcher.clone_or_pull(clone_url, repo_dir, branch)
        except GitFetchError as first:
            logger.warning(f"Fetch failed, resetting cache and retrying: {first}")
            if repo_dir.exists():
                shutil.rmtree(repo_dir, ignore_errors=True)
            try:
                return self.fetcher.clone_or_pull(clone_url, repo_dir, branch)
            except GitFetchError as second:
                raise GitFetchError(f"{second} (first attempt: {first})") from first

    def _write_meta(self, repo_dir: Path, revision: str) -> None:
        meta = RepoCacheMeta(last_fetched_ms=self._clock(), head=revision)
        try:
            (repo_dir / CACHE_META_FILE).write_text(meta.model_dump_json(), encoding="utf-8")
        except OSError as e:
            # The clone is still usable; it is simply refetched next time.
            logger.warning(f"Could not write cache metadata for {repo_dir}: {e}")

    def clear(self) -> int:
        """Delete every cached clone. Returns the number removed."""
        with self._lock:
            return self._remove_where(lambda _path: True)

    def cleanup_older_than(self, max_age_secs: int) -> int:
        """Delete clones last fetched more than ``max_age_secs`` ago."""
        cutoff = self._clock() - max_age_secs * 1000

        def expired(path: Path) -> bool:
            meta = read_cache_meta(path)
            if meta is not None:
                return meta.last_fetched_ms < cutoff
            try:
                return int(path.stat().st_mtime * 1000) < cutoff
            except OSError:
                return False

        with self._lock:
            return self._remove_where(expired)

    def _remove_where(self, predicate: Callable[[Path], bool]) -> int:
        if not self.cache_root.exists():
            return 0
        removed = 0
        for entry in self.cache_root.iterdir():
            if not entry.is_dir() or not predicate(entry):
                continue
            try:
                shutil.rmtree(entry)
                removed += 1
            except OSError as e:
                logger.warning(f"Could not remove cached clone {entry}: {e}")
        return removed


_cache: GitCache | None = None


def get_git_cache() -> GitCache:
    """Get the process-wide git cache."""
    global _cache
    if _cache is None:
        from skillhub.config import get_config

        config = get_config()
        _cache = GitCache(
            get_git_cache_dir(),
            fetcher=GitPythonFetcher(shallow=config.git.shallow),
            ttl_secs=config.git.cache_ttl_secs,
        )
    return _cache


def reset_git_cache() -> None:
    """Forget the process-wide cache instance."""
    global _cache
    _cache = None
