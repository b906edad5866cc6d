"""
Repository reference resolution.

Turns whatever the user typed (local path, git URL, ``owner/repo`` shorthand,
GitHub folder URL) into a :class:`ParsedGitSource`. Pure string handling; no
I/O and no exceptions.
"""

import re

from skillhub.skills.models import ParsedGitSource

GITHUB_PREFIX = "https://github.com/"

_SAFE_SEGMENT = re.compile(r"^[A-Za-z0-9._-]+$")


def looks_like_github_shorthand(value: str) -> bool:
    """Check whether ``value`` is an ``owner/repo[/tree|blob/...]`` shorthand.

    Local paths, scp-style remotes (``git@host:owner/repo``) and anything with
    a scheme are rejected.
    """
    if not value:
        return False
    if value.startswith(("/", "~", ".")):
        return False
    if "://" in value or "@" in value or ":" in value:
        return False

    parts = value.split("/")
    if len(parts) < 2:
        return False

    owner, repo = parts[0], parts[1]
    if owner in ("", ".", "..") or repo in ("", ".", ".."):
        return False
    if repo.endswith(".git"):
        repo = repo[: -len(".git")]
    if not _SAFE_SEGMENT.match(owner) or not _SAFE_SEGMENT.match(repo):
        return False

    if len(parts) > 2:
        return parts[2] in ("tree", "blob")
    return True


def _normalize(value: str) -> str:
    if value.startswith(GITHUB_PREFIX):
        return value
    if value.startswith("http://github.com/"):
        return GITHUB_PREFIX + value[len("http://github.com/") :]
    if value.startswith("github.com/"):
        return "https://" + value
    if looks_like_github_shorthand(value):
        return GITHUB_PREFIX + value
    return value


def parse_git_source(reference: str) -> ParsedGitSource:
    """Resolve a user reference into ``clone_url``, ``branch`` and ``subpath``.

    Supports:
    - https://github.com/owner/repo[.git]
    - http://github.com/... and github.com/... (normalised to https)
    - owner/repo shorthand
    - .../tree/<branch>/<path> and .../blob/<branch>/<path>

    Anything else (local paths, other remotes) is returned unchanged as the
    clone URL with no branch or subpath.
    """
    normalized = _normalize(reference.strip().rstrip("/")).rstrip("/")

    if not normalized.startswith(GITHUB_PREFIX):
        return ParsedGitSource(clone_url=normalized)

    parts = normalized[len(GITHUB_PREFIX) :].split("/")
    if len(parts) < 2 or not parts[0] or not parts[1]:
        return ParsedGitSource(clone_url=normalized)

    owner, repo = parts[0], parts[1]
    if repo.endswith(".git"):
        repo = repo[: -len(".git")]
    clone_url = f"{GITHUB_PREFIX}{owner}/{repo}.git"

    if len(parts) >= 4 and parts[2] in ("tree", "blob") and parts[3]:
        subpath = "/".join(parts[4:]) or None
        return ParsedGitSource(clone_url=clone_url, branch=parts[3], subpath=subpath)

    return ParsedGitSource(clone_url=clone_url)


def derive_name_from_repo_url(repo_url: str) -> str:
    """Use the last URL segment (without ``.git``) as a skill name."""
    name = repo_url.rstrip("/").rsplit("/", 1)[-1]
    if name.endswith(".git"):
        name = name[: -len(".git")]
    return name or "skill"


def derive_name(parsed: ParsedGitSource) -> str:
    """Pick a default skill name: subpath leaf first, then the repository."""
    if parsed.subpath:
        leaf = parsed.subpath.rstrip("/").rsplit("/", 1)[-1]
        if leaf:
            return leaf
    return derive_name_from_repo_url(parsed.clone_url)
