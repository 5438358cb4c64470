"""Data models for the remote poller."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from urllib.parse import urlsplit

from docrebuild.exceptions import InvalidSourceURLError

_NAME_PATTERN = re.compile(r"^[\w.-]+$")


@dataclass(frozen=True)
class RepoRef:
    """A repository on a hosting service."""

    host: str
    owner: str
    repo: str

    @property
    def full_name(self) -> str:
        """Repository in "owner/repo" format."""
        return f"{self.owner}/{self.repo}"


def parse_source_url(url: str) -> RepoRef:
    """Parse a tracked source URL into host, owner and repo.

    Accepts ``https://<host>/<owner>/<repo>`` with an optional trailing slash
    or ``.git`` suffix; a missing scheme is read as https.

    Args:
        url: Source URL from configuration.

    Returns:
        The parsed repository reference.

    Raises:
        InvalidSourceURLError: If the URL does not name exactly one repository.
    """
    if not isinstance(url, str) or not url.strip():
        raise InvalidSourceURLError(f"Invalid source URL: {url!r}")

    raw = url.strip()
    if "://" not in raw:
        raw = f"https://{raw}"

    parts = urlsplit(raw)
    if parts.scheme not in ("http", "https") or not parts.hostname:
        raise InvalidSourceURLError(f"Invalid source URL '{url}': expected https://host/owner/repo")

    segments = [s for s in parts.path.split("/") if s]
    if len(segments) != 2:
        raise InvalidSourceURLError(f"Invalid source URL '{url}': expected https://host/owner/repo")

    owner, repo = segments
    repo = repo.removesuffix(".git")
    if not _NAME_PATTERN.match(owner) or not _NAME_PATTERN.match(repo):
        raise InvalidSourceURLError(f"Invalid source URL '{url}': bad owner or repository name")

    return RepoRef(host=parts.hostname.lower(), owner=owner, repo=repo)


def normalize_source_url(url: str) -> str:
    """Normalize a repository URL for comparison.

    Drops the scheme, a trailing slash and a ``.git`` suffix, and lowercases
    the result, so ``https://github.com/Owner/Repo.git/`` and
    ``github.com/owner/repo`` compare equal.
    """
    value = url.strip().lower()
    if "://" in value:
        value = value.split("://", 1)[1]
    value = value.rstrip("/")
    return value.removesuffix(".git")


@dataclass
class SourceCheck:
    """Result of one remote commit lookup.

    Attributes:
        url: Source URL.
        commit: Latest commit id, or None if the lookup failed.
        error: Failure description when the lookup failed.
    """

    url: str
    commit: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        """Whether the lookup succeeded."""
        return self.error is None and self.commit is not None


@dataclass
class PollResult:
    """Result of polling all tracked sources.

    Attributes:
        changed: URLs judged changed this cycle, in configuration order.
        unchanged: URLs whose latest commit matches the cache.
        errors: Lookup failures by URL (these URLs are also in ``changed``).
    """

    changed: list[str] = field(default_factory=list)
    unchanged: list[str] = field(default_factory=list)
    errors: dict[str, str] = field(default_factory=dict)
