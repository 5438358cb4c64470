"""Data models for the repository state cache.

The cache file is a flat JSON object: one reserved ``lastBuildTime`` key plus
one entry per tracked source keyed by its URL.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

LAST_BUILD_TIME_KEY = "lastBuildTime"


def utcnow() -> datetime:
    """Get the current UTC time as an aware datetime."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware datetime; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 timestamp.

    Naive values are treated as UTC.

    Args:
        value: Timestamp string (or None).

    Returns:
        Aware datetime, or None if value is empty.

    Raises:
        ValueError: If value is not a valid ISO-8601 string.
    """
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ValueError(f"Expected ISO-8601 string, got {type(value).__name__}")
    return as_utc(datetime.fromisoformat(value))


def format_timestamp(value: datetime | None) -> str | None:
    """Format a datetime as ISO-8601, or None."""
    if value is None:
        return None
    return value.isoformat()


@dataclass
class TrackedSource:
    """Cached state of one externally hosted repository."""

    url: str
    last_commit: str | None = None
    last_check: datetime | None = None
    stale: bool = False
    last_update: datetime | None = None
    pushed_at: datetime | None = None
    pushed_commit: str | None = None

    @classmethod
    def from_dict(cls, url: str, data: dict[str, Any]) -> TrackedSource:
        """Create from a cache file entry.

        Raises:
            ValueError: If the entry has malformed fields.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Entry for {url} must be an object")

        last_commit = data.get("lastCommit")
        if last_commit is not None and not isinstance(last_commit, str):
            raise ValueError(f"lastCommit for {url} must be a string")

        # needsRebuild is the flag name written by older cache files
        stale = data.get("stale", data.get("needsRebuild", False))
        if not isinstance(stale, bool):
            raise ValueError(f"stale for {url} must be a boolean")

        pushed_commit = data.get("pushedCommit")
        if pushed_commit is not None and not isinstance(pushed_commit, str):
            raise ValueError(f"pushedCommit for {url} must be a string")

        return cls(
            url=url,
            last_commit=last_commit,
            last_check=parse_timestamp(data.get("lastCheck")),
            stale=stale,
            last_update=parse_timestamp(data.get("lastUpdate")),
            pushed_at=parse_timestamp(data.get("pushedAt")),
            pushed_commit=pushed_commit,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to a cache file entry, omitting unset fields."""
        data: dict[str, Any] = {"stale": self.stale}
        if self.last_commit is not None:
            data["lastCommit"] = self.last_commit
        if self.last_check is not None:
            data["lastCheck"] = format_timestamp(self.last_check)
        if self.last_update is not None:
            data["lastUpdate"] = format_timestamp(self.last_update)
        if self.pushed_at is not None:
            data["pushedAt"] = format_timestamp(self.pushed_at)
        if self.pushed_commit is not None:
            data["pushedCommit"] = self.pushed_commit
        return data


@dataclass
class BuildCacheRecord:
    """Root cache object: last build time plus per-source state."""

    last_build_time: datetime | None = None
    sources: dict[str, TrackedSource] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> BuildCacheRecord:
        """Create from the decoded cache file.

        Raises:
            ValueError: If the data does not match the cache schema.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Cache root must be an object, got {type(data).__name__}")

        record = cls(last_build_time=parse_timestamp(data.get(LAST_BUILD_TIME_KEY)))
        for key, value in data.items():
            if key == LAST_BUILD_TIME_KEY:
                continue
            record.sources[key] = TrackedSource.from_dict(key, value)
        return record

    def to_dict(self) -> dict[str, Any]:
        """Convert to the cache file layout."""
        data: dict[str, Any] = {}
        if self.last_build_time is not None:
            data[LAST_BUILD_TIME_KEY] = format_timestamp(self.last_build_time)
        for url, source in self.sources.items():
            data[url] = source.to_dict()
        return data

    @property
    def is_empty(self) -> bool:
        """Check if nothing has ever been recorded."""
        return self.last_build_time is None and not self.sources

    def get(self, url: str) -> TrackedSource | None:
        """Get cached state for a source, if any."""
        return self.sources.get(url)

    def get_or_create(self, url: str) -> TrackedSource:
        """Get cached state for a source, creating an empty entry if needed."""
        source = self.sources.get(url)
        if source is None:
            source = TrackedSource(url=url)
            self.sources[url] = source
        return source

    def stale_sources(self) -> list[str]:
        """List URLs of sources currently flagged stale."""
        return [url for url, source in self.sources.items() if source.stale]

    def drain_stale_flags(self) -> list[str]:
        """Clear every stale flag and return the URLs that were flagged.

        This is the only operation that resets a stale flag.
        """
        drained = self.stale_sources()
        for url in drained:
            self.sources[url].stale = False
        return drained

    def mark_built(self, when: datetime) -> None:
        """Advance last_build_time to ``when``; never moves it backwards."""
        if self.last_build_time is None or when > self.last_build_time:
            self.last_build_time = when
