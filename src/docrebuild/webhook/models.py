"""Pydantic models for push event payloads and processing results."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from docrebuild.cache_store.models import parse_timestamp

_NULL_SHA = "0" * 40


class PushCommit(BaseModel):
    """One commit of a push event."""

    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    added: list[str] = Field(default_factory=list)
    modified: list[str] = Field(default_factory=list)
    removed: list[str] = Field(default_factory=list)

    @field_validator("added", "modified", "removed", mode="before")
    @classmethod
    def _none_as_empty(cls, value: object) -> object:
        return [] if value is None else value

    def paths(self) -> list[str]:
        """All added, modified and removed paths of this commit."""
        return [*self.added, *self.modified, *self.removed]


class PushRepository(BaseModel):
    """Repository section of a push event."""

    model_config = ConfigDict(extra="ignore")

    html_url: str | None = None
    # GitHub sends epoch seconds for push events, ISO strings elsewhere
    pushed_at: int | str | None = None


class PushEvent(BaseModel):
    """A hosting provider push event."""

    model_config = ConfigDict(extra="ignore")

    repository: PushRepository | None = None
    commits: list[PushCommit] = Field(default_factory=list)
    head_commit: PushCommit | None = None
    after: str | None = None

    @field_validator("commits", mode="before")
    @classmethod
    def _commits_none_as_empty(cls, value: object) -> object:
        return [] if value is None else value

    @property
    def repository_url(self) -> str | None:
        """URL of the repository that was pushed to."""
        if self.repository is None:
            return None
        return self.repository.html_url or None

    def pushed_at_time(self) -> datetime | None:
        """Push timestamp as an aware datetime, if present and parseable."""
        if self.repository is None or self.repository.pushed_at is None:
            return None
        value = self.repository.pushed_at
        try:
            if isinstance(value, int):
                return datetime.fromtimestamp(value, tz=timezone.utc)
            return parse_timestamp(value)
        except (ValueError, OverflowError, OSError):
            return None

    def head_commit_id(self) -> str | None:
        """Commit id the branch points to after the push."""
        if self.head_commit is not None and self.head_commit.id:
            return self.head_commit.id
        if self.after and self.after != _NULL_SHA:
            return self.after
        return None

    def changed_paths(self) -> list[str]:
        """Flatten added, modified and removed paths across all commits."""
        return [path for commit in self.commits for path in commit.paths()]


class WebhookOutcome(StrEnum):
    """Outcome of processing a push event."""

    NOT_TRACKED = "not_tracked"
    NO_REBUILD_NEEDED = "no_rebuild_needed"
    REBUILD_REQUESTED = "rebuild_requested"


@dataclass
class WebhookResult:
    """Result of processing a push event.

    Attributes:
        outcome: What the processor decided.
        repository_url: Tracked source URL the event matched, or the payload URL.
        content_paths: Content files that triggered the rebuild request.
        reason: Human-readable explanation.
    """

    outcome: WebhookOutcome
    repository_url: str | None = None
    content_paths: list[str] = field(default_factory=list)
    reason: str = ""

    @property
    def rebuild(self) -> bool:
        """Whether a rebuild was requested."""
        return self.outcome == WebhookOutcome.REBUILD_REQUESTED
