"""Data models for rebuild decisions."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class RebuildVerdict:
    """A go/no-go rebuild decision.

    Attributes:
        force_rebuild: Full rebuild required (local changes, corrupt cache,
            or a failure while deciding).
        changed_sources: Source URLs confirmed changed, in configuration order.
        reason: Human-readable explanation.
        error: Failure that forced this verdict, if any.
    """

    force_rebuild: bool = False
    changed_sources: list[str] = field(default_factory=list)
    reason: str = ""
    error: str | None = None

    @property
    def has_changes(self) -> bool:
        """Whether anything requires a rebuild."""
        return self.force_rebuild or bool(self.changed_sources)

    @classmethod
    def fail_safe(cls, error: str, reason: str = "decision failed") -> RebuildVerdict:
        """Verdict used when the decision itself could not be made."""
        return cls(force_rebuild=True, changed_sources=[], reason=reason, error=error)
