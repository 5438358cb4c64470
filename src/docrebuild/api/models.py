"""Pydantic models for REST API."""

from datetime import datetime
from typing import Generic, TypeVar

from pydantic import BaseModel

from docrebuild.cache_store import CacheInfo
from docrebuild.policy import RebuildVerdict
from docrebuild.webhook import WebhookResult

T = TypeVar("T")


class APIResponse(BaseModel, Generic[T]):
    """Standard API response wrapper."""

    data: T | None = None
    error: str | None = None


# Webhook models


class WebhookResultResponse(BaseModel):
    """Response model for a processed webhook delivery."""

    event: str
    outcome: str
    rebuild: bool
    repository_url: str | None = None
    content_paths: list[str] = []
    reason: str = ""


def webhook_result_to_response(event: str, result: WebhookResult) -> WebhookResultResponse:
    """Convert a WebhookResult to WebhookResultResponse."""
    return WebhookResultResponse(
        event=event,
        outcome=result.outcome.value,
        rebuild=result.rebuild,
        repository_url=result.repository_url,
        content_paths=result.content_paths,
        reason=result.reason,
    )


# Rebuild models


class VerdictResponse(BaseModel):
    """Response model for a rebuild decision."""

    force_rebuild: bool
    changed_sources: list[str]
    has_changes: bool
    reason: str
    error: str | None = None


def verdict_to_response(verdict: RebuildVerdict) -> VerdictResponse:
    """Convert a RebuildVerdict to VerdictResponse."""
    return VerdictResponse(
        force_rebuild=verdict.force_rebuild,
        changed_sources=verdict.changed_sources,
        has_changes=verdict.has_changes,
        reason=verdict.reason,
        error=verdict.error,
    )


class BuildRecordResponse(BaseModel):
    """Response model for a recorded build."""

    recorded: bool


# Cache models


class CacheInfoResponse(BaseModel):
    """Response model for the cache summary."""

    path: str
    exists: bool
    corrupt: bool
    last_build_time: datetime | None
    sources: list[str]
    stale_sources: list[str]


def cache_info_to_response(info: CacheInfo) -> CacheInfoResponse:
    """Convert a CacheInfo to CacheInfoResponse."""
    return CacheInfoResponse(
        path=str(info.path),
        exists=info.exists,
        corrupt=info.corrupt,
        last_build_time=info.last_build_time,
        sources=info.sources,
        stale_sources=info.stale_sources,
    )


class CacheClearResponse(BaseModel):
    """Response model for clearing the cache."""

    removed: bool
