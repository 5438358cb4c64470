"""WebhookProcessor - Turns push events into stale flags."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from docrebuild.cache_store.models import utcnow
from docrebuild.poller.models import normalize_source_url
from docrebuild.webhook.models import PushEvent, WebhookOutcome, WebhookResult

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime

    from docrebuild.cache_store import CacheStore

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_EXTENSIONS = (".md",)


class WebhookProcessor:
    """Marks a tracked source stale when a push touches content files.

    Pushes that only touch other files (assets, CI config) leave the cache
    untouched.
    """

    def __init__(
        self,
        store: CacheStore,
        tracked_urls: Iterable[str],
        content_extensions: Iterable[str] = DEFAULT_CONTENT_EXTENSIONS,
    ) -> None:
        """Initialize the processor.

        Args:
            store: Cache store to write stale flags into.
            tracked_urls: Configured source URLs.
            content_extensions: File extensions that count as content.
        """
        self.store = store
        self._tracked = {normalize_source_url(url): url for url in tracked_urls}
        self.content_extensions = tuple(
            ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in content_extensions
        )

    def match_source(self, url: str | None) -> str | None:
        """Find the configured source URL matching a payload URL.

        Returns:
            The configured URL, or None if the repository is not tracked.
        """
        if not url:
            return None
        return self._tracked.get(normalize_source_url(url))

    def is_content_file(self, path: str) -> bool:
        """Check if a path is a content file by extension."""
        return path.lower().endswith(self.content_extensions)

    def process(self, event: PushEvent, now: datetime | None = None) -> WebhookResult:
        """Process a push event.

        Args:
            event: Parsed push event.
            now: Processing time to record; defaults to the current UTC time.

        Returns:
            WebhookResult describing the outcome.

        Raises:
            CacheStoreError: If the stale flag cannot be persisted.
        """
        payload_url = event.repository_url
        if not payload_url:
            logger.info("No repository URL in payload")
            return WebhookResult(
                outcome=WebhookOutcome.NOT_TRACKED, reason="no repository url in payload"
            )

        source_url = self.match_source(payload_url)
        if source_url is None:
            logger.info("Repository %s is not tracked", payload_url)
            return WebhookResult(
                outcome=WebhookOutcome.NOT_TRACKED,
                repository_url=payload_url,
                reason="repository not tracked",
            )

        logger.info(
            "Webhook received for tracked repository %s (%d commits)",
            source_url,
            len(event.commits),
        )

        content_paths = [p for p in event.changed_paths() if self.is_content_file(p)]
        if not content_paths:
            logger.info("No content files changed in %s, skipping rebuild", source_url)
            return WebhookResult(
                outcome=WebhookOutcome.NO_REBUILD_NEEDED,
                repository_url=source_url,
                reason="no content files changed",
            )

        if now is None:
            now = utcnow()

        with self.store.transaction() as record:
            source = record.get_or_create(source_url)
            source.stale = True
            source.last_update = now
            source.pushed_at = event.pushed_at_time()
            source.pushed_commit = event.head_commit_id()

        logger.info(
            "Content files changed in %s (%d files), marked stale", source_url, len(content_paths)
        )
        return WebhookResult(
            outcome=WebhookOutcome.REBUILD_REQUESTED,
            repository_url=source_url,
            content_paths=content_paths,
            reason="content files changed",
        )

    def process_payload(self, payload: Any, now: datetime | None = None) -> WebhookResult:
        """Validate and process a raw payload.

        Never raises: an invalid payload or any failure while processing
        resolves to a rebuild request.

        Args:
            payload: Decoded JSON payload.
            now: Processing time to record.

        Returns:
            WebhookResult describing the outcome.
        """
        try:
            event = PushEvent.model_validate(payload)
        except ValidationError as e:
            logger.error("Invalid push payload, requesting rebuild: %s", e)
            return WebhookResult(
                outcome=WebhookOutcome.REBUILD_REQUESTED, reason="invalid payload"
            )

        try:
            return self.process(event, now=now)
        except Exception as e:
            logger.exception("Error handling webhook, requesting rebuild")
            return WebhookResult(
                outcome=WebhookOutcome.REBUILD_REQUESTED,
                repository_url=event.repository_url,
                reason=f"error: {e}",
            )
