"""Wires configuration into the cache store, detectors and decision policy."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from docrebuild.cache_store import CacheStore
from docrebuild.local_detector import LocalChangeDetector
from docrebuild.poller import GitHubClient, RemotePoller, parse_source_url
from docrebuild.policy import RebuildPolicy
from docrebuild.webhook import WebhookProcessor

if TYPE_CHECKING:
    from docrebuild.config import DocRebuildConfig

logger = logging.getLogger(__name__)


@dataclass
class Engine:
    """All components of the rebuild decision engine for one configuration."""

    config: DocRebuildConfig
    store: CacheStore
    client: GitHubClient
    poller: RemotePoller
    local_detector: LocalChangeDetector
    policy: RebuildPolicy
    processor: WebhookProcessor

    def validate_sources(self) -> None:
        """Check every configured source URL.

        Raises:
            InvalidSourceURLError: If any URL is malformed.
        """
        for url in self.config.source_urls:
            parse_source_url(url)

    def close(self) -> None:
        """Release the HTTP client."""
        self.client.close()


def create_engine(config: DocRebuildConfig, token: str | None = None) -> Engine:
    """Build an Engine from configuration.

    Args:
        config: Loaded configuration.
        token: GitHub token; looked up from the environment when None.

    Returns:
        A ready Engine; call close() when done.
    """
    if token is None:
        token = config.get_github_token()
    if not token:
        logger.info("No GitHub token configured, using anonymous API requests")

    store = CacheStore(config.get_cache_path())
    client = GitHubClient(
        token=token,
        base_url=config.api_base_url,
        timeout=config.request_timeout,
    )
    poller = RemotePoller(client, max_workers=config.max_workers)
    local_detector = LocalChangeDetector(config.get_repo_path())
    policy = RebuildPolicy(
        store=store,
        source_urls=config.source_urls,
        local_detector=local_detector,
        poller=poller,
        max_interval=config.max_interval,
    )
    processor = WebhookProcessor(
        store=store,
        tracked_urls=config.source_urls,
        content_extensions=config.content_extensions,
    )

    logger.info("Tracking %d sources, cache at %s", len(config.sources), store.path)
    for source in config.sources:
        logger.debug("  - %s", source.label)

    return Engine(
        config=config,
        store=store,
        client=client,
        poller=poller,
        local_detector=local_detector,
        policy=policy,
        processor=processor,
    )
