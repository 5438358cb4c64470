"""RebuildPolicy - Decides whether the site must be rebuilt now.

Every entry point resolves to a verdict and never raises. Anything that
cannot be decided is resolved to "rebuild".
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import TYPE_CHECKING

from docrebuild.cache_store.models import as_utc, utcnow
from docrebuild.exceptions import ConfigurationError
from docrebuild.policy.models import RebuildVerdict

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime

    from docrebuild.cache_store import CacheStore
    from docrebuild.local_detector import LocalChangeDetector
    from docrebuild.poller import RemotePoller

logger = logging.getLogger(__name__)

DEFAULT_MAX_INTERVAL = timedelta(hours=12)


class RebuildPolicy:
    """Combines local changes, remote changes, stale flags and a time floor.

    Two entry points:
    - decide_cycle(): poll-and-decide flow (local detector + remote poller)
    - should_rebuild(): webhook-reactive flow (stale flags + time floor)
    """

    def __init__(
        self,
        store: CacheStore,
        source_urls: Iterable[str],
        local_detector: LocalChangeDetector,
        poller: RemotePoller,
        max_interval: timedelta = DEFAULT_MAX_INTERVAL,
    ) -> None:
        """Initialize the policy.

        Args:
            store: Cache store holding repository state.
            source_urls: Configured source URLs, in order.
            local_detector: Detector for the site's own repository.
            poller: Poller for remote sources.
            max_interval: Longest time allowed without a rebuild.
        """
        self.store = store
        self.source_urls = list(source_urls)
        self.local_detector = local_detector
        self.poller = poller
        self.max_interval = max_interval

    def decide_cycle(self, now: datetime | None = None) -> RebuildVerdict:
        """Run one poll-and-decide cycle.

        Looks up every remote source, then under the store lock compares the
        local repository and the lookups with the cache, advances
        last_build_time and persists the cache once.

        Args:
            now: Cycle time; defaults to the current UTC time.

        Returns:
            The verdict. A configuration error or any unexpected failure
            yields a forced rebuild with ``error`` set.
        """
        try:
            checks = self.poller.check_all(self.source_urls)
            now = as_utc(now) if now is not None else utcnow()

            with self.store.transaction() as record:
                corrupt = self.store.last_load_corrupt
                local = self.local_detector.check(record.last_build_time)
                poll = self.poller.apply(record, checks, now=now)
                record.mark_built(now)
        except ConfigurationError as e:
            logger.error("Configuration error, forcing rebuild: %s", e)
            return RebuildVerdict.fail_safe(str(e), reason="configuration error")
        except Exception as e:
            logger.exception("Error checking repository changes, forcing rebuild")
            return RebuildVerdict.fail_safe(str(e))

        reasons = []
        if corrupt:
            reasons.append("cache was corrupt")
        if local.changed:
            reasons.append(f"local: {local.reason}")
        if poll.changed:
            reasons.append(f"{len(poll.changed)} sources changed")

        verdict = RebuildVerdict(
            force_rebuild=local.changed or corrupt,
            changed_sources=list(poll.changed),
            reason="; ".join(reasons) or "no changes",
        )
        logger.info(
            "Force rebuild: %s, changed repositories: %d",
            verdict.force_rebuild,
            len(verdict.changed_sources),
        )
        return verdict

    def should_rebuild(self, now: datetime | None = None) -> RebuildVerdict:
        """Decide from the cache alone whether to rebuild.

        Stale flags are consumed: they are cleared and persisted before
        returning, so each one is reported once. Without stale flags a rebuild
        is still forced when the last build is older than ``max_interval``.

        Args:
            now: Decision time; defaults to the current UTC time.

        Returns:
            The verdict; stale sources are listed in ``changed_sources``.
        """
        try:
            now = as_utc(now) if now is not None else utcnow()

            with self.store.locked():
                if not self.store.exists:
                    logger.info("No cache found, rebuild needed")
                    return RebuildVerdict(force_rebuild=True, reason="no cache")

                record = self.store.load()
                if self.store.last_load_corrupt:
                    return RebuildVerdict(force_rebuild=True, reason="cache was corrupt")

                drained = record.drain_stale_flags()
                if drained:
                    self.store.save(record)

            if drained:
                logger.info("Found %d repositories marked for rebuild", len(drained))
                return RebuildVerdict(
                    changed_sources=self._in_config_order(drained),
                    reason="sources marked stale",
                )

            if record.last_build_time is None:
                logger.info("No previous build recorded, triggering rebuild")
                return RebuildVerdict(force_rebuild=True, reason="no previous build")

            elapsed = now - record.last_build_time
        except Exception as e:
            logger.exception("Error checking rebuild status, forcing rebuild")
            return RebuildVerdict.fail_safe(str(e))

        if elapsed > self.max_interval:
            hours = round(elapsed.total_seconds() / 3600)
            logger.info("Last build was %d hours ago, triggering rebuild", hours)
            return RebuildVerdict(
                force_rebuild=True, reason=f"last build {hours} hours ago"
            )

        logger.info("No rebuild needed")
        return RebuildVerdict(reason="no changes")

    def _in_config_order(self, urls: list[str]) -> list[str]:
        """Sort URLs by configured position; unconfigured URLs go last."""
        position = {url: i for i, url in enumerate(self.source_urls)}
        return sorted(urls, key=lambda url: position.get(url, len(position)))

    def record_build(self, now: datetime | None = None) -> bool:
        """Record that a rebuild ran, advancing last_build_time.

        Stale flags are left alone.

        Args:
            now: Build time; defaults to the current UTC time.

        Returns:
            True if the cache was updated.
        """
        now = as_utc(now) if now is not None else utcnow()
        try:
            with self.store.transaction() as record:
                record.mark_built(now)
        except Exception:
            logger.exception("Failed to record build time")
            return False
        logger.info("Recorded build at %s", now.isoformat())
        return True
