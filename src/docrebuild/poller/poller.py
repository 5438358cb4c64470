"""RemotePoller - Checks every tracked source for new upstream commits."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING

from docrebuild.cache_store.models import utcnow
from docrebuild.poller.models import PollResult, SourceCheck, parse_source_url

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime

    from docrebuild.cache_store import BuildCacheRecord
    from docrebuild.poller.github import GitHubClient
    from docrebuild.poller.models import RepoRef

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 8


class RemotePoller:
    """Compares cached commit ids with the latest upstream commits.

    Lookups run concurrently and share nothing; their results are merged into
    the record only after every lookup has finished. A failed lookup counts
    as a change.
    """

    def __init__(self, client: GitHubClient, max_workers: int = DEFAULT_MAX_WORKERS) -> None:
        """Initialize the poller.

        Args:
            client: Client used for commit lookups.
            max_workers: Maximum concurrent lookups.
        """
        self.client = client
        self.max_workers = max(1, max_workers)

    def _lookup(self, url: str, ref: RepoRef) -> SourceCheck:
        try:
            commit = self.client.get_head_commit(ref)
        except Exception as e:  # noqa: BLE001 - each source is failure-isolated
            return SourceCheck(url=url, error=str(e))
        return SourceCheck(url=url, commit=commit)

    def check_all(self, urls: Iterable[str]) -> list[SourceCheck]:
        """Look up the latest commit of every source.

        All URLs are validated before any request is made.

        Args:
            urls: Source URLs; duplicates are checked once.

        Returns:
            One SourceCheck per distinct URL, in input order.

        Raises:
            InvalidSourceURLError: If any URL is malformed.
        """
        refs = {url: parse_source_url(url) for url in dict.fromkeys(urls)}
        if not refs:
            return []

        workers = min(self.max_workers, len(refs))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="poller") as pool:
            return list(pool.map(self._lookup, refs.keys(), refs.values()))

    def poll(
        self,
        record: BuildCacheRecord,
        urls: Iterable[str],
        now: datetime | None = None,
    ) -> PollResult:
        """Poll all sources and update the in-memory record.

        Args:
            record: Cache record to compare against and update.
            urls: Configured source URLs.
            now: Check time to record; defaults to the current UTC time.

        Returns:
            PollResult with changed and unchanged URLs.

        Raises:
            InvalidSourceURLError: If any URL is malformed.
        """
        return self.apply(record, self.check_all(urls), now=now)

    def apply(
        self,
        record: BuildCacheRecord,
        checks: list[SourceCheck],
        now: datetime | None = None,
    ) -> PollResult:
        """Merge lookup results into the record.

        Args:
            record: Cache record to compare against and update.
            checks: Results from check_all().
            now: Check time to record; defaults to the current UTC time.

        Returns:
            PollResult with changed and unchanged URLs.
        """
        if now is None:
            now = utcnow()

        result = PollResult()
        for check in checks:
            if not check.ok:
                logger.warning("Could not check %s, assuming changes: %s", check.url, check.error)
                result.changed.append(check.url)
                result.errors[check.url] = check.error or "no commit returned"
                continue

            source = record.get_or_create(check.url)
            if source.last_commit != check.commit:
                logger.info(
                    "Repository %s has changes (%s -> %s)",
                    check.url,
                    source.last_commit[:8] if source.last_commit else "None",
                    (check.commit or "")[:8],
                )
                source.last_commit = check.commit
                source.last_check = now
                result.changed.append(check.url)
            else:
                logger.info("Repository %s is up to date", check.url)
                result.unchanged.append(check.url)

        logger.info(
            "Poll complete: %d changed, %d unchanged, %d failed",
            len(result.changed),
            len(result.unchanged),
            len(result.errors),
        )
        return result
