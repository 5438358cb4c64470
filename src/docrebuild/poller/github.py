"""GitHubClient - Commit lookups against the GitHub REST API."""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

import httpx

from docrebuild.exceptions import CommitLookupError
from docrebuild.logging import sanitize_for_log, truncate_output

if TYPE_CHECKING:
    from docrebuild.poller.models import RepoRef

logger = logging.getLogger(__name__)

DEFAULT_API_BASE_URL = "https://api.github.com"
DEFAULT_TIMEOUT = 10.0


class GitHubClient:
    """Resolves the latest commit of a repository through the GitHub API.

    The underlying httpx client is created lazily and shared between poller
    threads.
    """

    def __init__(
        self,
        token: str | None = None,
        base_url: str = DEFAULT_API_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize the client.

        Args:
            token: GitHub token; anonymous requests are made when empty
            base_url: GitHub API base URL (for testing/enterprise)
            timeout: Per-request timeout in seconds
        """
        self.token = token or None
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client: httpx.Client | None = None
        self._client_lock = threading.Lock()

    @property
    def client(self) -> httpx.Client:
        """Get or create HTTP client for GitHub API."""
        with self._client_lock:
            if self._client is None:
                headers = {
                    "Accept": "application/vnd.github+json",
                    "X-GitHub-Api-Version": "2022-11-28",
                }
                if self.token:
                    headers["Authorization"] = f"Bearer {self.token}"
                self._client = httpx.Client(
                    base_url=self.base_url,
                    headers=headers,
                    timeout=self.timeout,
                )
            return self._client

    def close(self) -> None:
        """Close the HTTP client."""
        with self._client_lock:
            if self._client is not None:
                self._client.close()
                self._client = None

    def __enter__(self) -> GitHubClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def get_head_commit(self, ref: RepoRef) -> str:
        """Get the commit id of HEAD on the default branch.

        Args:
            ref: Repository to query

        Returns:
            The commit sha

        Raises:
            CommitLookupError: On transport failure, timeout, non-200 status,
                or a response without a sha
        """
        path = f"/repos/{ref.owner}/{ref.repo}/commits/HEAD"
        try:
            response = self.client.get(path)
        except httpx.HTTPError as e:
            logger.warning("Commit lookup for %s failed: %s", ref.full_name, e)
            raise CommitLookupError(f"Request for {ref.full_name} failed: {e}") from e

        if response.status_code != 200:
            body = sanitize_for_log(truncate_output(response.text))
            logger.warning(
                "Commit lookup for %s returned %d: %s", ref.full_name, response.status_code, body
            )
            raise CommitLookupError(
                f"Failed to get HEAD of {ref.full_name}: {response.status_code}"
            )

        try:
            data = response.json()
        except ValueError as e:
            raise CommitLookupError(f"Invalid JSON in response for {ref.full_name}") from e

        sha = data.get("sha") if isinstance(data, dict) else None
        if not isinstance(sha, str) or not sha:
            raise CommitLookupError(f"No commit sha in response for {ref.full_name}")

        logger.debug("HEAD of %s is %s", ref.full_name, sha[:8])
        return sha
