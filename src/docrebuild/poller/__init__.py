"""Remote Poller - Compares cached commits with live upstream state."""

from docrebuild.poller.github import DEFAULT_API_BASE_URL, GitHubClient
from docrebuild.poller.models import (
    PollResult,
    RepoRef,
    SourceCheck,
    normalize_source_url,
    parse_source_url,
)
from docrebuild.poller.poller import RemotePoller

__all__ = [
    "DEFAULT_API_BASE_URL",
    "GitHubClient",
    "PollResult",
    "RemotePoller",
    "RepoRef",
    "SourceCheck",
    "normalize_source_url",
    "parse_source_url",
]
