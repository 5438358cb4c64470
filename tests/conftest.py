"""Shared pytest fixtures and configuration."""

import logging
from datetime import datetime, timezone
from pathlib import Path

import pytest

from docrebuild.cache_store import CacheStore


# Register custom markers
def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for test categorization."""
    config.addinivalue_line("markers", "unit: fast tests with no external dependencies")
    config.addinivalue_line("markers", "integration: component interaction tests")
    config.addinivalue_line("markers", "real: actual GitHub API access (local only)")


# Shared fixtures


@pytest.fixture
def cache_path(tmp_path: Path) -> Path:
    """Path for a cache file that does not exist yet."""
    return tmp_path / "cache" / "repos-cache.json"


@pytest.fixture
def store(cache_path: Path) -> CacheStore:
    """CacheStore backed by a temporary file."""
    return CacheStore(cache_path)


@pytest.fixture
def now() -> datetime:
    """Fixed decision time."""
    return datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def _reset_docrebuild_logger():
    """Drop handlers installed by setup_logging so later tests log nowhere stale."""
    yield
    logger = logging.getLogger("docrebuild")
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()
