"""FastAPI dependencies for dependency injection."""

from __future__ import annotations

from collections.abc import Generator  # noqa: TC003
from typing import Annotated

from fastapi import Depends

from docrebuild.cache_store import CacheStore
from docrebuild.engine import Engine
from docrebuild.policy import RebuildPolicy
from docrebuild.webhook import WebhookProcessor

# Global Engine instance (initialized on app startup)
_engine: Engine | None = None


def init_engine(engine: Engine) -> Engine:
    """Initialize the global Engine instance."""
    global _engine  # noqa: PLW0603
    _engine = engine
    return _engine


def close_engine() -> None:
    """Close the global Engine instance."""
    global _engine  # noqa: PLW0603
    if _engine is not None:
        _engine.close()
        _engine = None


def _require_engine() -> Engine:
    if _engine is None:
        raise RuntimeError("Engine not initialized. Call init_engine() first.")
    return _engine


def get_cache_store() -> Generator[CacheStore, None, None]:
    """Dependency that provides the CacheStore instance."""
    yield _require_engine().store


def get_policy() -> Generator[RebuildPolicy, None, None]:
    """Dependency that provides the RebuildPolicy instance."""
    yield _require_engine().policy


def get_processor() -> Generator[WebhookProcessor, None, None]:
    """Dependency that provides the WebhookProcessor instance."""
    yield _require_engine().processor


# Type aliases for dependency injection
CacheStoreDep = Annotated[CacheStore, Depends(get_cache_store)]
PolicyDep = Annotated[RebuildPolicy, Depends(get_policy)]
ProcessorDep = Annotated[WebhookProcessor, Depends(get_processor)]
