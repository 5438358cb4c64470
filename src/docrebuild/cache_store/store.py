"""CacheStore - JSON file persistence for repository state."""

from __future__ import annotations

import contextlib
import fcntl
import json
import logging
import os
import tempfile
import threading
from dataclasses import dataclass, field
from datetime import datetime  # noqa: TC003 - used at runtime in CacheInfo
from pathlib import Path
from typing import TYPE_CHECKING

from docrebuild.cache_store.models import BuildCacheRecord
from docrebuild.exceptions import CacheStoreError

if TYPE_CHECKING:
    from collections.abc import Iterator
    from typing import IO

logger = logging.getLogger(__name__)

DEFAULT_CACHE_PATH = ".temp/repos-cache.json"


@dataclass
class CacheInfo:
    """Summary of the cache contents."""

    path: Path
    exists: bool
    corrupt: bool = False
    last_build_time: datetime | None = None
    sources: list[str] = field(default_factory=list)
    stale_sources: list[str] = field(default_factory=list)


class CacheStore:
    """Loads and saves the build cache record.

    Loading never fails: a missing file yields an empty record and malformed
    content is logged and discarded. Saving writes a temporary file next to
    the target and replaces it, so readers never see a partial file.
    """

    def __init__(self, path: str | Path = DEFAULT_CACHE_PATH) -> None:
        """Initialize the store.

        Args:
            path: Path to the JSON cache file.
        """
        self.path = Path(path)
        self.last_load_corrupt = False
        self._lock = threading.RLock()
        self._lock_file: IO[str] | None = None

    @property
    def exists(self) -> bool:
        """Check if the cache file exists."""
        return self.path.exists()

    @property
    def lock_path(self) -> Path:
        """Sibling file other processes lock on."""
        return self.path.with_name(f"{self.path.name}.lock")

    @contextlib.contextmanager
    def locked(self) -> Iterator[None]:
        """Hold the store lock across threads and processes.

        Takes the in-process lock, then an exclusive ``flock`` on
        ``lock_path``. Re-entrant within one thread.

        Raises:
            CacheStoreError: If the lock file cannot be opened.
        """
        with self._lock:
            if self._lock_file is not None:
                yield
                return

            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                lock_file = open(self.lock_path, "w")  # noqa: SIM115
            except OSError as e:
                raise CacheStoreError(f"Failed to open lock file {self.lock_path}: {e}") from e

            try:
                fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX)
                self._lock_file = lock_file
                yield
            finally:
                self._lock_file = None
                fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)
                lock_file.close()

    def load(self) -> BuildCacheRecord:
        """Load the cache record.

        Returns:
            The persisted record, or an empty record if the file is missing
            or corrupt. ``last_load_corrupt`` tells the two apart.
        """
        self.last_load_corrupt = False

        if not self.path.exists():
            logger.debug("Cache file %s not found, starting empty", self.path)
            return BuildCacheRecord()

        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
            record = BuildCacheRecord.from_dict(data)
        except (OSError, ValueError) as e:
            # json.JSONDecodeError and UnicodeDecodeError are ValueErrors
            logger.warning("Cache file %s is corrupt, discarding it: %s", self.path, e)
            self.last_load_corrupt = True
            return BuildCacheRecord()

        logger.debug("Loaded cache with %d sources from %s", len(record.sources), self.path)
        return record

    def save(self, record: BuildCacheRecord) -> None:
        """Persist the full record atomically.

        Args:
            record: Record to write.

        Raises:
            CacheStoreError: If the file cannot be written.
        """
        data = record.to_dict()
        tmp_name: str | None = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self.path)
        except OSError as e:
            if tmp_name is not None:
                with contextlib.suppress(OSError):
                    os.unlink(tmp_name)
            logger.error("Failed to save cache to %s: %s", self.path, e)
            raise CacheStoreError(f"Failed to save cache to {self.path}: {e}") from e

        logger.debug("Saved cache with %d sources to %s", len(record.sources), self.path)

    @contextlib.contextmanager
    def transaction(self) -> Iterator[BuildCacheRecord]:
        """Load, yield for mutation, then save, under the store lock.

        The record is only written when the block exits normally; an exception
        leaves the file untouched.
        """
        with self.locked():
            record = self.load()
            yield record
            self.save(record)

    def clear(self) -> bool:
        """Delete the cache file.

        Returns:
            True if a file was removed.

        Raises:
            CacheStoreError: If the file exists but cannot be removed.
        """
        with self.locked():
            try:
                self.path.unlink()
            except FileNotFoundError:
                logger.info("Cache file %s does not exist", self.path)
                return False
            except OSError as e:
                logger.error("Failed to remove cache file %s: %s", self.path, e)
                raise CacheStoreError(f"Failed to remove cache file {self.path}: {e}") from e
        logger.info("Removed cache file %s", self.path)
        return True

    def info(self) -> CacheInfo:
        """Summarize the cache without modifying it."""
        with self._lock:
            exists = self.path.exists()
            record = self.load()
            corrupt = self.last_load_corrupt
        return CacheInfo(
            path=self.path,
            exists=exists,
            corrupt=corrupt,
            last_build_time=record.last_build_time,
            sources=list(record.sources),
            stale_sources=record.stale_sources(),
        )
