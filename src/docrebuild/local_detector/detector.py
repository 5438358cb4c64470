"""LocalChangeDetector - Compares the latest local commit with the last build."""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from docrebuild.cache_store.models import parse_timestamp

logger = logging.getLogger(__name__)


@dataclass
class LocalChangeResult:
    """Outcome of a local change check.

    Attributes:
        changed: Whether the local repository counts as changed.
        commit_time: Timestamp of the latest local commit, if it could be read.
        reason: Human-readable explanation.
    """

    changed: bool
    commit_time: datetime | None
    reason: str


class LocalChangeDetector:
    """Detects whether the build's own repository changed since the last build.

    Any failure to read the latest commit counts as a change.
    """

    def __init__(self, repo_path: str | Path = ".") -> None:
        """Initialize the detector.

        Args:
            repo_path: Path to the local repository.
        """
        self.repo_path = Path(repo_path)

    def _run_git(self, *args: str) -> str:
        """Run a git command in the repo directory.

        Args:
            *args: Git command arguments

        Returns:
            Command stdout

        Raises:
            subprocess.CalledProcessError: If command fails
            FileNotFoundError: If git is not installed
        """
        result = subprocess.run(
            ["git", *args],
            cwd=self.repo_path,
            capture_output=True,
            text=True,
            check=True,
        )
        return result.stdout.strip()

    def latest_commit_time(self) -> datetime | None:
        """Read the committer timestamp of HEAD.

        Returns:
            Commit time, or None if no commit could be read.
        """
        try:
            output = self._run_git("log", "-1", "--format=%cI")
        except subprocess.CalledProcessError as e:
            logger.warning("Could not read latest commit in %s: %s", self.repo_path, e.stderr)
            return None
        except OSError as e:
            logger.warning("Could not run git in %s: %s", self.repo_path, e)
            return None

        if not output:
            logger.warning("No commits found in %s", self.repo_path)
            return None

        try:
            return parse_timestamp(output)
        except ValueError:
            logger.warning("Unparseable commit date from git: %r", output)
            return None

    def check(self, last_build_time: datetime | None) -> LocalChangeResult:
        """Compare the latest local commit with the last build time.

        Args:
            last_build_time: When the last decision cycle ran, or None.

        Returns:
            LocalChangeResult; changed when the commit is strictly newer than
            the last build, when there is no last build, or when no commit
            could be read.
        """
        commit_time = self.latest_commit_time()

        if commit_time is None:
            logger.info("Could not check local repository, assuming changes exist")
            return LocalChangeResult(
                changed=True, commit_time=None, reason="latest commit unavailable"
            )

        if last_build_time is None:
            logger.info("No previous build recorded, local repository counts as changed")
            return LocalChangeResult(
                changed=True, commit_time=commit_time, reason="no previous build"
            )

        if commit_time > last_build_time:
            logger.info(
                "Local repository has changes (commit %s > last build %s)",
                commit_time.isoformat(),
                last_build_time.isoformat(),
            )
            return LocalChangeResult(
                changed=True, commit_time=commit_time, reason="new local commits"
            )

        logger.debug("Local repository unchanged since %s", last_build_time.isoformat())
        return LocalChangeResult(changed=False, commit_time=commit_time, reason="up to date")
