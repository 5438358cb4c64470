"""Step outputs for CI orchestration (GitHub Actions ``GITHUB_OUTPUT``)."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from docrebuild.policy import RebuildVerdict

logger = logging.getLogger(__name__)

GITHUB_OUTPUT_ENV = "GITHUB_OUTPUT"


def verdict_outputs(verdict: RebuildVerdict) -> dict[str, str]:
    """Render a verdict as step output values.

    Returns:
        Mapping with ``force-rebuild``, ``changed-repos`` (JSON list) and
        ``has-changes``.
    """
    return {
        "force-rebuild": str(verdict.force_rebuild).lower(),
        "changed-repos": json.dumps(verdict.changed_sources),
        "has-changes": str(verdict.has_changes).lower(),
    }


def write_outputs(outputs: dict[str, str], output_path: str | Path | None = None) -> Path | None:
    """Append outputs as ``key=value`` lines to the CI output file.

    Args:
        outputs: Output values; must be single-line.
        output_path: Output file; defaults to the ``GITHUB_OUTPUT`` variable.

    Returns:
        The file written to, or None when no output file is configured.
    """
    for key, value in outputs.items():
        logger.info("Output %s=%s", key, value)

    if output_path is None:
        output_path = os.environ.get(GITHUB_OUTPUT_ENV) or None
    if output_path is None:
        logger.debug("%s not set, outputs only logged", GITHUB_OUTPUT_ENV)
        return None

    path = Path(output_path)
    with open(path, "a", encoding="utf-8") as f:
        for key, value in outputs.items():
            f.write(f"{key}={value}\n")
    return path
