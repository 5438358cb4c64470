"""Local Detector - Detects new commits in the site's own repository."""

from docrebuild.local_detector.detector import LocalChangeDetector, LocalChangeResult

__all__ = [
    "LocalChangeDetector",
    "LocalChangeResult",
]
