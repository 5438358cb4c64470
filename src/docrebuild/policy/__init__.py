"""Decision Policy - Combines change signals into one rebuild verdict."""

from docrebuild.policy.models import RebuildVerdict
from docrebuild.policy.policy import DEFAULT_MAX_INTERVAL, RebuildPolicy

__all__ = [
    "DEFAULT_MAX_INTERVAL",
    "RebuildPolicy",
    "RebuildVerdict",
]
