"""Webhook Processor - Marks tracked sources stale from push events."""

from docrebuild.webhook.models import (
    PushCommit,
    PushEvent,
    PushRepository,
    WebhookOutcome,
    WebhookResult,
)
from docrebuild.webhook.processor import DEFAULT_CONTENT_EXTENSIONS, WebhookProcessor

__all__ = [
    "DEFAULT_CONTENT_EXTENSIONS",
    "PushCommit",
    "PushEvent",
    "PushRepository",
    "WebhookOutcome",
    "WebhookProcessor",
    "WebhookResult",
]
