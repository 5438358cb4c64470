"""REST API for docrebuild."""

from docrebuild.api.app import create_app
from docrebuild.api.models import (
    APIResponse,
    CacheInfoResponse,
    VerdictResponse,
    WebhookResultResponse,
)

__all__ = [
    "APIResponse",
    "CacheInfoResponse",
    "VerdictResponse",
    "WebhookResultResponse",
    "create_app",
]
