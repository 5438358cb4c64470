"""Webhook endpoint for hosting provider push events."""

import json
import logging
from typing import Annotated

from fastapi import APIRouter, Header, Request
from fastapi.concurrency import run_in_threadpool

from docrebuild.api.dependencies import ProcessorDep
from docrebuild.api.models import (
    APIResponse,
    WebhookResultResponse,
    webhook_result_to_response,
)
from docrebuild.webhook import WebhookOutcome, WebhookResult

logger = logging.getLogger(__name__)

router = APIRouter(tags=["webhooks"])


@router.post("/webhooks/github", response_model=APIResponse[WebhookResultResponse])
async def github_webhook(
    request: Request,
    processor: ProcessorDep,
    x_github_event: Annotated[str | None, Header()] = None,
) -> APIResponse[WebhookResultResponse]:
    """Receive a GitHub webhook delivery.

    Push events are processed; ping deliveries are answered and every other
    event is ignored. A body that is not JSON requests a rebuild.
    """
    event = x_github_event or "push"

    if event == "ping":
        return APIResponse(
            data=WebhookResultResponse(
                event=event, outcome="pong", rebuild=False, reason="pong"
            )
        )

    if event != "push":
        logger.info("Ignoring %s event", event)
        return APIResponse(
            data=WebhookResultResponse(
                event=event, outcome="ignored", rebuild=False, reason=f"{event} events are ignored"
            )
        )

    body = await request.body()
    try:
        payload = json.loads(body)
    except ValueError:
        logger.error("Webhook body is not valid JSON, requesting rebuild")
        result = WebhookResult(outcome=WebhookOutcome.REBUILD_REQUESTED, reason="invalid payload")
    else:
        result = await run_in_threadpool(processor.process_payload, payload)

    return APIResponse(data=webhook_result_to_response(event, result))
