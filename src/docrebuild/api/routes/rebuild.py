"""Rebuild decision endpoints."""

from fastapi import APIRouter

from docrebuild.api.dependencies import PolicyDep
from docrebuild.api.models import (
    APIResponse,
    BuildRecordResponse,
    VerdictResponse,
    verdict_to_response,
)

router = APIRouter(tags=["rebuild"])


@router.post("/rebuild", response_model=APIResponse[VerdictResponse])
def should_rebuild(policy: PolicyDep) -> APIResponse[VerdictResponse]:
    """Decide from the cache whether to rebuild. Consumes stale flags."""
    return APIResponse(data=verdict_to_response(policy.should_rebuild()))


@router.post("/rebuild/check", response_model=APIResponse[VerdictResponse])
def check(policy: PolicyDep) -> APIResponse[VerdictResponse]:
    """Poll all tracked repositories and decide whether to rebuild."""
    return APIResponse(data=verdict_to_response(policy.decide_cycle()))


@router.post("/rebuild/complete", response_model=APIResponse[BuildRecordResponse])
def record_build(policy: PolicyDep) -> APIResponse[BuildRecordResponse]:
    """Record that a rebuild just finished."""
    recorded = policy.record_build()
    if not recorded:
        return APIResponse(
            data=BuildRecordResponse(recorded=False), error="Failed to record build time"
        )
    return APIResponse(data=BuildRecordResponse(recorded=True))
