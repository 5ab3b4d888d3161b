"""Behavioral threat detection endpoints."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from coworkhub.api.deps import get_tenant_id, get_threat_service
from coworkhub.schemas.common import ApiResponse, ErrorResponse
from coworkhub.schemas.threat import BehaviorProfileResponse, ThreatAnalysis, UserActivity
from coworkhub.services.threat.service import ThreatDetectionService

router = APIRouter()


@router.post("/activity", response_model=ApiResponse[BehaviorProfileResponse])
def record_activity(
    body: UserActivity,
    tenant_id: str = Depends(get_tenant_id),
    service: ThreatDetectionService = Depends(get_threat_service),
):
    """Fold one activity sample into the user's behavior baseline."""
    profile = service.update_profile(tenant_id, body)
    return ApiResponse(data=BehaviorProfileResponse.model_validate(profile))


@router.post("/analyze", response_model=ApiResponse[ThreatAnalysis])
def analyze_activity(
    body: UserActivity,
    tenant_id: str = Depends(get_tenant_id),
    service: ThreatDetectionService = Depends(get_threat_service),
):
    """Score one activity sample against the user's baseline."""
    return ApiResponse(data=service.analyze_behavior(tenant_id, body))


@router.get("/profiles/{user_id}", response_model=ApiResponse[BehaviorProfileResponse])
def get_profile(
    user_id: str,
    tenant_id: str = Depends(get_tenant_id),
    service: ThreatDetectionService = Depends(get_threat_service),
):
    profile = service.get_profile(tenant_id, user_id)
    if profile is None:
        return JSONResponse(
            status_code=404,
            content=ErrorResponse(error="Behavior profile not found").model_dump(),
        )
    return ApiResponse(data=BehaviorProfileResponse.model_validate(profile))
