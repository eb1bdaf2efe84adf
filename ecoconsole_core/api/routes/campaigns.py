"""Partner campaign API routes: details, verification queue and stats."""

from fastapi import APIRouter

from ecoconsole_core.api.deps import CampaignServiceDep, CurrentPartner, VerificationServiceDep
from ecoconsole_core.api.schemas.campaigns import (
    CampaignDetailEnvelope,
    CampaignDetailResponse,
    CampaignListResponse,
    CampaignResponse,
    DataResponse,
    MissionTemplateResponse,
    VerificationDecisionRequest,
    VerificationDecisionResponse,
)

router = APIRouter(prefix="/api/campaigns", tags=["campaigns"])


@router.get("", response_model=CampaignListResponse)
async def list_campaigns(
    partner: CurrentPartner,
    campaign_service: CampaignServiceDep,
):
    """List the partner's campaigns, newest first."""
    campaigns = campaign_service.list_partner_campaigns(partner.id)
    return CampaignListResponse(data=[CampaignResponse.model_validate(c) for c in campaigns])


@router.get("/{campaign_id}", response_model=CampaignDetailEnvelope)
async def get_campaign(
    campaign_id: int,
    partner: CurrentPartner,
    campaign_service: CampaignServiceDep,
):
    """Get one of the partner's campaigns with its mission templates."""
    campaign, templates = campaign_service.campaign_detail(partner.id, campaign_id)
    detail = CampaignDetailResponse.model_validate(campaign)
    detail.mission_templates = [MissionTemplateResponse.model_validate(t) for t in templates]
    return CampaignDetailEnvelope(data=detail)


@router.get("/{campaign_id}/verifications", response_model=DataResponse)
async def get_verifications(
    campaign_id: int,
    partner: CurrentPartner,
    verification_service: VerificationServiceDep,
):
    """Participants awaiting (or past) verification for a campaign."""
    queue = verification_service.get_queue(partner.id, campaign_id)
    return DataResponse(data=queue.to_dict())


@router.patch(
    "/{campaign_id}/verifications",
    response_model=VerificationDecisionResponse,
    response_model_exclude_none=True,
)
async def decide_verification(
    campaign_id: int,
    request: VerificationDecisionRequest,
    partner: CurrentPartner,
    verification_service: VerificationServiceDep,
):
    """Approve or reject a participant's full mission set."""
    decision = verification_service.decide(
        partner.id,
        campaign_id,
        user_id=request.user_id,
        action=request.action,
    )
    return VerificationDecisionResponse(
        action=decision.action,
        points_awarded=decision.points_awarded,
        warning=decision.warning,
    )


@router.get("/{campaign_id}/stats", response_model=DataResponse)
async def get_campaign_stats(
    campaign_id: int,
    partner: CurrentPartner,
    campaign_service: CampaignServiceDep,
):
    """Per-mission and overall completion statistics."""
    stats = campaign_service.campaign_stats(partner.id, campaign_id)
    return DataResponse(data=stats.to_dict())
