"""Partner dashboard API routes."""

from fastapi import APIRouter

from ecoconsole_core.api.deps import CampaignServiceDep, CurrentPartner
from ecoconsole_core.api.schemas.campaigns import DataResponse

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@router.get("/overview", response_model=DataResponse)
async def get_overview(partner: CurrentPartner, campaign_service: CampaignServiceDep):
    """Headline numbers across the partner's campaigns."""
    overview = campaign_service.dashboard_overview(partner.id)
    return DataResponse(data=overview.to_dict())


@router.get("/campaign-rankings", response_model=DataResponse)
async def get_campaign_rankings(partner: CurrentPartner, campaign_service: CampaignServiceDep):
    """The partner's campaigns ranked by participants."""
    rankings = campaign_service.campaign_rankings(partner.id)
    return DataResponse(data={"rankings": [r.to_dict() for r in rankings]})


@router.get("/mission-details", response_model=DataResponse)
async def get_mission_details(partner: CurrentPartner, campaign_service: CampaignServiceDep):
    """Mission status counts, overall and per campaign."""
    details = campaign_service.mission_details(partner.id)
    return DataResponse(data=details.to_dict())
