"""Campaign, verification and dashboard schemas.

Field names are camelCase on the wire, matching the dashboard client.
"""

from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class MissionTemplateResponse(CamelModel):
    """A mission template within a campaign."""

    id: int
    title: str
    description: Optional[str] = None
    verification_type: str
    reward_points: int
    order: int
    success_criteria: Optional[str] = None


class CampaignResponse(CamelModel):
    """A campaign, without its templates."""

    id: int
    partner_id: str
    title: str
    description: Optional[str] = None
    status: str
    region: Optional[str] = None
    category: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    image_url: Optional[str] = None
    created_at: datetime


class CampaignDetailResponse(CampaignResponse):
    """A campaign with its mission templates in display order."""

    mission_templates: list[MissionTemplateResponse] = []


class CampaignListResponse(BaseModel):
    data: list[CampaignResponse]


class CampaignDetailEnvelope(BaseModel):
    data: CampaignDetailResponse


class VerificationDecisionRequest(CamelModel):
    """Request body for approving or rejecting a participant."""

    user_id: Optional[str] = None
    action: Optional[str] = None


class VerificationDecisionResponse(CamelModel):
    """Response body for a verification decision."""

    success: bool = True
    action: str
    points_awarded: Optional[int] = None
    warning: Optional[str] = None


class DataResponse(BaseModel):
    """Generic ``{"data": ...}`` envelope for computed rollups."""

    data: Any
