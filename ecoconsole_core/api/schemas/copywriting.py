"""Copy suggestion schemas."""

from pydantic import BaseModel, ConfigDict, Field


class DescriptionRequest(BaseModel):
    """Request body for a campaign description suggestion."""

    title: str = ""
    keywords: str = ""


class DescriptionResponse(BaseModel):
    description: str


class MissionsRequest(BaseModel):
    """Request body for mission suggestions."""

    model_config = ConfigDict(populate_by_name=True)

    campaign_title: str = Field("", alias="campaignTitle")


class MissionSuggestionResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str
    success_criteria: str = Field("", alias="successCriteria")


class MissionsResponse(BaseModel):
    missions: list[MissionSuggestionResponse]
