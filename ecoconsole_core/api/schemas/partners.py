"""Partner schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from ecoconsole_core.api.schemas.applications import PaginationInfo


class PartnerResponse(BaseModel):
    """A partner organization."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: Optional[str] = None
    organization_name: str
    contact_name: str
    email: str
    phone: Optional[str] = None
    organization_type: Optional[str] = None
    business_registration_url: Optional[str] = None
    status: str
    application_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class PartnerListResponse(BaseModel):
    """Response body for listing partners."""

    data: list[PartnerResponse]
    pagination: PaginationInfo
