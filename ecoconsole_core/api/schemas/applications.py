"""Partner application schemas for request/response validation."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class ApplicationCreate(BaseModel):
    """Request body for submitting a partner application.

    Every field is optional here so that a missing field produces the
    service's own validation message.
    """

    organization_name: Optional[str] = None
    contact_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    organization_type: Optional[str] = None
    business_registration_url: Optional[str] = None


class ApplicationDecision(BaseModel):
    """Request body for approving or rejecting an application."""

    status: Optional[str] = None
    rejection_reason: Optional[str] = None


class ApplicationResponse(BaseModel):
    """A partner application."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    organization_name: str
    contact_name: str
    email: str
    phone: str
    organization_type: str
    business_registration_url: Optional[str] = None
    status: str
    rejection_reason: Optional[str] = None
    invited_at: Optional[datetime] = None
    invited_user_id: Optional[str] = None
    processed_at: Optional[datetime] = None
    processed_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class PaginationInfo(BaseModel):
    """Page metadata for admin list endpoints."""

    model_config = ConfigDict(populate_by_name=True)

    page: int
    limit: int
    total: int
    total_pages: int = Field(..., alias="totalPages")


class ApplicationEnvelope(BaseModel):
    """Response for a write that returns the application."""

    success: bool = True
    data: ApplicationResponse


class ApplicationDetail(BaseModel):
    """Response wrapping a single application."""

    data: ApplicationResponse


class ApplicationListResponse(BaseModel):
    """Response body for listing applications."""

    data: list[ApplicationResponse]
    pagination: PaginationInfo


class InviteResponse(BaseModel):
    """Response body for sending an invitation.

    ``warning`` is set instead of ``message`` when the email went out but a
    follow-up write failed.
    """

    success: bool = True
    message: Optional[str] = None
    warning: Optional[str] = None
    user: dict[str, Any] = Field(default_factory=dict)
