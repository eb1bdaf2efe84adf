"""Partner application API routes.

Submission is public; everything else sits behind the admin secret.
"""

from typing import Optional

from fastapi import APIRouter, Query

from ecoconsole_core.api.deps import AdminGuard, ApplicationServiceDep
from ecoconsole_core.api.schemas.applications import (
    ApplicationCreate,
    ApplicationDecision,
    ApplicationDetail,
    ApplicationEnvelope,
    ApplicationListResponse,
    ApplicationResponse,
    InviteResponse,
    PaginationInfo,
)
from ecoconsole_core.domain.pagination import PaginationParams

router = APIRouter(prefix="/api/applications", tags=["applications"])

# Recorded as processed_by for decisions made through the shared-secret console
ADMIN_ACTOR = "admin"

INVITE_SENT_MESSAGE = "Invitation sent."
INVITE_RESENT_MESSAGE = "Invitation resent."


@router.post("", response_model=ApplicationEnvelope)
async def submit_application(
    request: ApplicationCreate,
    application_service: ApplicationServiceDep,
):
    """Submit a partner application."""
    application = application_service.submit(**request.model_dump())
    return ApplicationEnvelope(
        success=True,
        data=ApplicationResponse.model_validate(application),
    )


@router.get("", response_model=ApplicationListResponse, dependencies=[AdminGuard])
async def list_applications(
    application_service: ApplicationServiceDep,
    status: Optional[str] = Query(None, description="Filter by status, or 'all'"),
    page: Optional[int] = Query(None, description="Page number (1-indexed)"),
    limit: Optional[int] = Query(None, description="Items per page"),
):
    """List applications, newest first."""
    params = PaginationParams.from_query_params(page=page, limit=limit)
    result = application_service.list_applications(status=status, params=params)
    return ApplicationListResponse(
        data=[ApplicationResponse.model_validate(a) for a in result.items],
        pagination=PaginationInfo(**result.pagination_dict()),
    )


@router.get("/{application_id}", response_model=ApplicationDetail, dependencies=[AdminGuard])
async def get_application(
    application_id: str,
    application_service: ApplicationServiceDep,
):
    """Get an application by ID."""
    application = application_service.get(application_id)
    return ApplicationDetail(data=ApplicationResponse.model_validate(application))


@router.patch("/{application_id}", response_model=ApplicationEnvelope, dependencies=[AdminGuard])
async def decide_application(
    application_id: str,
    request: ApplicationDecision,
    application_service: ApplicationServiceDep,
):
    """Approve or reject a pending application."""
    application = application_service.decide(
        application_id,
        status=request.status,
        rejection_reason=request.rejection_reason,
        processed_by=ADMIN_ACTOR,
    )
    return ApplicationEnvelope(
        success=True,
        data=ApplicationResponse.model_validate(application),
    )


@router.post(
    "/{application_id}/invite",
    response_model=InviteResponse,
    response_model_exclude_none=True,
    dependencies=[AdminGuard],
)
async def invite_application(
    application_id: str,
    application_service: ApplicationServiceDep,
):
    """Send, or resend, the partner invitation email."""
    outcome = await application_service.invite(application_id)
    if not outcome.ok:
        return InviteResponse(warning=outcome.warning, user=outcome.user)
    return InviteResponse(
        message=INVITE_RESENT_MESSAGE if outcome.is_resend else INVITE_SENT_MESSAGE,
        user=outcome.user,
    )
