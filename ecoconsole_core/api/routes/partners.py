"""Partner API routes (admin)."""

from typing import Optional

from fastapi import APIRouter, Query

from ecoconsole_core.api.deps import AdminGuard, PartnerServiceDep
from ecoconsole_core.api.schemas.applications import PaginationInfo
from ecoconsole_core.api.schemas.partners import PartnerListResponse, PartnerResponse
from ecoconsole_core.domain.pagination import PaginationParams

router = APIRouter(prefix="/api/partners", tags=["partners"], dependencies=[AdminGuard])


@router.get("", response_model=PartnerListResponse)
async def list_partners(
    partner_service: PartnerServiceDep,
    status: Optional[str] = Query(None, description="Filter by status, or 'all'"),
    page: Optional[int] = Query(None),
    limit: Optional[int] = Query(None),
):
    """List partner organizations, newest first."""
    params = PaginationParams.from_query_params(page=page, limit=limit)
    result = partner_service.list_partners(status=status, params=params)
    return PartnerListResponse(
        data=[PartnerResponse.model_validate(p) for p in result.items],
        pagination=PaginationInfo(**result.pagination_dict()),
    )
