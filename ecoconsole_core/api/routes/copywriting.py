"""Campaign copy suggestion routes."""

from fastapi import APIRouter

from ecoconsole_core.api.deps import CopywriterDep
from ecoconsole_core.api.schemas.copywriting import (
    DescriptionRequest,
    DescriptionResponse,
    MissionsRequest,
    MissionsResponse,
    MissionSuggestionResponse,
)
from ecoconsole_core.domain.errors import UpstreamError
from ecoconsole_core.infrastructure import CopywriterError
from ecoconsole_core.observability import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/gemini", tags=["copy"])

NOT_CONFIGURED_DESCRIPTION = (
    "The AI API key is not configured. Please check the environment variables."
)


@router.post("/description", response_model=DescriptionResponse)
async def suggest_description(request: DescriptionRequest, copywriter: CopywriterDep):
    """Suggest a short campaign description."""
    if copywriter is None:
        return DescriptionResponse(description=NOT_CONFIGURED_DESCRIPTION)

    try:
        description = await copywriter.suggest_description(request.title, request.keywords)
    except CopywriterError as e:
        logger.error("description generation failed", error=str(e))
        raise UpstreamError("failed to generate a description") from e

    return DescriptionResponse(description=description)


@router.post("/missions", response_model=MissionsResponse)
async def suggest_missions(request: MissionsRequest, copywriter: CopywriterDep):
    """Suggest missions for a campaign; an empty list when unavailable."""
    if copywriter is None:
        return MissionsResponse(missions=[])

    try:
        suggestions = await copywriter.suggest_missions(request.campaign_title)
    except CopywriterError as e:
        logger.error("mission generation failed", error=str(e))
        return MissionsResponse(missions=[])

    return MissionsResponse(
        missions=[MissionSuggestionResponse(**s.to_dict()) for s in suggestions]
    )
