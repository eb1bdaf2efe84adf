"""API dependencies for dependency injection."""

from typing import Annotated, Iterator, Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from ecoconsole_core.api.middleware.guards import admin_secret_valid, extract_access_token
from ecoconsole_core.config import Settings, get_settings
from ecoconsole_core.domain.errors import AuthError
from ecoconsole_core.domain.models import Partner
from ecoconsole_core.domain.services import (
    ApplicationService,
    CampaignService,
    PartnerService,
    RewardService,
    VerificationService,
)
from ecoconsole_core.infra.db import get_session_factory
from ecoconsole_core.infrastructure import (
    CopywriterClient,
    CopywriterConfig,
    IdentityProviderClient,
    IdentityProviderError,
    IdentityUser,
)
from ecoconsole_core.observability import get_logger, get_request_context

logger = get_logger(__name__)


def get_db() -> Iterator[Session]:
    """Get a database session."""
    session_factory = get_session_factory()
    session = session_factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


DBSession = Annotated[Session, Depends(get_db)]
SettingsDep = Annotated[Settings, Depends(get_settings)]


# =============================================================================
# EXTERNAL CLIENTS
# =============================================================================


def get_identity_provider(settings: SettingsDep) -> IdentityProviderClient:
    """Get the identity provider client."""
    return IdentityProviderClient(
        base_url=settings.supabase_url,
        service_role_key=settings.supabase_service_role_key,
        timeout=settings.http_timeout,
    )


def get_copywriter(settings: SettingsDep) -> Optional[CopywriterClient]:
    """Get the copywriting client, or None when no API key is configured."""
    if not settings.gemini_api_key:
        return None
    return CopywriterClient(
        config=CopywriterConfig(
            api_key=settings.gemini_api_key,
            model_name=settings.gemini_model,
            base_url=settings.gemini_base_url,
            timeout=settings.http_timeout,
        )
    )


IdentityProviderDep = Annotated[IdentityProviderClient, Depends(get_identity_provider)]
CopywriterDep = Annotated[Optional[CopywriterClient], Depends(get_copywriter)]


# =============================================================================
# GUARDS
# =============================================================================


def require_admin(request: Request, settings: SettingsDep) -> None:
    """Reject requests without a valid admin secret.

    Raises:
        AuthError: If the secret is missing, wrong, or not configured.
    """
    if not admin_secret_valid(request, settings):
        logger.warning("admin request denied")
        raise AuthError("unauthorized")


async def get_current_user(
    request: Request,
    identity_provider: IdentityProviderDep,
) -> IdentityUser:
    """Resolve the caller's access token to an identity provider user.

    Raises:
        AuthError: If there is no token or the provider rejects it.
    """
    token = extract_access_token(request)
    if not token:
        raise AuthError("not authenticated")

    try:
        return await identity_provider.get_user(token)
    except IdentityProviderError as e:
        logger.warning("session rejected", provider_status=e.status_code)
        raise AuthError("invalid or expired session") from e


CurrentUser = Annotated[IdentityUser, Depends(get_current_user)]


def get_current_partner(user: CurrentUser, db: DBSession) -> Partner:
    """Get the partner linked to the authenticated user.

    Raises:
        NotFoundError: If the user is not linked to a partner.
    """
    partner = PartnerService(db).get_by_user_id(user.id)
    context = get_request_context()
    if context is not None:
        context.partner_id = partner.id
    return partner


AdminGuard = Depends(require_admin)
CurrentPartner = Annotated[Partner, Depends(get_current_partner)]


# =============================================================================
# SERVICES
# =============================================================================


def get_application_service(
    db: DBSession,
    settings: SettingsDep,
    identity_provider: IdentityProviderDep,
) -> ApplicationService:
    """Get the application service."""
    return ApplicationService(
        db,
        identity_provider=identity_provider,
        site_url=settings.site_url,
        invite_role=settings.invite_role,
    )


def get_partner_service(db: DBSession) -> PartnerService:
    """Get the partner service."""
    return PartnerService(db)


def get_campaign_service(db: DBSession, settings: SettingsDep) -> CampaignService:
    """Get the campaign service."""
    return CampaignService(db, co2_kg_per_mission=settings.co2_kg_per_mission)


def get_verification_service(db: DBSession, settings: SettingsDep) -> VerificationService:
    """Get the verification service."""
    return VerificationService(
        db,
        reward_service=RewardService(db),
        include_partial=settings.verification_include_partial,
    )


ApplicationServiceDep = Annotated[ApplicationService, Depends(get_application_service)]
PartnerServiceDep = Annotated[PartnerService, Depends(get_partner_service)]
CampaignServiceDep = Annotated[CampaignService, Depends(get_campaign_service)]
VerificationServiceDep = Annotated[VerificationService, Depends(get_verification_service)]
