"""Partner and campaign ownership lookups."""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session as DBSession

from ecoconsole_core.domain.errors import NotFoundError
from ecoconsole_core.domain.models import Campaign, MissionTemplate, Partner
from ecoconsole_core.domain.pagination import PaginatedResult, PaginationParams, paginate_query


class PartnerService:
    """Service for partner queries."""

    def __init__(self, db: DBSession):
        """Initialize the partner service.

        Args:
            db: SQLAlchemy database session.
        """
        self.db = db

    def list_partners(
        self,
        status: Optional[str] = None,
        params: Optional[PaginationParams] = None,
    ) -> PaginatedResult[Partner]:
        """List partners, newest first.

        Args:
            status: Status filter; None or "all" lists everything.
            params: Pagination parameters.
        """
        params = params or PaginationParams()
        query = select(Partner).order_by(Partner.created_at.desc(), Partner.id.desc())
        if status and status != "all":
            query = query.where(Partner.status == status)
        return paginate_query(self.db, query, params)

    def get_by_user_id(self, user_id: str) -> Partner:
        """Get the partner linked to an identity provider user.

        Raises:
            NotFoundError: If no partner is linked to the user.
        """
        partner = self.db.execute(
            select(Partner).where(Partner.user_id == user_id)
        ).scalar_one_or_none()
        if partner is None:
            raise NotFoundError("partner not found for the current user")
        return partner

    def get_owned_campaign(self, partner_id: str, campaign_id: int) -> Campaign:
        """Get a campaign, checking it belongs to the partner.

        Raises:
            NotFoundError: If the campaign does not exist or is owned by
                another partner.
        """
        campaign = self.db.execute(
            select(Campaign).where(
                Campaign.id == campaign_id,
                Campaign.partner_id == partner_id,
            )
        ).scalar_one_or_none()
        if campaign is None:
            raise NotFoundError(f"campaign {campaign_id} not found")
        return campaign

    def list_campaigns(self, partner_id: str) -> list[Campaign]:
        """List a partner's campaigns, newest first."""
        return list(
            self.db.execute(
                select(Campaign)
                .where(Campaign.partner_id == partner_id)
                .order_by(Campaign.created_at.desc(), Campaign.id.desc())
            )
            .scalars()
            .all()
        )

    def get_templates(self, campaign_id: int) -> list[MissionTemplate]:
        """Get a campaign's mission templates in display order."""
        return list(
            self.db.execute(
                select(MissionTemplate)
                .where(MissionTemplate.campaign_id == campaign_id)
                .order_by(MissionTemplate.order.asc(), MissionTemplate.id.asc())
            )
            .scalars()
            .all()
        )
