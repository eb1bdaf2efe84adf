"""Campaign details, statistics and the partner dashboard."""

from datetime import date
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session as DBSession

from ecoconsole_core.domain.aggregation import (
    DEFAULT_CO2_KG_PER_MISSION,
    CampaignRanking,
    CampaignStats,
    DashboardOverview,
    MissionDetails,
    build_dashboard_overview,
    build_mission_details,
    compute_campaign_stats,
    rank_campaigns,
)
from ecoconsole_core.domain.models import Campaign, MissionLog, MissionTemplate
from ecoconsole_core.domain.services.partners import PartnerService


class CampaignService:
    """Read-side queries over a partner's campaigns."""

    def __init__(self, db: DBSession, co2_kg_per_mission: float = DEFAULT_CO2_KG_PER_MISSION):
        self.db = db
        self.co2_kg_per_mission = co2_kg_per_mission
        self.partners = PartnerService(db)

    def list_partner_campaigns(self, partner_id: str) -> list[Campaign]:
        return self.partners.list_campaigns(partner_id)

    def campaign_detail(
        self, partner_id: str, campaign_id: int
    ) -> tuple[Campaign, list[MissionTemplate]]:
        """Get a campaign with its templates in display order.

        Raises:
            NotFoundError: If the campaign does not belong to the partner.
        """
        campaign = self.partners.get_owned_campaign(partner_id, campaign_id)
        return campaign, self.partners.get_templates(campaign.id)

    def campaign_stats(self, partner_id: str, campaign_id: int) -> CampaignStats:
        """Per-mission and overall completion statistics for a campaign.

        Raises:
            NotFoundError: If the campaign does not belong to the partner.
        """
        campaign, templates = self.campaign_detail(partner_id, campaign_id)
        if not templates:
            return CampaignStats()
        return compute_campaign_stats(templates, self._logs_for(templates))

    def dashboard_overview(
        self, partner_id: str, today: Optional[date] = None
    ) -> DashboardOverview:
        """Headline numbers across all of the partner's campaigns."""
        campaigns, templates_by_campaign, logs = self._load_partner_rows(partner_id)
        return build_dashboard_overview(
            campaigns,
            templates_by_campaign,
            logs,
            today=today,
            co2_kg_per_mission=self.co2_kg_per_mission,
        )

    def campaign_rankings(self, partner_id: str) -> list[CampaignRanking]:
        """The partner's campaigns ranked by participants."""
        campaigns, templates_by_campaign, logs = self._load_partner_rows(partner_id)
        return rank_campaigns(campaigns, templates_by_campaign, logs)

    def mission_details(self, partner_id: str) -> MissionDetails:
        """Mission status counts, overall and per campaign."""
        campaigns, templates_by_campaign, logs = self._load_partner_rows(partner_id)
        return build_mission_details(campaigns, templates_by_campaign, logs)

    def _logs_for(self, templates: list[MissionTemplate]) -> list[MissionLog]:
        if not templates:
            return []
        return list(
            self.db.execute(
                select(MissionLog)
                .where(MissionLog.mission_template_id.in_([t.id for t in templates]))
                .order_by(MissionLog.id.asc())
                .execution_options(populate_existing=True)
            )
            .scalars()
            .all()
        )

    def _load_partner_rows(self, partner_id: str):
        campaigns = self.partners.list_campaigns(partner_id)
        if not campaigns:
            return [], {}, []

        templates = (
            self.db.execute(
                select(MissionTemplate)
                .where(MissionTemplate.campaign_id.in_([c.id for c in campaigns]))
                .order_by(MissionTemplate.order.asc(), MissionTemplate.id.asc())
            )
            .scalars()
            .all()
        )
        templates_by_campaign: dict[int, list[MissionTemplate]] = {}
        for template in templates:
            templates_by_campaign.setdefault(template.campaign_id, []).append(template)

        return campaigns, templates_by_campaign, self._logs_for(list(templates))
