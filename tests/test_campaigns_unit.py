"""Unit tests for campaign queries, statistics and the dashboard."""

from datetime import date, datetime, timezone

import pytest
from sqlalchemy.orm import Session as DBSession

from ecoconsole_core.domain.errors import NotFoundError
from ecoconsole_core.domain.models import MissionLogStatus
from ecoconsole_core.domain.pagination import PaginationParams
from ecoconsole_core.domain.services.campaigns import CampaignService
from ecoconsole_core.domain.services.partners import PartnerService
from tests.factories import (
    create_campaign,
    create_campaign_with_templates,
    create_log,
    create_logs,
    create_partner,
    create_profile,
    create_template,
)


@pytest.fixture
def partner(db_session: DBSession):
    return create_partner(db_session)


@pytest.fixture
def service(db_session: DBSession) -> CampaignService:
    return CampaignService(db_session)


class TestPartnerService:
    """Tests for partner lookups."""

    def test_get_by_user_id(self, db_session, partner):
        assert PartnerService(db_session).get_by_user_id("partner-user-1").id == partner.id

    def test_get_by_user_id_missing(self, db_session):
        with pytest.raises(NotFoundError):
            PartnerService(db_session).get_by_user_id("nobody")

    def test_list_partners_filter(self, db_session, partner):
        create_partner(db_session, user_id="u2", email="s@test.org", status="suspended")

        service = PartnerService(db_session)
        active = service.list_partners(status="active", params=PaginationParams(limit=5))

        assert [p.id for p in active.items] == [partner.id]
        assert service.list_partners(status="all").total == 2

    def test_templates_in_display_order(self, db_session, partner):
        campaign = create_campaign(db_session, partner)
        create_template(db_session, campaign, title="second", order=2)
        create_template(db_session, campaign, title="first", order=1)

        titles = [t.title for t in PartnerService(db_session).get_templates(campaign.id)]

        assert titles == ["first", "second"]


class TestCampaignDetail:
    """Tests for campaign listing and detail."""

    def test_list_only_own_campaigns(self, db_session, service, partner):
        create_campaign(db_session, partner, title="Mine")
        other = create_partner(db_session, user_id="other", email="o@test.org")
        create_campaign(db_session, other, title="Theirs")

        campaigns = service.list_partner_campaigns(partner.id)

        assert [c.title for c in campaigns] == ["Mine"]

    def test_detail(self, db_session, service, partner):
        campaign, templates = create_campaign_with_templates(db_session, partner)

        found, found_templates = service.campaign_detail(partner.id, campaign.id)

        assert found.id == campaign.id
        assert [t.id for t in found_templates] == [t.id for t in templates]

    def test_detail_not_owner(self, db_session, service, partner):
        campaign = create_campaign(db_session, partner)
        other = create_partner(db_session, user_id="other", email="o@test.org")

        with pytest.raises(NotFoundError):
            service.campaign_detail(other.id, campaign.id)

    def test_detail_missing(self, service, partner):
        with pytest.raises(NotFoundError):
            service.campaign_detail(partner.id, 9999)


class TestCampaignStats:
    """Tests for the stats rollup over stored logs."""

    def test_stats(self, db_session, service, partner):
        campaign, templates = create_campaign_with_templates(db_session, partner, rewards=(10, 20))
        done = create_profile(db_session, username="done")
        busy = create_profile(db_session, username="busy")
        create_logs(db_session, done, templates, status=MissionLogStatus.COMPLETED)
        create_log(db_session, busy, templates[0], status=MissionLogStatus.IN_PROGRESS)

        stats = service.campaign_stats(partner.id, campaign.id)

        assert stats.total_participants == 2
        assert stats.total_missions == 2
        assert stats.completion_rate == 67
        assert stats.status_breakdown.in_progress == 1
        assert [m.completion_rate for m in stats.mission_stats] == [50, 100]

    def test_stats_without_templates(self, db_session, service, partner):
        campaign = create_campaign(db_session, partner)

        stats = service.campaign_stats(partner.id, campaign.id)

        assert stats.to_dict()["totalMissions"] == 0
        assert stats.completion_rate == 0

    def test_stats_excludes_other_campaigns(self, db_session, service, partner):
        campaign, templates = create_campaign_with_templates(db_session, partner, rewards=(10,))
        _, other_templates = create_campaign_with_templates(
            db_session, partner, rewards=(10,), title="Other"
        )
        profile = create_profile(db_session)
        create_log(db_session, profile, other_templates[0], status=MissionLogStatus.COMPLETED)

        stats = service.campaign_stats(partner.id, campaign.id)

        assert stats.total_participants == 0


class TestDashboard:
    """Tests for the partner-wide rollups."""

    def test_overview_and_rankings(self, db_session, service, partner):
        cleanup, cleanup_templates = create_campaign_with_templates(
            db_session, partner, rewards=(10,), title="Cleanup", category="Cleanup", region="Seoul"
        )
        create_campaign_with_templates(
            db_session, partner, rewards=(10,), title="Quiet", category="Education"
        )
        started = datetime(2026, 5, 10, 8, 0, tzinfo=timezone.utc)
        for name in ("a", "b"):
            profile = create_profile(db_session, username=name)
            create_log(
                db_session,
                profile,
                cleanup_templates[0],
                status=MissionLogStatus.COMPLETED,
                started_at=started,
            )

        overview = service.dashboard_overview(partner.id, today=date(2026, 5, 10))
        rankings = service.campaign_rankings(partner.id)

        assert overview.total_participants == 2
        assert overview.top_campaign.campaign_id == cleanup.id
        assert overview.top_region == "Seoul"
        assert overview.weekly_new_participants == 2
        assert [r.title for r in rankings] == ["Cleanup", "Quiet"]
        assert rankings[0].completion_rate == 100

    def test_overview_without_campaigns(self, service, partner):
        overview = service.dashboard_overview(partner.id)

        assert overview.total_participants == 0
        assert overview.top_campaign is None
        assert service.campaign_rankings(partner.id) == []
        assert service.mission_details(partner.id).to_dict()["campaigns"] == []

    def test_mission_details(self, db_session, service, partner):
        first, first_templates = create_campaign_with_templates(
            db_session, partner, rewards=(10, 20), title="First"
        )
        second, second_templates = create_campaign_with_templates(
            db_session, partner, rewards=(10,), title="Second"
        )
        profile = create_profile(db_session, username="walker")
        create_log(db_session, profile, first_templates[0], status=MissionLogStatus.COMPLETED)
        create_log(db_session, profile, first_templates[1], status=MissionLogStatus.FAILED)
        create_log(
            db_session, profile, second_templates[0], status=MissionLogStatus.PENDING_VERIFICATION
        )

        details = service.mission_details(partner.id)

        assert details.completed_missions == 1
        assert details.total_missions == 3
        assert details.completion_rate == 33
        by_id = {c.campaign_id: c for c in details.campaigns}
        assert by_id[first.id].breakdown.failed == 1
        assert by_id[first.id].completion_rate == 50
        assert by_id[second.id].breakdown.pending_verification == 1
        assert by_id[second.id].completion_rate == 0

    def test_co2_rate_is_configurable(self, db_session, partner):
        _, templates = create_campaign_with_templates(db_session, partner, rewards=(10, 20))
        profile = create_profile(db_session, username="walker")
        create_logs(db_session, profile, templates, status=MissionLogStatus.COMPLETED)

        overview = CampaignService(db_session, co2_kg_per_mission=2.0).dashboard_overview(
            partner.id
        )

        assert overview.co2_reduction == 4.0
