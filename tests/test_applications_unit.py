"""Unit tests for the partner application workflow.

Tests cover:
- Submission validation and duplicate detection
- Listing with status filter and pagination
- Approve/reject transitions
- Invite and resend, including partial failures after the email is sent
"""

from unittest.mock import patch

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session as DBSession

from ecoconsole_core.domain.errors import (
    ConflictError,
    NotFoundError,
    StateError,
    UpstreamError,
    ValidationError,
)
from ecoconsole_core.domain.models import ApplicationStatus, Partner, PartnerApplication
from ecoconsole_core.domain.pagination import PaginationParams
from ecoconsole_core.domain.services.applications import (
    PARTNER_WRITE_WARNING,
    STATUS_WRITE_WARNING,
    ApplicationService,
    validate_email,
)
from ecoconsole_core.infrastructure import IdentityProviderError
from tests.factories import create_application, create_partner


VALID_FIELDS = {
    "organization_name": "Green Seoul",
    "contact_name": "Kim Minji",
    "email": "a@b.com",
    "phone": "010-1234-5678",
    "organization_type": "NGO",
}


@pytest.fixture
def service(db_session: DBSession, identity_provider) -> ApplicationService:
    return ApplicationService(
        db_session,
        identity_provider=identity_provider,
        site_url="https://console.test/",
    )


class TestValidateEmail:
    """Tests for the email format check."""

    @pytest.mark.parametrize("email", ["a@b.com", "first.last@sub.example.org"])
    def test_accepts_valid(self, email):
        assert validate_email(email) is True

    @pytest.mark.parametrize("email", ["", "plain", "a@b", "a b@c.com", "@b.com"])
    def test_rejects_invalid(self, email):
        assert validate_email(email) is False


class TestSubmit:
    """Tests for application submission."""

    def test_submit_creates_pending(self, service: ApplicationService):
        """A valid submission is stored as pending."""
        application = service.submit(**VALID_FIELDS)

        assert application.id is not None
        assert application.status == ApplicationStatus.PENDING
        assert application.email == "a@b.com"
        assert application.business_registration_url is None

    def test_submit_strips_whitespace(self, service: ApplicationService):
        application = service.submit(**{**VALID_FIELDS, "email": "  a@b.com  "})

        assert application.email == "a@b.com"

    def test_submit_keeps_free_form_organization_type(self, service: ApplicationService):
        """Organization type is free text, not a fixed set."""
        application = service.submit(**{**VALID_FIELDS, "organization_type": "Cooperative"})

        assert application.organization_type == "Cooperative"

    def test_submit_missing_field(self, service: ApplicationService):
        """Each required field must be present and non-blank."""
        with pytest.raises(ValidationError) as exc_info:
            service.submit(**{**VALID_FIELDS, "phone": "   "})

        assert "phone" in exc_info.value.message

    def test_submit_bad_email(self, service: ApplicationService):
        with pytest.raises(ValidationError):
            service.submit(**{**VALID_FIELDS, "email": "not-an-email"})

    @pytest.mark.parametrize(
        "status",
        [ApplicationStatus.PENDING, ApplicationStatus.APPROVED, ApplicationStatus.INVITED],
    )
    def test_submit_duplicate_active_email(self, db_session, service, status):
        """An email with an active application cannot apply again."""
        create_application(db_session, email="a@b.com", status=status)

        with pytest.raises(ConflictError):
            service.submit(**VALID_FIELDS)

    def test_submit_after_rejection_allowed(self, db_session, service):
        """A rejected applicant may apply again."""
        create_application(
            db_session,
            email="a@b.com",
            status=ApplicationStatus.REJECTED,
            rejection_reason="Incomplete documents",
        )

        application = service.submit(**VALID_FIELDS)

        assert application.status == ApplicationStatus.PENDING


class TestQueries:
    """Tests for get and list."""

    def test_get_missing(self, service: ApplicationService):
        with pytest.raises(NotFoundError):
            service.get("does-not-exist")

    def test_list_filters_and_paginates(self, db_session, service):
        for i in range(3):
            create_application(db_session, email=f"p{i}@test.org")
        create_application(db_session, email="r@test.org", status=ApplicationStatus.REJECTED)

        result = service.list_applications(
            status=ApplicationStatus.PENDING, params=PaginationParams(page=1, limit=2)
        )

        assert result.total == 3
        assert len(result.items) == 2
        assert result.total_pages == 2
        assert all(a.status == ApplicationStatus.PENDING for a in result.items)

    def test_list_all_means_no_filter(self, db_session, service):
        create_application(db_session, email="p@test.org")
        create_application(db_session, email="r@test.org", status=ApplicationStatus.REJECTED)

        assert service.list_applications(status="all").total == 2
        assert service.list_applications().total == 2


class TestDecide:
    """Tests for approve/reject."""

    def test_approve(self, db_session, service):
        application = create_application(db_session)

        decided = service.decide(application.id, ApplicationStatus.APPROVED, processed_by="admin")

        assert decided.status == ApplicationStatus.APPROVED
        assert decided.processed_at is not None
        assert decided.processed_by == "admin"
        assert decided.rejection_reason is None

    def test_reject_stores_reason_verbatim(self, db_session, service):
        application = create_application(db_session)

        decided = service.decide(
            application.id, ApplicationStatus.REJECTED, rejection_reason="  Missing license "
        )

        assert decided.status == ApplicationStatus.REJECTED
        assert decided.rejection_reason == "  Missing license "

    @pytest.mark.parametrize("reason", [None, "", "   "])
    def test_reject_requires_reason(self, db_session, service, reason):
        application = create_application(db_session)

        with pytest.raises(ValidationError):
            service.decide(application.id, ApplicationStatus.REJECTED, rejection_reason=reason)

    @pytest.mark.parametrize("status", [None, "pending", "invited", "maybe"])
    def test_decide_invalid_status(self, db_session, service, status):
        application = create_application(db_session)

        with pytest.raises(ValidationError):
            service.decide(application.id, status)

    @pytest.mark.parametrize(
        "current",
        [ApplicationStatus.APPROVED, ApplicationStatus.REJECTED, ApplicationStatus.INVITED],
    )
    def test_decide_requires_pending(self, db_session, service, current):
        """Only pending applications can be decided."""
        application = create_application(db_session, status=current, rejection_reason="x")

        with pytest.raises(StateError):
            service.decide(application.id, ApplicationStatus.APPROVED)


class TestInvite:
    """Tests for invite and resend."""

    async def test_first_invite_creates_partner(self, db_session, service, identity_provider):
        application = create_application(db_session, status=ApplicationStatus.APPROVED)

        outcome = await service.invite(application.id)

        assert outcome.ok
        assert outcome.is_resend is False
        assert outcome.partner is not None
        assert outcome.partner.application_id == application.id
        assert outcome.partner.user_id == outcome.user["id"]
        assert outcome.partner.status == "active"
        assert application.status == ApplicationStatus.INVITED
        assert application.invited_user_id == outcome.user["id"]
        assert application.invited_at is not None

        invite = identity_provider.invites[0]
        assert invite["email"] == application.email
        assert invite["data"] == {"role": "ORG_MANAGER", "organization_name": "Green Seoul"}
        assert invite["redirect_to"] == "https://console.test/auth/confirm"

    async def test_resend_does_not_duplicate_partner(self, db_session, service):
        application = create_application(db_session, status=ApplicationStatus.APPROVED)
        await service.invite(application.id)

        outcome = await service.invite(application.id)

        assert outcome.ok
        assert outcome.is_resend is True
        assert outcome.partner is None
        partners = db_session.execute(select(func.count()).select_from(Partner)).scalar()
        assert partners == 1
        assert application.status == ApplicationStatus.INVITED

    @pytest.mark.parametrize("status", [ApplicationStatus.PENDING, ApplicationStatus.REJECTED])
    async def test_invite_requires_approval(self, db_session, service, identity_provider, status):
        application = create_application(db_session, status=status, rejection_reason="x")

        with pytest.raises(StateError):
            await service.invite(application.id)

        assert identity_provider.invites == []

    async def test_invite_missing_application(self, service):
        with pytest.raises(NotFoundError):
            await service.invite("does-not-exist")

    async def test_provider_failure_writes_nothing(self, db_session, service, identity_provider):
        application = create_application(db_session, status=ApplicationStatus.APPROVED)
        identity_provider.invite_error = IdentityProviderError("rate limited", status_code=429)

        with pytest.raises(UpstreamError):
            await service.invite(application.id)

        assert application.status == ApplicationStatus.APPROVED
        assert db_session.execute(select(func.count()).select_from(Partner)).scalar() == 0

    async def test_no_provider_configured(self, db_session):
        application = create_application(db_session, status=ApplicationStatus.APPROVED)

        with pytest.raises(UpstreamError):
            await ApplicationService(db_session).invite(application.id)

    async def test_partner_insert_failure_returns_warning(
        self, db_session, service, identity_provider
    ):
        """The email went out, so a failed partner insert is a warning."""
        application = create_application(db_session, status=ApplicationStatus.APPROVED)
        # Another partner already holds the user id the provider will return
        create_partner(
            db_session,
            user_id=identity_provider.user_id_for(application.email),
            email="other@test.org",
        )

        outcome = await service.invite(application.id)

        assert outcome.warning == PARTNER_WRITE_WARNING
        assert outcome.user["email"] == application.email
        db_session.flush()
        assert db_session.get(PartnerApplication, application.id).status == (
            ApplicationStatus.APPROVED
        )

    async def test_status_update_failure_returns_warning(self, db_session, service):
        application = create_application(db_session, status=ApplicationStatus.APPROVED)
        original_flush = db_session.flush

        def failing_flush(*args, **kwargs):
            if application in db_session.dirty:
                raise SQLAlchemyError("simulated write failure")
            return original_flush(*args, **kwargs)

        with patch.object(db_session, "flush", side_effect=failing_flush):
            outcome = await service.invite(application.id)

        assert outcome.warning == STATUS_WRITE_WARNING
        assert outcome.partner is not None
        assert db_session.get(Partner, outcome.partner.id) is not None
