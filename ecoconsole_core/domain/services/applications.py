"""Partner application workflow.

Lifecycle of an onboarding request:

    pending --approve--> approved --invite--> invited --invite (resend)--> invited
    pending --reject---> rejected

The invite step calls the identity provider first. The email cannot be
recalled once sent, so failures in the follow-up writes are reported back
as a warning on the ``InviteOutcome`` instead of raising.
"""

import re
from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session as DBSession

from ecoconsole_core.domain.errors import (
    ConflictError,
    NotFoundError,
    StateError,
    UpstreamError,
    ValidationError,
)
from ecoconsole_core.domain.models import (
    ApplicationStatus,
    Partner,
    PartnerApplication,
    PartnerStatus,
    utcnow,
)
from ecoconsole_core.domain.pagination import PaginatedResult, PaginationParams, paginate_query
from ecoconsole_core.infrastructure.identity_provider import (
    IdentityProviderClient,
    IdentityProviderError,
)
from ecoconsole_core.observability import get_logger

logger = get_logger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

REQUIRED_FIELDS = (
    "organization_name",
    "contact_name",
    "email",
    "phone",
    "organization_type",
)

# Statuses that block a second application from the same email
ACTIVE_STATUSES = (
    ApplicationStatus.PENDING,
    ApplicationStatus.APPROVED,
    ApplicationStatus.INVITED,
)

DECISION_STATUSES = (ApplicationStatus.APPROVED, ApplicationStatus.REJECTED)
INVITABLE_STATUSES = (ApplicationStatus.APPROVED, ApplicationStatus.INVITED)

PARTNER_WRITE_WARNING = "The invitation was sent, but creating the partner record failed."
STATUS_WRITE_WARNING = "The invitation was sent, but updating the application status failed."


def validate_email(email: str) -> bool:
    """Check the address looks like local@domain.tld."""
    return bool(EMAIL_PATTERN.match(email))


@dataclass
class InviteOutcome:
    """Result of an invite (or resend)."""

    user: dict[str, Any]
    is_resend: bool
    partner: Optional[Partner] = None
    warning: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.warning is None


class ApplicationService:
    """Service for partner application operations."""

    def __init__(
        self,
        db: DBSession,
        identity_provider: Optional[IdentityProviderClient] = None,
        site_url: str = "http://localhost:3000",
        invite_role: str = "ORG_MANAGER",
    ):
        """Initialize the application service.

        Args:
            db: SQLAlchemy database session.
            identity_provider: Client used to send invitations.
            site_url: Public console URL, used for the invite redirect.
            invite_role: Role claim attached to invited users.
        """
        self.db = db
        self.identity_provider = identity_provider
        self.site_url = site_url.rstrip("/")
        self.invite_role = invite_role

    # =========================================================================
    # Submission
    # =========================================================================

    def submit(
        self,
        organization_name: Optional[str] = None,
        contact_name: Optional[str] = None,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        organization_type: Optional[str] = None,
        business_registration_url: Optional[str] = None,
    ) -> PartnerApplication:
        """Create a new pending application.

        Raises:
            ValidationError: If a required field is missing or the email is malformed.
            ConflictError: If an active application already exists for the email.
        """
        fields = {
            "organization_name": organization_name,
            "contact_name": contact_name,
            "email": email,
            "phone": phone,
            "organization_type": organization_type,
        }
        cleaned = {key: (value or "").strip() for key, value in fields.items()}

        missing = [key for key in REQUIRED_FIELDS if not cleaned[key]]
        if missing:
            raise ValidationError(f"missing required fields: {', '.join(missing)}")

        if not validate_email(cleaned["email"]):
            raise ValidationError("email must be a valid address")

        existing = self.db.execute(
            select(PartnerApplication.id).where(
                PartnerApplication.email == cleaned["email"],
                PartnerApplication.status.in_(ACTIVE_STATUSES),
            )
        ).first()
        if existing is not None:
            raise ConflictError(
                f"an application for '{cleaned['email']}' is already in progress"
            )

        now = utcnow()
        application = PartnerApplication(
            **cleaned,
            business_registration_url=(business_registration_url or "").strip() or None,
            status=ApplicationStatus.PENDING,
            created_at=now,
            updated_at=now,
        )
        self.db.add(application)
        self.db.flush()

        logger.info(
            "partner application submitted",
            application_id=application.id,
            organization_type=application.organization_type,
        )
        return application

    # =========================================================================
    # Queries
    # =========================================================================

    def get(self, application_id: str) -> PartnerApplication:
        """Get an application by ID.

        Raises:
            NotFoundError: If the application does not exist.
        """
        application = self.db.get(PartnerApplication, application_id)
        if application is None:
            raise NotFoundError(f"application {application_id} not found")
        return application

    def list_applications(
        self,
        status: Optional[str] = None,
        params: Optional[PaginationParams] = None,
    ) -> PaginatedResult[PartnerApplication]:
        """List applications, newest first.

        Args:
            status: Status filter; None or "all" lists everything.
            params: Pagination parameters.
        """
        params = params or PaginationParams()
        query = select(PartnerApplication).order_by(
            PartnerApplication.created_at.desc(), PartnerApplication.id.desc()
        )
        if status and status != "all":
            query = query.where(PartnerApplication.status == status)
        return paginate_query(self.db, query, params)

    # =========================================================================
    # Decision
    # =========================================================================

    def decide(
        self,
        application_id: str,
        status: Optional[str],
        rejection_reason: Optional[str] = None,
        processed_by: Optional[str] = None,
    ) -> PartnerApplication:
        """Approve or reject a pending application.

        Raises:
            ValidationError: If the status is not approved/rejected, or a
                rejection has no reason.
            NotFoundError: If the application does not exist.
            StateError: If the application is no longer pending.
        """
        if status not in DECISION_STATUSES:
            raise ValidationError("status must be one of: approved, rejected")

        if status == ApplicationStatus.REJECTED and not (rejection_reason or "").strip():
            raise ValidationError("rejection_reason is required when rejecting")

        application = self.get(application_id)
        if application.status != ApplicationStatus.PENDING:
            raise StateError(
                f"cannot change application from '{application.status}' to '{status}'"
            )

        now = utcnow()
        application.status = status
        application.processed_at = now
        application.updated_at = now
        application.processed_by = processed_by
        if status == ApplicationStatus.REJECTED:
            application.rejection_reason = rejection_reason
        self.db.flush()

        logger.info(
            "partner application decided",
            application_id=application.id,
            status=status,
        )
        return application

    # =========================================================================
    # Invitation
    # =========================================================================

    async def invite(self, application_id: str) -> InviteOutcome:
        """Send (or resend) the partner invitation for an approved application.

        Raises:
            NotFoundError: If the application does not exist.
            StateError: If the application is neither approved nor invited.
            UpstreamError: If the identity provider could not send the invite.
        """
        if self.identity_provider is None:
            raise UpstreamError("identity provider is not configured")

        application = self.get(application_id)
        if application.status not in INVITABLE_STATUSES:
            raise StateError("only approved applications can be invited")

        is_resend = application.status == ApplicationStatus.INVITED

        try:
            invited = await self.identity_provider.invite_user_by_email(
                application.email,
                data={
                    "role": self.invite_role,
                    "organization_name": application.organization_name,
                },
                redirect_to=f"{self.site_url}/auth/confirm",
            )
        except IdentityProviderError as e:
            logger.error(
                "invite failed",
                application_id=application.id,
                provider_status=e.status_code,
                error=str(e),
            )
            raise UpstreamError("failed to send invitation") from e

        outcome = InviteOutcome(user=invited.to_dict(), is_resend=is_resend)

        if not is_resend:
            try:
                outcome.partner = self._create_partner(application, invited.id)
            except SQLAlchemyError:
                logger.error(
                    "partner creation failed after invite",
                    exc_info=True,
                    application_id=application.id,
                    invited_user_id=invited.id,
                )
                outcome.warning = PARTNER_WRITE_WARNING
                return outcome

        try:
            with self.db.begin_nested():
                now = utcnow()
                application.status = ApplicationStatus.INVITED
                application.invited_at = now
                application.invited_user_id = invited.id
                application.processed_at = now
                application.updated_at = now
                self.db.flush()
        except SQLAlchemyError:
            logger.error(
                "application status update failed after invite",
                exc_info=True,
                application_id=application_id,
                invited_user_id=invited.id,
            )
            outcome.warning = STATUS_WRITE_WARNING
            return outcome

        logger.info(
            "partner invitation sent",
            application_id=application.id,
            invited_user_id=invited.id,
            resend=is_resend,
        )
        return outcome

    def _create_partner(self, application: PartnerApplication, user_id: str) -> Partner:
        """Create the partner row for a first invite, at most once per application."""
        existing = self.db.execute(
            select(Partner).where(Partner.application_id == application.id)
        ).scalar_one_or_none()
        if existing is not None:
            return existing

        with self.db.begin_nested():
            now = utcnow()
            partner = Partner(
                user_id=user_id,
                organization_name=application.organization_name,
                contact_name=application.contact_name,
                email=application.email,
                phone=application.phone,
                organization_type=application.organization_type,
                business_registration_url=application.business_registration_url,
                status=PartnerStatus.ACTIVE,
                application_id=application.id,
                created_at=now,
                updated_at=now,
            )
            self.db.add(partner)
            self.db.flush()
        return partner
