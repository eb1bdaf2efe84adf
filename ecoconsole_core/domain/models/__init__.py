"""Domain models for EcoConsole.

SQLAlchemy ORM models mirroring the hosted database tables used by the
admin console and the partner dashboard.
"""

import uuid
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import (
    JSON,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


def utcnow() -> datetime:
    """Current UTC time (timezone-aware)."""
    return datetime.now(timezone.utc)


def new_uuid() -> str:
    return str(uuid.uuid4())


# =============================================================================
# ENUMS
# =============================================================================


class ApplicationStatus(str):
    """Partner application status values."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    INVITED = "invited"


class PartnerStatus(str):
    """Partner status values."""

    ACTIVE = "active"
    SUSPENDED = "suspended"


class CampaignStatus(str):
    """Campaign status values."""

    DRAFT = "DRAFT"
    ACTIVE = "ACTIVE"
    PAUSED = "PAUSED"
    ENDED = "ENDED"


class VerificationType(str):
    """How a mission's proof is verified."""

    IMAGE = "IMAGE"
    TEXT_REVIEW = "TEXT_REVIEW"
    QUIZ = "QUIZ"
    LOCATION = "LOCATION"


class MissionLogStatus(str):
    """Mission log status values."""

    IN_PROGRESS = "IN_PROGRESS"
    PENDING_VERIFICATION = "PENDING_VERIFICATION"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


# =============================================================================
# MODELS
# =============================================================================


class PartnerApplication(Base):
    """A prospective partner's onboarding request."""

    __tablename__ = "partner_applications"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    organization_name: Mapped[str] = mapped_column(String(255), nullable=False)
    contact_name: Mapped[str] = mapped_column(String(128), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str] = mapped_column(String(64), nullable=False)
    organization_type: Mapped[str] = mapped_column(String(64), nullable=False)
    business_registration_url: Mapped[Optional[str]] = mapped_column(
        Text, nullable=True
    )

    status: Mapped[str] = mapped_column(
        Enum(
            "pending",
            "approved",
            "rejected",
            "invited",
            name="application_status_enum",
        ),
        nullable=False,
        default=ApplicationStatus.PENDING,
    )
    rejection_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Set by the invite flow
    invited_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    invited_user_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)

    processed_by: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    processed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    __table_args__ = (
        Index("idx_application_email", "email"),
        Index("idx_application_status", "status", "created_at"),
    )

    partner: Mapped[Optional["Partner"]] = relationship(back_populates="application")


class Partner(Base):
    """An onboarded partner organization."""

    __tablename__ = "partners"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)

    # Identity provider user, null until the invite is accepted/issued
    user_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)

    organization_name: Mapped[str] = mapped_column(String(255), nullable=False)
    contact_name: Mapped[str] = mapped_column(String(128), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    organization_type: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    business_registration_url: Mapped[Optional[str]] = mapped_column(
        Text, nullable=True
    )

    status: Mapped[str] = mapped_column(
        Enum("active", "suspended", name="partner_status_enum"),
        nullable=False,
        default=PartnerStatus.ACTIVE,
    )

    # Source application (at most one partner per application)
    application_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("partner_applications.id"), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    __table_args__ = (
        UniqueConstraint("user_id", name="uq_partner_user"),
        UniqueConstraint("application_id", name="uq_partner_application"),
        Index("idx_partner_status", "status", "created_at"),
    )

    application: Mapped[Optional["PartnerApplication"]] = relationship(
        back_populates="partner"
    )
    campaigns: Mapped[list["Campaign"]] = relationship(back_populates="partner")


class Campaign(Base):
    """A partner-run engagement campaign."""

    __tablename__ = "campaigns"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    partner_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("partners.id"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        Enum("DRAFT", "ACTIVE", "PAUSED", "ENDED", name="campaign_status_enum"),
        nullable=False,
        default=CampaignStatus.DRAFT,
    )
    region: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    category: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    start_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    end_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    image_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    __table_args__ = (Index("idx_campaign_partner", "partner_id"),)

    partner: Mapped["Partner"] = relationship(back_populates="campaigns")
    mission_templates: Mapped[list["MissionTemplate"]] = relationship(
        back_populates="campaign", order_by="MissionTemplate.order"
    )


class MissionTemplate(Base):
    """One completable task within a campaign."""

    __tablename__ = "mission_templates"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    campaign_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("campaigns.id"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    verification_type: Mapped[str] = mapped_column(
        Enum(
            "IMAGE",
            "TEXT_REVIEW",
            "QUIZ",
            "LOCATION",
            name="verification_type_enum",
        ),
        nullable=False,
    )
    reward_points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Criteria the reviewer (or an AI check) applies to the submitted proof
    success_criteria: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __table_args__ = (Index("idx_template_campaign", "campaign_id", "order"),)

    campaign: Mapped["Campaign"] = relationship(back_populates="mission_templates")
    logs: Mapped[list["MissionLog"]] = relationship(back_populates="template")


class Profile(Base):
    """A participant account."""

    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    username: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    user_img: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    total_points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    logs: Mapped[list["MissionLog"]] = relationship(back_populates="profile")


class MissionLog(Base):
    """One participant's progress on one mission template."""

    __tablename__ = "mission_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("profiles.id"), nullable=False
    )
    mission_template_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("mission_templates.id"), nullable=False
    )
    status: Mapped[str] = mapped_column(
        Enum(
            "IN_PROGRESS",
            "PENDING_VERIFICATION",
            "COMPLETED",
            "FAILED",
            name="mission_log_status_enum",
        ),
        nullable=False,
        default=MissionLogStatus.IN_PROGRESS,
    )

    # Shape depends on the template's verification_type (see domain.proof)
    proof_data: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)

    started_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    completed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    __table_args__ = (
        Index("idx_mission_log_template_status", "mission_template_id", "status"),
        Index("idx_mission_log_user", "user_id"),
    )

    template: Mapped["MissionTemplate"] = relationship(back_populates="logs")
    profile: Mapped["Profile"] = relationship(back_populates="logs")


class PointLog(Base):
    """Append-only audit trail of point grants."""

    __tablename__ = "point_log"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("profiles.id"), nullable=False
    )
    point: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    __table_args__ = (Index("idx_point_log_user", "user_id", "created_at"),)


__all__ = [
    "Base",
    "utcnow",
    "ApplicationStatus",
    "PartnerStatus",
    "CampaignStatus",
    "VerificationType",
    "MissionLogStatus",
    "PartnerApplication",
    "Partner",
    "Campaign",
    "MissionTemplate",
    "Profile",
    "MissionLog",
    "PointLog",
]
