"""Initial schema

Revision ID: 001
Revises:
Create Date: 2026-10-19

Creates the console tables:
- partner_applications
- partners
- campaigns
- mission_templates
- profiles
- mission_logs
- point_log
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Partner applications table
    op.create_table(
        "partner_applications",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("organization_name", sa.String(255), nullable=False),
        sa.Column("contact_name", sa.String(128), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(64), nullable=False),
        sa.Column("organization_type", sa.String(64), nullable=False),
        sa.Column("business_registration_url", sa.Text, nullable=True),
        sa.Column(
            "status",
            sa.Enum(
                "pending",
                "approved",
                "rejected",
                "invited",
                name="application_status_enum",
            ),
            nullable=False,
            server_default="pending",
        ),
        sa.Column("rejection_reason", sa.Text, nullable=True),
        sa.Column("invited_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("invited_user_id", sa.String(36), nullable=True),
        sa.Column("processed_by", sa.String(128), nullable=True),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index("idx_application_email", "partner_applications", ["email"])
    op.create_index(
        "idx_application_status", "partner_applications", ["status", "created_at"]
    )

    # Partners table
    op.create_table(
        "partners",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), nullable=True),
        sa.Column("organization_name", sa.String(255), nullable=False),
        sa.Column("contact_name", sa.String(128), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(64), nullable=True),
        sa.Column("organization_type", sa.String(64), nullable=True),
        sa.Column("business_registration_url", sa.Text, nullable=True),
        sa.Column(
            "status",
            sa.Enum("active", "suspended", name="partner_status_enum"),
            nullable=False,
            server_default="active",
        ),
        sa.Column(
            "application_id",
            sa.String(36),
            sa.ForeignKey("partner_applications.id"),
            nullable=True,
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.UniqueConstraint("user_id", name="uq_partner_user"),
        sa.UniqueConstraint("application_id", name="uq_partner_application"),
    )
    op.create_index("idx_partner_status", "partners", ["status", "created_at"])

    # Campaigns table
    op.create_table(
        "campaigns",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "partner_id", sa.String(36), sa.ForeignKey("partners.id"), nullable=False
        ),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column(
            "status",
            sa.Enum("DRAFT", "ACTIVE", "PAUSED", "ENDED", name="campaign_status_enum"),
            nullable=False,
            server_default="DRAFT",
        ),
        sa.Column("region", sa.String(128), nullable=True),
        sa.Column("category", sa.String(128), nullable=True),
        sa.Column("start_date", sa.Date, nullable=True),
        sa.Column("end_date", sa.Date, nullable=True),
        sa.Column("image_url", sa.Text, nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index("idx_campaign_partner", "campaigns", ["partner_id"])

    # Mission templates table
    op.create_table(
        "mission_templates",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "campaign_id", sa.Integer, sa.ForeignKey("campaigns.id"), nullable=False
        ),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column(
            "verification_type",
            sa.Enum(
                "IMAGE",
                "TEXT_REVIEW",
                "QUIZ",
                "LOCATION",
                name="verification_type_enum",
            ),
            nullable=False,
        ),
        sa.Column("reward_points", sa.Integer, nullable=False, server_default="0"),
        sa.Column("order", sa.Integer, nullable=False, server_default="0"),
        sa.Column("success_criteria", sa.Text, nullable=True),
    )
    op.create_index(
        "idx_template_campaign", "mission_templates", ["campaign_id", "order"]
    )

    # Profiles table
    op.create_table(
        "profiles",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("username", sa.String(128), nullable=True),
        sa.Column("user_img", sa.Text, nullable=True),
        sa.Column("total_points", sa.Integer, nullable=False, server_default="0"),
    )

    # Mission logs table
    op.create_table(
        "mission_logs",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "user_id", sa.String(36), sa.ForeignKey("profiles.id"), nullable=False
        ),
        sa.Column(
            "mission_template_id",
            sa.Integer,
            sa.ForeignKey("mission_templates.id"),
            nullable=False,
        ),
        sa.Column(
            "status",
            sa.Enum(
                "IN_PROGRESS",
                "PENDING_VERIFICATION",
                "COMPLETED",
                "FAILED",
                name="mission_log_status_enum",
            ),
            nullable=False,
            server_default="IN_PROGRESS",
        ),
        sa.Column("proof_data", sa.JSON, nullable=True),
        sa.Column(
            "started_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index(
        "idx_mission_log_template_status",
        "mission_logs",
        ["mission_template_id", "status"],
    )
    op.create_index("idx_mission_log_user", "mission_logs", ["user_id"])

    # Point log table (append-only)
    op.create_table(
        "point_log",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "user_id", sa.String(36), sa.ForeignKey("profiles.id"), nullable=False
        ),
        sa.Column("point", sa.Integer, nullable=False),
        sa.Column("reason", sa.String(255), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index("idx_point_log_user", "point_log", ["user_id", "created_at"])


def downgrade() -> None:
    op.drop_table("point_log")
    op.drop_table("mission_logs")
    op.drop_table("profiles")
    op.drop_table("mission_templates")
    op.drop_table("campaigns")
    op.drop_table("partners")
    op.drop_table("partner_applications")

    for enum_name in (
        "mission_log_status_enum",
        "verification_type_enum",
        "campaign_status_enum",
        "partner_status_enum",
        "application_status_enum",
    ):
        sa.Enum(name=enum_name).drop(op.get_bind(), checkfirst=True)
