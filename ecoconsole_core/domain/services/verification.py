"""Mission proof verification for partner campaigns."""

from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session as DBSession
from sqlalchemy.orm import joinedload

from ecoconsole_core.domain.aggregation import (
    CANDIDATE_STATUSES,
    VerificationQueue,
    build_verification_queue,
)
from ecoconsole_core.domain.errors import NotFoundError, StateError, ValidationError
from ecoconsole_core.domain.models import Campaign, MissionLog, MissionLogStatus, utcnow
from ecoconsole_core.domain.services.partners import PartnerService
from ecoconsole_core.domain.services.rewards import RewardService
from ecoconsole_core.observability import get_logger

logger = get_logger(__name__)

ACTIONS = {
    "approve": MissionLogStatus.COMPLETED,
    "reject": MissionLogStatus.FAILED,
}


@dataclass
class VerificationDecision:
    """Result of approving or rejecting a participant's mission set."""

    action: str
    points_awarded: Optional[int] = None
    warning: Optional[str] = None


class VerificationService:
    """Builds review queues and applies partner decisions."""

    def __init__(
        self,
        db: DBSession,
        reward_service: Optional[RewardService] = None,
        include_partial: bool = False,
    ):
        """Initialize the verification service.

        Args:
            db: SQLAlchemy database session.
            reward_service: Service used to credit points on approval.
            include_partial: List mixed-status participants in the queue.
        """
        self.db = db
        self.partners = PartnerService(db)
        self.rewards = reward_service or RewardService(db)
        self.include_partial = include_partial

    def get_queue(self, partner_id: str, campaign_id: int) -> VerificationQueue:
        """Build the verification queue for one of the partner's campaigns.

        Raises:
            NotFoundError: If the campaign does not belong to the partner.
        """
        campaign = self.partners.get_owned_campaign(partner_id, campaign_id)
        return self.queue_for(campaign)

    def queue_for(self, campaign: Campaign) -> VerificationQueue:
        templates = self.partners.get_templates(campaign.id)
        if not templates:
            return VerificationQueue()

        logs = (
            self.db.execute(
                select(MissionLog)
                .options(joinedload(MissionLog.profile))
                .where(
                    MissionLog.mission_template_id.in_([t.id for t in templates]),
                    MissionLog.status.in_(CANDIDATE_STATUSES),
                )
                .order_by(MissionLog.id.asc())
                .execution_options(populate_existing=True)
            )
            .scalars()
            .all()
        )
        profiles = {log.user_id: log.profile for log in logs if log.profile is not None}

        return build_verification_queue(
            templates, logs, profiles=profiles, include_partial=self.include_partial
        )

    def decide(
        self,
        partner_id: str,
        campaign_id: int,
        user_id: Optional[str],
        action: Optional[str],
    ) -> VerificationDecision:
        """Approve or reject every pending mission of one participant.

        Approval credits the sum of the campaign's reward points, once.

        Raises:
            ValidationError: If user_id is missing or the action is unknown.
            NotFoundError: If the campaign is not the partner's or has no
                mission templates.
            StateError: If the participant is not awaiting verification, or
                another decision was applied concurrently.
        """
        if not user_id:
            raise ValidationError("userId is required")
        if action not in ACTIONS:
            raise ValidationError("action must be one of: approve, reject")

        campaign = self.partners.get_owned_campaign(partner_id, campaign_id)
        templates = self.partners.get_templates(campaign.id)
        if not templates:
            raise NotFoundError(f"campaign {campaign_id} has no missions")

        template_ids = [t.id for t in templates]
        pending_filter = (
            MissionLog.user_id == user_id,
            MissionLog.mission_template_id.in_(template_ids),
            MissionLog.status == MissionLogStatus.PENDING_VERIFICATION,
        )
        pending_ids = self.db.execute(select(MissionLog.id).where(*pending_filter)).scalars().all()
        if len(pending_ids) != len(templates):
            raise StateError("participant is not a verification candidate")

        new_status = ACTIONS[action]
        with self.db.begin_nested():
            result = self.db.execute(
                update(MissionLog)
                .where(*pending_filter)
                .values(status=new_status, updated_at=utcnow())
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != len(templates):
                # Roll back the savepoint; someone else decided first
                raise StateError("participant was already verified")

        logger.info(
            "verification decided",
            campaign_id=campaign.id,
            user_id=user_id,
            action=action,
            missions=len(templates),
        )

        if action == "reject":
            return VerificationDecision(action="rejected")

        points = sum(t.reward_points for t in templates)
        grant = self.rewards.grant(user_id, points, reason=f"Campaign completed: {campaign.title}")
        return VerificationDecision(
            action="approved",
            points_awarded=grant.points,
            warning=grant.warning,
        )
