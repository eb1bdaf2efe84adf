"""Reward point settlement."""

from dataclasses import dataclass
from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session as DBSession

from ecoconsole_core.domain.models import PointLog, Profile, utcnow
from ecoconsole_core.observability import get_logger

logger = get_logger(__name__)

BALANCE_WRITE_WARNING = "Points could not be added to the participant's balance."
LEDGER_WRITE_WARNING = "Points were added, but the point history entry could not be saved."


@dataclass
class GrantResult:
    """Outcome of a point grant."""

    points: int
    warning: Optional[str] = None


class RewardService:
    """Credits reward points to participant profiles."""

    def __init__(self, db: DBSession):
        self.db = db

    def grant(self, user_id: str, points: int, reason: str) -> GrantResult:
        """Add points to a profile and record them in the point log.

        The balance is incremented in SQL so concurrent grants cannot lose
        an update. Each write runs in its own savepoint; a failure is logged
        and returned as a warning rather than raised, leaving the caller's
        surrounding changes intact.

        Args:
            user_id: Profile ID of the participant.
            points: Points to add (may be zero).
            reason: Human-readable reason stored with the log entry.
        """
        try:
            with self.db.begin_nested():
                result = self.db.execute(
                    update(Profile)
                    .where(Profile.id == user_id)
                    .values(total_points=Profile.total_points + points)
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount != 1:
                    raise LookupError(f"profile {user_id} not found")
        except (SQLAlchemyError, LookupError):
            logger.error(
                "point balance update failed",
                exc_info=True,
                user_id=user_id,
                points=points,
            )
            return GrantResult(points=0, warning=BALANCE_WRITE_WARNING)

        # The bulk update skipped the identity map
        profile = self.db.get(Profile, user_id)
        if profile is not None:
            self.db.refresh(profile, ["total_points"])

        try:
            with self.db.begin_nested():
                self.db.add(
                    PointLog(user_id=user_id, point=points, reason=reason, created_at=utcnow())
                )
                self.db.flush()
        except SQLAlchemyError:
            logger.error(
                "point log insert failed",
                exc_info=True,
                user_id=user_id,
                points=points,
            )
            return GrantResult(points=points, warning=LEDGER_WRITE_WARNING)

        logger.info("reward points granted", user_id=user_id, points=points, reason=reason)
        return GrantResult(points=points)

    def ledger_total(self, user_id: str) -> int:
        """Sum of all point log entries for a participant."""
        total = self.db.execute(
            select(func.coalesce(func.sum(PointLog.point), 0)).where(PointLog.user_id == user_id)
        ).scalar()
        return int(total or 0)
