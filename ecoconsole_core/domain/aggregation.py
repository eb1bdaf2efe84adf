"""Verification queue and campaign statistics rollups.

Pure functions over rows that have already been loaded; nothing here touches
the database. Templates and logs are anything exposing the ORM attribute
names (``MissionTemplate`` / ``MissionLog`` rows in production, simple
objects in tests).

A participant is resolved for review only when their candidate logs are
uniformly PENDING_VERIFICATION, COMPLETED or FAILED across every template of
the campaign. Mixed sets (for example two completed and one still pending)
are left out of the queue unless ``include_partial`` is set, and are always
reported in ``VerificationQueue.excluded_user_ids``.
"""

import math
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Any, Iterable, Mapping, Optional, Sequence

from ecoconsole_core.domain.errors import ValidationError
from ecoconsole_core.domain.models import MissionLogStatus
from ecoconsole_core.domain.proof import MissionProof, parse_proof, proof_to_dict
from ecoconsole_core.observability import get_logger

logger = get_logger(__name__)

# Log statuses considered when building the review queue
CANDIDATE_STATUSES = (
    MissionLogStatus.PENDING_VERIFICATION,
    MissionLogStatus.COMPLETED,
    MissionLogStatus.FAILED,
)

NOT_STARTED = "NOT_STARTED"


class CandidateStatus(str):
    """Review status of a participant's mission set."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    # Only produced when partial sets are included
    IN_PROGRESS = "in_progress"


def completion_rate(completed: int, total: int) -> int:
    """Percentage of ``completed`` over ``total``, rounded half up; 0 when empty."""
    if total <= 0:
        return 0
    return int(math.floor(completed * 100 / total + 0.5))


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    value = _as_utc(value)
    return value.isoformat() if value else None


# =============================================================================
# VERIFICATION QUEUE
# =============================================================================


@dataclass
class MissionEntry:
    """One template's state within a participant's submission."""

    mission_id: int
    title: str
    verification_type: str
    reward_points: int
    status: str
    proof: Optional[MissionProof] = None
    proof_error: Optional[str] = None
    completed_at: Optional[datetime] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "missionId": self.mission_id,
            "missionTitle": self.title,
            "verificationType": self.verification_type,
            "rewardPoints": self.reward_points,
            "status": self.status,
            "proofData": proof_to_dict(self.proof),
            "proofError": self.proof_error,
            "completedAt": _isoformat(self.completed_at),
        }


@dataclass
class VerificationCandidate:
    """A participant whose full mission set is ready for (or past) review."""

    user_id: str
    status: str
    total_points: int
    missions: list[MissionEntry]
    submitted_at: Optional[datetime] = None
    username: Optional[str] = None
    user_img: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "userId": self.user_id,
            "username": self.username,
            "userImg": self.user_img,
            "status": self.status,
            "totalPoints": self.total_points,
            "missions": [m.to_dict() for m in self.missions],
            "submittedAt": _isoformat(self.submitted_at),
        }


@dataclass
class VerificationQueue:
    """Review queue for one campaign."""

    candidates: list[VerificationCandidate] = field(default_factory=list)
    templates: list[Any] = field(default_factory=list)
    excluded_user_ids: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "verifications": [c.to_dict() for c in self.candidates],
            "templates": [
                {
                    "id": t.id,
                    "title": t.title,
                    "verificationType": t.verification_type,
                    "rewardPoints": t.reward_points,
                }
                for t in self.templates
            ],
            "excludedParticipants": len(self.excluded_user_ids),
        }


def group_logs_by_user(logs: Iterable[Any]) -> dict[str, list[Any]]:
    """Group logs by participant, keeping first-seen order."""
    grouped: dict[str, list[Any]] = {}
    for log in logs:
        grouped.setdefault(log.user_id, []).append(log)
    return grouped


def classify_logs(user_logs: Sequence[Any], total_missions: int) -> Optional[str]:
    """Resolve a participant's review status from their candidate logs.

    Returns:
        pending / approved / rejected when every template shares one status,
        otherwise None.
    """
    counts = Counter(log.status for log in user_logs)

    if counts[MissionLogStatus.COMPLETED] == total_missions:
        return CandidateStatus.APPROVED
    if counts[MissionLogStatus.FAILED] == total_missions:
        return CandidateStatus.REJECTED
    if counts[MissionLogStatus.PENDING_VERIFICATION] == total_missions:
        return CandidateStatus.PENDING
    return None


def _mission_entries(templates: Sequence[Any], user_logs: Sequence[Any]) -> list[MissionEntry]:
    by_template: dict[int, Any] = {}
    for log in user_logs:
        by_template.setdefault(log.mission_template_id, log)

    entries = []
    for template in templates:
        log = by_template.get(template.id)
        entry = MissionEntry(
            mission_id=template.id,
            title=template.title,
            verification_type=template.verification_type,
            reward_points=template.reward_points,
            status=log.status if log is not None else NOT_STARTED,
            completed_at=_as_utc(log.completed_at) if log is not None else None,
        )
        if log is not None:
            try:
                entry.proof = parse_proof(template.verification_type, log.proof_data)
            except ValidationError as e:
                entry.proof_error = e.message
                logger.warning(
                    "unreadable mission proof",
                    mission_log_id=getattr(log, "id", None),
                    verification_type=template.verification_type,
                    error=e.message,
                )
        entries.append(entry)
    return entries


def latest_completion(user_logs: Iterable[Any]) -> Optional[datetime]:
    """Most recent non-null ``completed_at`` among the logs."""
    timestamps = [_as_utc(log.completed_at) for log in user_logs if log.completed_at]
    return max(timestamps) if timestamps else None


def sort_candidates(candidates: list[VerificationCandidate]) -> list[VerificationCandidate]:
    """Pending first in their existing order, then newest submission first.

    Candidates without a submission time go last.
    """
    pending = [c for c in candidates if c.status == CandidateStatus.PENDING]
    rest = [c for c in candidates if c.status != CandidateStatus.PENDING]
    rest.sort(
        key=lambda c: c.submitted_at.timestamp() if c.submitted_at else float("-inf"),
        reverse=True,
    )
    return pending + rest


def build_verification_queue(
    templates: Sequence[Any],
    logs: Iterable[Any],
    profiles: Optional[Mapping[str, Any]] = None,
    include_partial: bool = False,
) -> VerificationQueue:
    """Build the review queue for a campaign.

    Args:
        templates: The campaign's mission templates, in display order.
        logs: Mission logs for those templates. Logs outside
            ``CANDIDATE_STATUSES`` are ignored.
        profiles: Optional participant profiles keyed by user id.
        include_partial: Also list mixed-status participants as in_progress.

    Returns:
        The sorted queue.
    """
    total_missions = len(templates)
    if total_missions == 0:
        return VerificationQueue()

    template_ids = {t.id for t in templates}
    candidate_logs = [
        log
        for log in logs
        if log.mission_template_id in template_ids and log.status in CANDIDATE_STATUSES
    ]
    total_points = sum(t.reward_points for t in templates)
    profiles = profiles or {}

    candidates = []
    excluded = []
    for user_id, user_logs in group_logs_by_user(candidate_logs).items():
        status = classify_logs(user_logs, total_missions)
        if status is None:
            excluded.append(user_id)
            if not include_partial:
                continue
            status = CandidateStatus.IN_PROGRESS

        profile = profiles.get(user_id)
        candidates.append(
            VerificationCandidate(
                user_id=user_id,
                username=getattr(profile, "username", None),
                user_img=getattr(profile, "user_img", None),
                status=status,
                total_points=total_points,
                missions=_mission_entries(templates, user_logs),
                submitted_at=latest_completion(user_logs),
            )
        )

    if excluded:
        logger.debug(
            "participants with mixed mission states",
            excluded_count=len(excluded),
            included=include_partial,
        )

    return VerificationQueue(
        candidates=sort_candidates(candidates),
        templates=list(templates),
        excluded_user_ids=excluded,
    )


# =============================================================================
# CAMPAIGN STATISTICS
# =============================================================================


@dataclass
class StatusBreakdown:
    """Log counts by status."""

    in_progress: int = 0
    pending_verification: int = 0
    completed: int = 0
    failed: int = 0

    @property
    def total(self) -> int:
        return self.in_progress + self.pending_verification + self.completed + self.failed

    @classmethod
    def from_logs(cls, logs: Iterable[Any]) -> "StatusBreakdown":
        counts = Counter(log.status for log in logs)
        return cls(
            in_progress=counts[MissionLogStatus.IN_PROGRESS],
            pending_verification=counts[MissionLogStatus.PENDING_VERIFICATION],
            completed=counts[MissionLogStatus.COMPLETED],
            failed=counts[MissionLogStatus.FAILED],
        )

    def to_dict(self) -> dict[str, int]:
        return {
            "inProgress": self.in_progress,
            "pendingVerification": self.pending_verification,
            "completed": self.completed,
            "failed": self.failed,
        }


@dataclass
class MissionStats:
    """Per-template completion figures."""

    id: int
    title: str
    verification_type: str
    reward_points: int
    total: int
    completed: int
    pending: int
    in_progress: int
    failed: int
    completion_rate: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "verificationType": self.verification_type,
            "rewardPoints": self.reward_points,
            "total": self.total,
            "completed": self.completed,
            "pending": self.pending,
            "inProgress": self.in_progress,
            "failed": self.failed,
            "completionRate": self.completion_rate,
        }


@dataclass
class CampaignStats:
    """Aggregate statistics for one campaign."""

    total_participants: int = 0
    total_missions: int = 0
    mission_stats: list[MissionStats] = field(default_factory=list)
    status_breakdown: StatusBreakdown = field(default_factory=StatusBreakdown)
    completion_rate: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalParticipants": self.total_participants,
            "totalMissions": self.total_missions,
            "missionStats": [m.to_dict() for m in self.mission_stats],
            "statusBreakdown": self.status_breakdown.to_dict(),
            "completionRate": self.completion_rate,
        }


def compute_mission_stats(template: Any, logs: Sequence[Any]) -> MissionStats:
    """Completion figures for one template over all of its logs."""
    template_logs = [log for log in logs if log.mission_template_id == template.id]
    breakdown = StatusBreakdown.from_logs(template_logs)
    total = len(template_logs)
    return MissionStats(
        id=template.id,
        title=template.title,
        verification_type=template.verification_type,
        reward_points=template.reward_points,
        total=total,
        completed=breakdown.completed,
        pending=breakdown.pending_verification,
        in_progress=breakdown.in_progress,
        failed=breakdown.failed,
        completion_rate=completion_rate(breakdown.completed, total),
    )


def compute_campaign_stats(templates: Sequence[Any], logs: Iterable[Any]) -> CampaignStats:
    """Campaign rollup over every log, whatever its status."""
    if not templates:
        return CampaignStats()

    template_ids = {t.id for t in templates}
    campaign_logs = [log for log in logs if log.mission_template_id in template_ids]
    breakdown = StatusBreakdown.from_logs(campaign_logs)

    return CampaignStats(
        total_participants=len({log.user_id for log in campaign_logs}),
        total_missions=len(templates),
        mission_stats=[compute_mission_stats(t, campaign_logs) for t in templates],
        status_breakdown=breakdown,
        completion_rate=completion_rate(breakdown.completed, len(campaign_logs)),
    )


# =============================================================================
# PARTNER DASHBOARD
# =============================================================================


UNCATEGORIZED = "Uncategorized"

# Estimated CO2 saved per completed mission; no per-mission figure is stored
DEFAULT_CO2_KG_PER_MISSION = 0.5

# Length of the periods compared by monthly growth
GROWTH_PERIOD_DAYS = 30


@dataclass
class CampaignRanking:
    """A campaign's participation figures, for ranking."""

    campaign_id: int
    title: str
    category: Optional[str]
    region: Optional[str]
    participants: int
    completed: int
    completion_rate: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.campaign_id,
            "title": self.title,
            "category": self.category,
            "region": self.region,
            "participants": self.participants,
            "total": self.participants,
            "completed": self.completed,
            "completionRate": self.completion_rate,
        }


@dataclass
class DashboardOverview:
    """Headline numbers across all of a partner's campaigns."""

    total_participants: int = 0
    completed_missions: int = 0
    mission_completion_rate: int = 0
    co2_reduction: float = 0.0
    monthly_growth: int = 0
    weekly_new_participants: int = 0
    top_campaign: Optional[CampaignRanking] = None
    weekly_trend: list[dict[str, Any]] = field(default_factory=list)
    category_distribution: list[dict[str, Any]] = field(default_factory=list)
    top_category: Optional[str] = None
    top_region: Optional[str] = None
    campaign_completion_rate: int = 0

    def to_dict(self) -> dict[str, Any]:
        top = None
        if self.top_campaign is not None:
            top = {
                "title": self.top_campaign.title,
                "participants": self.top_campaign.participants,
                "completed": self.top_campaign.completed,
                "completionRate": self.top_campaign.completion_rate,
            }
        return {
            "totalParticipants": self.total_participants,
            "completedMissions": self.completed_missions,
            "missionCompletionRate": self.mission_completion_rate,
            "co2Reduction": self.co2_reduction,
            "monthlyGrowth": self.monthly_growth,
            "weeklyNewParticipants": self.weekly_new_participants,
            "topCampaign": top,
            "weeklyTrend": self.weekly_trend,
            "categoryDistribution": self.category_distribution,
            "topCategory": self.top_category,
            "topRegion": self.top_region,
            "campaignCompletionRate": self.campaign_completion_rate,
        }


def rank_campaigns(
    campaigns: Sequence[Any],
    templates_by_campaign: Mapping[int, Sequence[Any]],
    logs: Iterable[Any],
) -> list[CampaignRanking]:
    """Rank campaigns by distinct participants, most first.

    ``completed`` counts participants with every template COMPLETED.
    """
    template_campaign = {
        t.id: campaign_id
        for campaign_id, templates in templates_by_campaign.items()
        for t in templates
    }
    logs_by_campaign: dict[int, list[Any]] = {}
    for log in logs:
        campaign_id = template_campaign.get(log.mission_template_id)
        if campaign_id is not None:
            logs_by_campaign.setdefault(campaign_id, []).append(log)

    rankings = []
    for campaign in campaigns:
        templates = templates_by_campaign.get(campaign.id, [])
        campaign_logs = logs_by_campaign.get(campaign.id, [])
        grouped = group_logs_by_user(campaign_logs)
        completed = sum(
            1
            for user_logs in grouped.values()
            if templates
            and classify_logs(user_logs, len(templates)) == CandidateStatus.APPROVED
        )
        rankings.append(
            CampaignRanking(
                campaign_id=campaign.id,
                title=campaign.title,
                category=campaign.category,
                region=campaign.region,
                participants=len(grouped),
                completed=completed,
                completion_rate=completion_rate(completed, len(grouped)),
            )
        )

    rankings.sort(key=lambda r: r.participants, reverse=True)
    return rankings


def percent_change(current: int, previous: int) -> int:
    """Change from ``previous`` to ``current`` in percent, rounded half up.

    Growth from nothing counts as 100% (0% when both are zero).
    """
    if previous <= 0:
        return 100 if current > 0 else 0
    return int(math.floor((current - previous) * 100 / previous + 0.5))


def _top_key(totals: Counter) -> Optional[str]:
    if not totals:
        return None
    key, count = totals.most_common(1)[0]
    return key if count > 0 else None


def build_dashboard_overview(
    campaigns: Sequence[Any],
    templates_by_campaign: Mapping[int, Sequence[Any]],
    logs: Sequence[Any],
    today: Optional[date] = None,
    co2_kg_per_mission: float = DEFAULT_CO2_KG_PER_MISSION,
) -> DashboardOverview:
    """Summarize participation across a partner's campaigns.

    Args:
        campaigns: The partner's campaigns.
        templates_by_campaign: Templates keyed by campaign id.
        logs: Mission logs for all of those templates.
        today: Last day of the trend and growth windows (defaults to UTC today).
        co2_kg_per_mission: Estimated CO2 saved by one completed mission.
    """
    template_ids = {t.id for templates in templates_by_campaign.values() for t in templates}
    logs = [log for log in logs if log.mission_template_id in template_ids]
    breakdown = StatusBreakdown.from_logs(logs)
    rankings = rank_campaigns(campaigns, templates_by_campaign, logs)

    overview = DashboardOverview(
        total_participants=len({log.user_id for log in logs}),
        completed_missions=breakdown.completed,
        mission_completion_rate=completion_rate(breakdown.completed, len(logs)),
        co2_reduction=round(breakdown.completed * co2_kg_per_mission, 1),
    )

    if rankings and rankings[0].participants > 0:
        overview.top_campaign = rankings[0]

    categories: Counter = Counter()
    regions: Counter = Counter()
    for ranking in rankings:
        categories[ranking.category or UNCATEGORIZED] += ranking.participants
        if ranking.region:
            regions[ranking.region] += ranking.participants
    overview.category_distribution = [
        {"category": category, "participants": count}
        for category, count in categories.most_common()
    ]
    overview.top_category = _top_key(categories)
    overview.top_region = _top_key(regions)

    pairs = sum(r.participants for r in rankings)
    finished = sum(r.completed for r in rankings)
    overview.campaign_completion_rate = completion_rate(finished, pairs)

    # A participant counts as new on the day of their first started mission
    first_seen: dict[str, date] = {}
    for log in logs:
        started = _as_utc(log.started_at)
        if started is None:
            continue
        day = started.date()
        if log.user_id not in first_seen or day < first_seen[log.user_id]:
            first_seen[log.user_id] = day

    today = today or datetime.now(timezone.utc).date()
    new_per_day = Counter(first_seen.values())
    window = [today - timedelta(days=offset) for offset in range(6, -1, -1)]
    overview.weekly_trend = [
        {"date": day.isoformat(), "participants": new_per_day.get(day, 0)} for day in window
    ]
    overview.weekly_new_participants = sum(item["participants"] for item in overview.weekly_trend)

    # New participants in the last 30 days against the 30 days before
    current_start = today - timedelta(days=GROWTH_PERIOD_DAYS - 1)
    previous_start = current_start - timedelta(days=GROWTH_PERIOD_DAYS)
    current = sum(1 for day in first_seen.values() if current_start <= day <= today)
    previous = sum(1 for day in first_seen.values() if previous_start <= day < current_start)
    overview.monthly_growth = percent_change(current, previous)

    return overview


@dataclass
class CampaignMissionSummary:
    """Mission status counts for one campaign."""

    campaign_id: int
    title: str
    breakdown: StatusBreakdown
    completion_rate: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.campaign_id,
            "title": self.title,
            "completed": self.breakdown.completed,
            "inProgress": self.breakdown.in_progress,
            "pending": self.breakdown.pending_verification,
            "failed": self.breakdown.failed,
            "completionRate": self.completion_rate,
        }


@dataclass
class MissionDetails:
    """Mission completion across a partner's campaigns, per campaign."""

    completed_missions: int = 0
    total_missions: int = 0
    completion_rate: int = 0
    campaigns: list[CampaignMissionSummary] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "completedMissions": self.completed_missions,
            "totalMissions": self.total_missions,
            "completionRate": self.completion_rate,
            "campaigns": [c.to_dict() for c in self.campaigns],
        }


def build_mission_details(
    campaigns: Sequence[Any],
    templates_by_campaign: Mapping[int, Sequence[Any]],
    logs: Iterable[Any],
) -> MissionDetails:
    """Count mission logs by status, overall and per campaign.

    ``totalMissions`` counts mission logs, not templates. Campaigns keep
    the order they were given in.
    """
    logs = list(logs)
    details = MissionDetails()
    for campaign in campaigns:
        template_ids = {t.id for t in templates_by_campaign.get(campaign.id, ())}
        campaign_logs = [log for log in logs if log.mission_template_id in template_ids]
        breakdown = StatusBreakdown.from_logs(campaign_logs)
        details.campaigns.append(
            CampaignMissionSummary(
                campaign_id=campaign.id,
                title=campaign.title,
                breakdown=breakdown,
                completion_rate=completion_rate(breakdown.completed, len(campaign_logs)),
            )
        )
        details.completed_missions += breakdown.completed
        details.total_missions += len(campaign_logs)

    details.completion_rate = completion_rate(details.completed_missions, details.total_missions)
    return details
