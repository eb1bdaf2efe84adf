"""Domain services for EcoConsole."""

from ecoconsole_core.domain.services.applications import ApplicationService, InviteOutcome
from ecoconsole_core.domain.services.campaigns import CampaignService
from ecoconsole_core.domain.services.partners import PartnerService
from ecoconsole_core.domain.services.rewards import GrantResult, RewardService
from ecoconsole_core.domain.services.verification import (
    VerificationDecision,
    VerificationService,
)

__all__ = [
    "ApplicationService",
    "CampaignService",
    "GrantResult",
    "InviteOutcome",
    "PartnerService",
    "RewardService",
    "VerificationDecision",
    "VerificationService",
]
