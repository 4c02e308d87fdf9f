"""
Simulation systems for the regime core.

Each system operates on a RegimeState handed to it and keeps no state of
its own between turns. TurnOrchestrator calls them in a fixed order.
"""

from .provinces import (
    ProvinceStabilityModel,
    DeploymentLevel,
    ConcessionType,
    TerritorialAssessment,
)
from .consolidation import ConsolidationTracker
from .succession import SuccessionTracker, SuccessionError
from .repression import RepressionSystem, RepressionError, CampaignCooldownError
from .risk import (
    RiskEvaluator,
    GameOverChecker,
    RiskWarning,
    has_viable_heir,
    build_statistics,
)
from .turns import (
    TurnOrchestrator,
    TurnPhase,
    VALID_TRANSITIONS,
    TurnError,
    InvalidPhaseError,
    GameEndedError,
)

__all__ = [
    "ProvinceStabilityModel",
    "DeploymentLevel",
    "ConcessionType",
    "TerritorialAssessment",
    "ConsolidationTracker",
    "SuccessionTracker",
    "SuccessionError",
    "RepressionSystem",
    "RepressionError",
    "CampaignCooldownError",
    "RiskEvaluator",
    "GameOverChecker",
    "RiskWarning",
    "has_viable_heir",
    "build_statistics",
    # Turn pipeline
    "TurnOrchestrator",
    "TurnPhase",
    "VALID_TRANSITIONS",
    "TurnError",
    "InvalidPhaseError",
    "GameEndedError",
]
