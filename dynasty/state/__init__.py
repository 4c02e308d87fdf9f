"""Regime state and notifications."""

from .schema import (
    RegimeState,
    NationalStats,
    PersonalStats,
    StatId,
    Variable,
    Flag,
    Province,
    ProvinceCategory,
    ProvinceStatus,
    Governor,
    ConsolidationScore,
    SuccessionBond,
    MentorshipType,
    RepressionCampaign,
    PurgeSector,
    PurgeIntensity,
    Character,
    CharacterStatus,
    PositionRecord,
    EventRecord,
    clamp,
)
from .event_bus import (
    EventBus,
    EventType,
    GameEvent,
    get_event_bus,
    reset_event_bus,
)

__all__ = [
    # Schema
    "RegimeState",
    "NationalStats",
    "PersonalStats",
    "StatId",
    "Variable",
    "Flag",
    "Province",
    "ProvinceCategory",
    "ProvinceStatus",
    "Governor",
    "ConsolidationScore",
    "SuccessionBond",
    "MentorshipType",
    "RepressionCampaign",
    "PurgeSector",
    "PurgeIntensity",
    "Character",
    "CharacterStatus",
    "PositionRecord",
    "EventRecord",
    "clamp",
    # Events
    "EventBus",
    "EventType",
    "GameEvent",
    "get_event_bus",
    "reset_event_bus",
]
