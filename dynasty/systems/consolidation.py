"""
Power consolidation tracking.

The incumbent's grip on power is a score derived from a handful of event
counters. Other systems call the record_* hooks when something happens;
the tracker bumps the counter and recomputes the score.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..state.event_bus import get_event_bus, EventType
from ..state.schema import ConsolidationScore

if TYPE_CHECKING:
    from ..state.schema import RegimeState

logger = logging.getLogger(__name__)


class ConsolidationTracker:
    """Event hooks over RegimeState.consolidation."""

    def __init__(self):
        self._bus = get_event_bus()

    def record_turn_in_position(self, state: "RegimeState") -> int:
        return self._bump(state, "turns_in_position")

    def record_loyal_appointment(self, state: "RegimeState") -> int:
        return self._bump(state, "loyal_appointments")

    def record_purge_outcome(self, state: "RegimeState", success: bool) -> int:
        """A successful purge entrenches; a botched one breeds opposition."""
        if success:
            return self._bump(state, "successful_purges")
        return self._bump(state, "factional_opposition")

    def record_failed_policy(self, state: "RegimeState") -> int:
        return self._bump(state, "failed_policies")

    def record_economic_crisis(self, state: "RegimeState") -> int:
        return self._bump(state, "economic_crises")

    def record_factional_opposition(self, state: "RegimeState", count: int = 1) -> int:
        return self._bump(state, "factional_opposition", count)

    def reset_for_new_leader(self, state: "RegimeState") -> int:
        """A successor starts from scratch."""
        old_score = state.consolidation.score
        state.consolidation = ConsolidationScore()
        new_score = state.consolidation.recalculate()
        self._announce(state, old_score, new_score, "reset")
        return new_score

    def _bump(self, state: "RegimeState", counter: str, count: int = 1) -> int:
        consolidation = state.consolidation
        old_score = consolidation.score
        setattr(consolidation, counter, max(0, getattr(consolidation, counter) + count))
        new_score = consolidation.recalculate()
        self._announce(state, old_score, new_score, counter)
        return new_score

    def _announce(self, state: "RegimeState", old: int, new: int, reason: str) -> None:
        if old == new:
            return
        logger.debug(f"Consolidation {old} -> {new} ({reason})")
        self._bus.emit(
            EventType.CONSOLIDATION_CHANGED,
            regime_id=state.id,
            turn=state.turn_number,
            old_score=old,
            new_score=new,
            reason=reason,
            removal_threshold=state.consolidation.removal_threshold,
        )
