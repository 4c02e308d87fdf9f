"""
TurnResult schema: the output of one advanced turn.

Design invariants:
- state_snapshot is what renderers draw from
- verdict is set exactly when the run ended this turn
- events lists every notification emitted while the turn advanced
"""

from datetime import datetime

from pydantic import BaseModel, Field

from .event import TurnEvent
from .verdict import TerminalVerdict


class TurnResult(BaseModel):
    """
    Complete result of an advanced turn.

    The orchestrator produces this after:
    1. Applying decision effects
    2. Advancing provinces, consolidation and succession bonds
    3. Advancing the active repression campaign
    4. Evaluating terminal conditions
    """
    turn_number: int
    verdict: TerminalVerdict | None = None

    events: list[TurnEvent] = Field(default_factory=list)
    state_snapshot: dict = Field(default_factory=dict)

    # Seed of the run, for deterministic replay
    seed: int = 0
    resolved_at: datetime = Field(default_factory=datetime.now)

    @property
    def game_over(self) -> bool:
        return self.verdict is not None

    @property
    def event_summary(self) -> list[str]:
        """Human-readable summary of events for quick display."""
        return [f"[{e.event_type}] {e.summary}" for e in self.events if e.summary]
