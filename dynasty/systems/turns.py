"""
Turn orchestrator for the regime simulation.

Owns the phase state machine and sequences the turn pipeline:
    IDLE → ADVANCING → EVALUATING → COMPLETE → IDLE
                                  ↘ ENDED (terminal)

Design principles:
- Orchestrator sequences and delegates; it never computes rules itself.
- Decision effects are applied before any system advances.
- The risk evaluator runs exactly once per turn, last, on the fully
  updated state.
- Once a verdict is returned the orchestrator refuses further turns.

Usage:
    orchestrator = TurnOrchestrator(state, config)

    result = orchestrator.run_turn(lambda s: s.apply_stat(StatId.STABILITY, -10))
    if result.game_over:
        print(result.verdict.display_title)
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Callable

from ..config import BalanceConfig, DEFAULT_CONFIG
from ..state.event_bus import get_event_bus, EventType, GameEvent
from ..state.schemas.event import TurnEvent
from ..state.schemas.turn_result import TurnResult
from ..tools.dice import RandomSource, turn_rng
from .consolidation import ConsolidationTracker
from .provinces import ProvinceStabilityModel
from .repression import RepressionSystem
from .risk import RiskEvaluator
from .succession import SuccessionTracker

if TYPE_CHECKING:
    from ..state.schema import RegimeState

logger = logging.getLogger(__name__)


class TurnPhase(str, Enum):
    """Phase state machine for a single turn."""
    IDLE = "idle"              # No turn in progress
    ADVANCING = "advancing"    # Effects applied, systems advancing
    EVALUATING = "evaluating"  # Risk evaluator running
    COMPLETE = "complete"      # Turn fully complete, ready for next
    ENDED = "ended"            # A verdict was returned; the run is over


# Valid phase transitions: each phase maps to allowed next phases
VALID_TRANSITIONS: dict[TurnPhase, set[TurnPhase]] = {
    TurnPhase.IDLE: {TurnPhase.ADVANCING},
    TurnPhase.ADVANCING: {TurnPhase.EVALUATING, TurnPhase.IDLE},  # IDLE on failure
    TurnPhase.EVALUATING: {TurnPhase.COMPLETE, TurnPhase.ENDED, TurnPhase.IDLE},
    TurnPhase.COMPLETE: {TurnPhase.IDLE},
    TurnPhase.ENDED: set(),
}


class TurnError(Exception):
    """Error during turn processing."""
    pass


class InvalidPhaseError(TurnError):
    """Attempted operation not valid in current phase."""
    def __init__(self, current: TurnPhase, attempted: str):
        self.current = current
        self.attempted = attempted
        super().__init__(
            f"Cannot {attempted} during {current.value} phase."
        )


class GameEndedError(TurnError):
    """The run already has a verdict."""
    def __init__(self, condition: str):
        self.condition = condition
        super().__init__(f"Run is over ({condition}). Start a new run.")


# Decision effects: mutate the state before systems advance
Effects = Callable[["RegimeState"], None]


class TurnOrchestrator:
    """
    Sequences the per-turn pipeline. Delegates, never resolves.

    Responsibilities:
    - Phase state machine enforcement
    - Calling each system exactly once per turn, in order
    - Capturing emitted events into the TurnResult

    NOT responsible for:
    - Secession arithmetic (ProvinceStabilityModel)
    - Bond decay (SuccessionTracker)
    - Deciding the verdict (RiskEvaluator)
    """

    def __init__(
        self,
        state: "RegimeState",
        config: BalanceConfig | None = None,
        rng_factory: Callable[[int, int, str], RandomSource] = turn_rng,
    ):
        self._state = state
        self._phase = TurnPhase.IDLE
        self._bus = get_event_bus()
        self.config = config or DEFAULT_CONFIG
        self._verdict = None

        self.consolidation = ConsolidationTracker()
        self.provinces = ProvinceStabilityModel(self.config, rng_factory)
        self.succession = SuccessionTracker(self.config, rng_factory)
        self.repression = RepressionSystem(self.config, self.consolidation)
        self.risk = RiskEvaluator(self.config, rng_factory)

    @property
    def phase(self) -> TurnPhase:
        """Current phase of the turn state machine."""
        return self._phase

    @property
    def state(self) -> "RegimeState":
        return self._state

    @property
    def verdict(self):
        """The verdict that ended the run, if any."""
        return self._verdict

    def _transition(self, to: TurnPhase) -> None:
        """Transition to a new phase, enforcing valid transitions."""
        if to not in VALID_TRANSITIONS.get(self._phase, set()):
            raise InvalidPhaseError(
                self._phase,
                f"transition to {to.value}",
            )
        self._phase = to

    # ─── Turn Pipeline ───────────────────────────────────────────

    def run_turn(self, effects: Effects | None = None) -> TurnResult:
        """
        Play the current turn.

        Args:
            effects: Decision/narrative effects to apply before the
                systems advance

        Returns:
            TurnResult with the verdict (if the run ended), the events
            emitted during the turn and a snapshot of the new state

        Raises:
            GameEndedError: If a previous turn already ended the run
            InvalidPhaseError: If called while a turn is in progress
        """
        if self._phase == TurnPhase.ENDED:
            raise GameEndedError(self._verdict.condition.value)
        if self._phase != TurnPhase.IDLE:
            raise InvalidPhaseError(self._phase, "run a turn")

        state = self._state
        turn = state.turn_number
        captured: list[GameEvent] = []

        def capture(event: GameEvent) -> None:
            captured.append(event)

        for event_type in EventType:
            self._bus.on(event_type, capture)

        try:
            self._transition(TurnPhase.ADVANCING)
            self._bus.emit(EventType.TURN_START, regime_id=state.id, turn=turn)

            if effects is not None:
                effects(state)

            self._advance_systems(state)
            self._bus.emit(EventType.TURN_ADVANCED, regime_id=state.id, turn=turn)

            self._transition(TurnPhase.EVALUATING)
            verdict = self.risk.evaluate(state)

            if verdict is not None:
                self._verdict = verdict
                self._transition(TurnPhase.ENDED)
                logger.info(
                    f"Run ended on turn {turn}: {verdict.condition.value} ({verdict.cause})"
                )
                self._bus.emit(
                    EventType.GAME_OVER,
                    regime_id=state.id,
                    turn=turn,
                    condition=verdict.condition.value,
                    cause=verdict.cause,
                )
            else:
                self._transition(TurnPhase.COMPLETE)
                self._bus.emit(EventType.TURN_END, regime_id=state.id, turn=turn)
        except Exception:
            logger.exception(f"Turn {turn} failed during {self._phase.value}")
            self._phase = TurnPhase.IDLE
            raise
        finally:
            for event_type in EventType:
                self._bus.off(event_type, capture)

        result = TurnResult(
            turn_number=turn,
            verdict=verdict,
            events=[_to_turn_event(e) for e in captured],
            state_snapshot=state.snapshot(),
            seed=state.seed,
        )

        if verdict is None:
            state.turn_number += 1
            self._transition(TurnPhase.IDLE)

        return result

    def _advance_systems(self, state: "RegimeState") -> None:
        """Advance every subsystem once, leaves first."""
        self.provinces.process_turn(state)
        self.consolidation.record_turn_in_position(state)
        self.succession.process_turn(state)
        self.repression.process_turn(state)


def _to_turn_event(event: GameEvent) -> TurnEvent:
    return TurnEvent(
        event_type=event.type.value,
        payload=dict(event.data),
        summary=_summarize(event),
        timestamp=event.timestamp,
    )


def _summarize(event: GameEvent) -> str:
    """One-line player-facing summary for notable events."""
    data = event.data
    if event.type == EventType.PROVINCE_STATUS_CHANGED:
        return f"{data['province_id']}: {data['old']} -> {data['new']}"
    if event.type == EventType.PROVINCE_SECEDED:
        return f"{data['name']} has left the union"
    if event.type == EventType.TERRITORIAL_ALARM:
        return f"Territorial alarm: {data['reason']}"
    if event.type == EventType.PROTEGE_TURNED_RIVAL:
        return f"{data['name']} has turned against you"
    if event.type == EventType.CAMPAIGN_QUOTA_MET:
        return f"Campaign quota met ({data['arrests']} arrests)"
    if event.type == EventType.GAME_OVER:
        return data["cause"]
    return ""
