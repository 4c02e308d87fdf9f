"""Tests for the turn orchestrator."""

import pytest

from dynasty.scenarios import new_regime
from dynasty.state import (
    EventType,
    Flag,
    PurgeIntensity,
    PurgeSector,
    StatId,
    SuccessionBond,
    get_event_bus,
)
from dynasty.state.schemas import TerminalCondition
from dynasty.systems import (
    GameEndedError,
    InvalidPhaseError,
    TurnOrchestrator,
    TurnPhase,
    VALID_TRANSITIONS,
)


@pytest.fixture
def orchestrator(regime, config):
    return TurnOrchestrator(regime, config)


def _kill(state):
    state.add_flag(Flag.PLAYER_DEATH_IMMINENT)


class TestPhases:
    """Test the phase state machine."""

    def test_starts_idle(self, orchestrator):
        assert orchestrator.phase == TurnPhase.IDLE
        assert orchestrator.verdict is None

    def test_ended_is_terminal(self):
        assert VALID_TRANSITIONS[TurnPhase.ENDED] == set()

    def test_idle_after_turn(self, orchestrator):
        orchestrator.run_turn()
        assert orchestrator.phase == TurnPhase.IDLE

    def test_bad_transition(self, orchestrator):
        with pytest.raises(InvalidPhaseError):
            orchestrator._transition(TurnPhase.COMPLETE)


class TestRunTurn:
    """Test the per-turn pipeline."""

    def test_turn_number_advances(self, orchestrator, regime):
        first = orchestrator.run_turn()
        second = orchestrator.run_turn()

        assert first.turn_number == 1
        assert second.turn_number == 2
        assert regime.turn_number == 3
        assert not second.game_over

    def test_snapshot_and_seed(self, orchestrator, regime):
        result = orchestrator.run_turn()

        assert result.seed == regime.seed
        assert result.state_snapshot["turn_number"] == 1
        assert result.state_snapshot["consolidation"]["score"] == regime.consolidation.score

    def test_effects_applied_before_advance(self, orchestrator, regime):
        seen = []
        get_event_bus().on(
            EventType.TURN_ADVANCED,
            lambda e: seen.append(regime.stat(StatId.STABILITY)),
        )

        orchestrator.run_turn(lambda s: s.apply_stat(StatId.STABILITY, -10))

        assert seen == [40]

    def test_systems_advance_once(self, orchestrator, regime):
        orchestrator.run_turn()
        orchestrator.run_turn()
        assert regime.consolidation.turns_in_position == 2

    def test_evaluator_runs_once(self, orchestrator, monkeypatch):
        calls = []
        real = orchestrator.risk.evaluate

        def counting(state):
            calls.append(state.turn_number)
            return real(state)

        monkeypatch.setattr(orchestrator.risk, "evaluate", counting)
        orchestrator.run_turn()

        assert calls == [1]

    def test_events_captured(self, orchestrator):
        result = orchestrator.run_turn()
        types = [e.event_type for e in result.events]

        assert types[0] == "turn.start"
        assert "turn.advanced" in types
        assert types[-1] == "turn.end"

    def test_capture_listeners_removed(self, orchestrator):
        orchestrator.run_turn()
        assert get_event_bus().listener_count(EventType.TURN_START) == 0

    def test_campaign_ages(self, orchestrator, regime):
        orchestrator.repression.launch(
            regime, "Anti-Rightist", PurgeSector.INTELLECTUALS, PurgeIntensity.LIMITED
        )
        orchestrator.run_turn()
        assert regime.campaigns[0].turns_active == 1

    def test_neglected_protege_turns_rival(self, orchestrator, regime):
        bond = SuccessionBond(
            protege_id="ambitious",
            protege_name="Ambitious Cadre",
            protege_ambition=80,
            protege_loyalty=35,
            last_mentored_turn=1,
        )
        regime.succession_bonds.append(bond)

        results = [orchestrator.run_turn() for _ in range(5)]

        assert bond.became_rival
        assert bond.became_rival_turn == 5
        assert "succession.turned_rival" in [e.event_type for e in results[-1].events]
        assert "Ambitious Cadre has turned against you" in results[-1].event_summary[0]


class TestGameOver:
    """Test how a verdict ends the run."""

    def test_verdict_ends_run(self, orchestrator, regime):
        result = orchestrator.run_turn(_kill)

        assert result.game_over
        assert result.verdict.condition == TerminalCondition.DEATH_NO_HEIR
        assert orchestrator.phase == TurnPhase.ENDED
        assert orchestrator.verdict is result.verdict
        assert regime.turn_number == 1

    def test_game_over_event(self, orchestrator):
        result = orchestrator.run_turn(_kill)

        assert result.events[-1].event_type == "game.over"
        assert result.events[-1].summary == "Natural causes"

    def test_no_turns_after_verdict(self, orchestrator):
        orchestrator.run_turn(_kill)

        with pytest.raises(GameEndedError) as exc:
            orchestrator.run_turn()
        assert exc.value.condition == "death_no_heir"


class TestFailures:
    """Test recovery when a turn raises."""

    def test_failed_effects_reset_phase(self, orchestrator, regime):
        def broken(state):
            raise ValueError("bad decision")

        with pytest.raises(ValueError):
            orchestrator.run_turn(broken)

        assert orchestrator.phase == TurnPhase.IDLE
        assert regime.turn_number == 1
        assert get_event_bus().listener_count(EventType.TURN_END) == 0

    def test_can_continue_after_failure(self, orchestrator, regime):
        def broken(state):
            raise ValueError("bad decision")

        with pytest.raises(ValueError):
            orchestrator.run_turn(broken)

        assert orchestrator.run_turn().turn_number == 1


class TestDeterminism:
    """Same seed, same decisions, same run."""

    @staticmethod
    def _play(seed, turns=15):
        state = new_regime(seed=seed)
        orchestrator = TurnOrchestrator(state)

        def squeeze(s):
            s.apply_stat(StatId.STABILITY, -2)

        for _ in range(turns):
            if orchestrator.run_turn(squeeze).game_over:
                break
        return state

    def test_same_seed_same_provinces(self):
        first = self._play(7)
        second = self._play(7)

        assert [p.model_dump() for p in first.provinces] == [
            p.model_dump() for p in second.provinces
        ]
        assert first.turn_number == second.turn_number
