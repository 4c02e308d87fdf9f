"""Tests for terminal condition evaluation."""

import pytest

from dynasty.config import BalanceConfig, GameOverThresholds
from dynasty.state import (
    Character,
    CharacterStatus,
    EventRecord,
    Flag,
    PositionRecord,
    Province,
    ProvinceCategory,
    ProvinceStatus,
    PurgeIntensity,
    PurgeSector,
    RepressionCampaign,
    Variable,
)
from dynasty.state.schemas import DefeatCategory, TerminalCondition
from dynasty.systems import GameOverChecker, RiskEvaluator, has_viable_heir


@pytest.fixture
def evaluator(config):
    return RiskEvaluator(config)


def _with_heir(regime, disposition=60, status=CharacterStatus.ACTIVE):
    heir = Character(id="heir", name="Heir Apparent", disposition=disposition, status=status)
    regime.characters.append(heir)
    regime.designated_heir_id = heir.id
    return heir


def _seceded(pid, category=ProvinceCategory.AUTONOMOUS):
    return Province(id=pid, name=pid.title(), category=category, status=ProvinceStatus.SECEDED)


def _princeling(cid):
    return Character(id=cid, name=cid.title(), faction_id="princelings", disposition=20, rank=6)


class TestHeirViability:
    """Test the heir check that shields personal defeats."""

    def test_no_heir(self, regime):
        assert not has_viable_heir(regime)

    def test_viable_heir(self, regime):
        _with_heir(regime)
        assert has_viable_heir(regime)

    def test_unknown_heir(self, regime):
        regime.designated_heir_id = "ghost"
        assert not has_viable_heir(regime)

    def test_dead_heir(self, regime):
        _with_heir(regime, status=CharacterStatus.DEAD)
        assert not has_viable_heir(regime)

    def test_disaffected_heir(self, regime):
        _with_heir(regime, disposition=49)
        assert not has_viable_heir(regime)


class TestSystemLevel:
    """Test conditions nothing can prevent."""

    def test_healthy_state_continues(self, evaluator, default_regime):
        assert evaluator.evaluate(default_regime) is None

    def test_nuclear_flag(self, evaluator, regime):
        regime.add_flag(Flag.NUCLEAR_ESCALATION)
        verdict = evaluator.evaluate(regime)
        assert verdict.condition == TerminalCondition.NUCLEAR_WAR
        assert verdict.category == DefeatCategory.GLOBAL_CATASTROPHE

    def test_nuclear_tension(self, evaluator, regime):
        regime.set_variable(Variable.WORLD_TENSION, 100)
        assert evaluator.evaluate(regime).condition == TerminalCondition.NUCLEAR_WAR

    def test_nuclear_beats_revolution(self, evaluator, regime):
        regime.add_flag(Flag.NUCLEAR_ESCALATION)
        regime.national.stability = 0
        regime.national.popular_support = 0
        assert evaluator.evaluate(regime).condition == TerminalCondition.NUCLEAR_WAR

    def test_three_seceded(self, evaluator, regime):
        regime.provinces = [_seceded(f"p{i}") for i in range(3)]

        verdict = evaluator.evaluate(regime)

        assert verdict.condition == TerminalCondition.TERRITORIAL_DISINTEGRATION
        assert verdict.cause == "Union dissolved as 3 provinces declared independence"

    def test_economic_collapse_flag(self, evaluator, regime):
        regime.add_flag(Flag.ECONOMIC_COLLAPSE_SECESSION)
        assert evaluator.evaluate(regime).condition == TerminalCondition.TERRITORIAL_DISINTEGRATION

    def test_capital_seceded(self, evaluator, default_regime):
        default_regime.get_province("capital_district").status = ProvinceStatus.SECEDED

        verdict = evaluator.evaluate(default_regime)

        assert verdict.condition == TerminalCondition.CAPITAL_FALLS
        assert not verdict.preventable_by_heir

    def test_capital_captured(self, evaluator, regime):
        regime.add_flag(Flag.CAPITAL_CAPTURED)
        assert evaluator.evaluate(regime).condition == TerminalCondition.CAPITAL_FALLS

    def test_invasion_defeat(self, evaluator, regime):
        regime.add_flag(Flag.INVASION_DEFEAT)
        regime.labels["invading_power"] = "the Dominion"

        verdict = evaluator.evaluate(regime)

        assert verdict.condition == TerminalCondition.FOREIGN_INVASION
        assert verdict.cause == "Military defeat by the Dominion"

    def test_border_occupation(self, evaluator, regime):
        regime.provinces = [
            _seceded("north", ProvinceCategory.BORDER),
            _seceded("south", ProvinceCategory.BORDER),
        ]
        assert evaluator.evaluate(regime) is None

        regime.add_flag(Flag.FOREIGN_OCCUPATION)
        assert evaluator.evaluate(regime).condition == TerminalCondition.FOREIGN_INVASION


class TestPartyLevel:
    """Test revolution and coup."""

    def test_revolution_ignores_heir(self, regime):
        config = BalanceConfig(thresholds=GameOverThresholds(
            revolution_stability=30,
            revolution_popular_support=30,
        ))
        regime.national.stability = 20
        regime.national.popular_support = 15
        _with_heir(regime)

        verdict = RiskEvaluator(config).evaluate(regime)

        assert verdict.condition == TerminalCondition.REVOLUTION_OVERTHROW
        assert verdict.category == DefeatCategory.PARTY_COLLAPSE

    def test_revolution_needs_both(self, evaluator, regime):
        regime.national.stability = 0
        regime.national.popular_support = 11
        assert evaluator.evaluate(regime) is None

    def test_coup_flag_needs_gate(self, evaluator, regime):
        regime.add_flag(Flag.MILITARY_COUP)
        assert evaluator.evaluate(regime) is None

        regime.national.stability = 20
        regime.national.military_loyalty = 20
        assert evaluator.evaluate(regime).condition == TerminalCondition.MILITARY_COUP

    def test_coup_roll_success(self, config, regime, scripted_rng):
        regime.national.stability = 10
        regime.national.military_loyalty = 10
        regime.characters = [_princeling("marsh"), _princeling("okafor")]
        evaluator = RiskEvaluator(config, rng_factory=lambda seed, turn, stream: scripted_rng([90]))

        verdict = evaluator.evaluate(regime)

        assert verdict.condition == TerminalCondition.MILITARY_COUP
        assert verdict.cause == "General Marsh led a military takeover"

    def test_coup_roll_failure(self, config, regime, scripted_rng):
        regime.national.stability = 10
        regime.national.military_loyalty = 10
        regime.characters = [_princeling("marsh"), _princeling("okafor")]
        evaluator = RiskEvaluator(config, rng_factory=lambda seed, turn, stream: scripted_rng([91]))

        assert evaluator.evaluate(regime) is None

    def test_coup_needs_two_hostile_officers(self, config, regime, scripted_rng):
        regime.national.stability = 10
        regime.national.military_loyalty = 10
        junior = _princeling("okafor")
        junior.rank = 5
        regime.characters = [_princeling("marsh"), junior]
        evaluator = RiskEvaluator(config, rng_factory=lambda seed, turn, stream: scripted_rng([1]))

        assert evaluator.evaluate(regime) is None

    def test_evaluate_is_idempotent(self, evaluator, regime):
        regime.national.stability = 15
        regime.national.military_loyalty = 15
        regime.characters = [_princeling("marsh"), _princeling("okafor")]

        first = evaluator.evaluate(regime)
        second = evaluator.evaluate(regime)

        assert (first is None) == (second is None)
        if first is not None:
            assert first.model_dump() == second.model_dump()

    def test_evaluate_does_not_mutate(self, evaluator, default_regime):
        default_regime.add_flag(Flag.PLAYER_DEATH_IMMINENT)
        before = default_regime.model_dump()

        evaluator.evaluate(default_regime)

        assert default_regime.model_dump() == before


def _corruption(regime):
    regime.add_flag(Flag.CORRUPTION_EXPOSED)
    regime.set_variable(Variable.CORRUPTION_LEVEL, 80)
    regime.personal.patron_favor = 20
    regime.personal.standing = 20


def _assassination(regime):
    regime.personal.rival_threat = 95
    regime.personal.network = 10


def _death(regime):
    regime.add_flag(Flag.PLAYER_DEATH_IMMINENT)


def _purge(regime):
    regime.personal.patron_favor = 5
    regime.personal.standing = 10
    regime.set_variable(Variable.COALITION_STRENGTH, 80)


PERSONAL_CASES = [
    (_corruption, TerminalCondition.CORRUPTION_EXPOSED),
    (_assassination, TerminalCondition.ASSASSINATION_NO_HEIR),
    (_death, TerminalCondition.DEATH_NO_HEIR),
    (_purge, TerminalCondition.PURGED_NO_HEIR),
]


class TestPersonalLevel:
    """Test defeats a viable heir survives."""

    @pytest.mark.parametrize("setup,condition", PERSONAL_CASES)
    def test_ends_without_heir(self, evaluator, regime, setup, condition):
        setup(regime)

        verdict = evaluator.evaluate(regime)

        assert verdict.condition == condition
        assert verdict.preventable_by_heir

    @pytest.mark.parametrize("setup,condition", PERSONAL_CASES)
    def test_heir_carries_on(self, evaluator, regime, setup, condition):
        setup(regime)
        _with_heir(regime)

        assert evaluator.evaluate(regime) is None

    def test_assassination_scenario(self, regime):
        config = BalanceConfig(thresholds=GameOverThresholds(
            assassination_rival_threat=80,
            assassination_network=10,
        ))
        regime.personal.rival_threat = 90
        regime.personal.network = 5
        evaluator = RiskEvaluator(config)

        assert evaluator.evaluate(regime).condition == TerminalCondition.ASSASSINATION_NO_HEIR

        _with_heir(regime, disposition=60)
        assert evaluator.evaluate(regime) is None

    def test_corruption_with_protection(self, evaluator, regime):
        _corruption(regime)
        regime.personal.standing = 30
        assert evaluator.evaluate(regime) is None

    def test_death_cause_label(self, evaluator, regime):
        _death(regime)
        regime.labels["death_cause"] = "Heart failure"
        assert evaluator.evaluate(regime).cause == "Heart failure"

    def test_purge_needs_coalition(self, evaluator, regime):
        _purge(regime)
        regime.set_variable(Variable.COALITION_STRENGTH, 79)
        assert evaluator.evaluate(regime) is None


class TestVerdict:
    """Test verdict assembly and statistics."""

    def test_statistics(self, evaluator, regime):
        regime.turn_number = 12
        regime.characters = [
            Character(name="Friend", disposition=70, is_patron=True),
            Character(name="Fallen Rival", disposition=10, is_rival=True, status=CharacterStatus.EXILED),
            Character(name="Live Rival", disposition=10, is_rival=True),
        ]
        regime.events = [
            EventRecord(turn=2, event_type="decision"),
            EventRecord(turn=3, event_type="crisis"),
        ]
        regime.position_history = [
            PositionRecord(character_name="You", title="Minister of Heavy Industry", rank=6, turn_started=3, was_player=True),
            PositionRecord(character_name="Someone", title="Premier", rank=9, turn_started=1),
        ]
        regime.flags.update({"survived_assassination_4", "succession_8", "heir_lost_6_x"})
        campaign = RepressionCampaign(
            name="Spring Cleaning",
            target_sector=PurgeSector.INTELLECTUALS,
            intensity=PurgeIntensity.LIMITED,
            turn_started=2,
            executions_made=3,
        )
        regime.campaigns.append(campaign)
        _death(regime)

        verdict = evaluator.evaluate(regime)
        stats = verdict.stats

        assert verdict.turn_occurred == 12
        assert verdict.final_position == "Minister"
        assert verdict.heirs_lost == 1
        assert stats.turns_played == 12
        assert stats.highest_rank == 6
        assert stats.highest_position == "Minister of Heavy Industry"
        assert stats.characters_influenced == 1
        assert stats.rivals_defeated == 1
        assert stats.patrons_served == 1
        assert stats.major_decisions == 1
        assert stats.assassinations_survived == 1
        assert stats.successful_successions == 1
        assert stats.repression_campaigns == 1
        assert stats.executions_ordered == 3

    def test_condition_metadata(self):
        assert TerminalCondition.DYNASTY_EXTINCT.preventable_by_heir
        assert not TerminalCondition.MILITARY_COUP.preventable_by_heir
        assert TerminalCondition.FOREIGN_INVASION.category == DefeatCategory.STATE_DISSOLUTION
        assert TerminalCondition.NUCLEAR_WAR.display_title == "ANNIHILATION"

    def test_game_over_checker_alias(self, regime):
        _death(regime)
        assert GameOverChecker().evaluate(regime).condition == TerminalCondition.DEATH_NO_HEIR


class TestDiagnose:
    """Test advisory warnings."""

    def test_quiet_state(self, evaluator, default_regime):
        assert evaluator.diagnose(default_regime) == []

    def test_assassination_warning(self, evaluator, regime):
        regime.personal.rival_threat = 88
        regime.personal.network = 20

        warnings = evaluator.diagnose(regime)

        assert [w.condition for w in warnings] == [TerminalCondition.ASSASSINATION_NO_HEIR]
        assert not warnings[0].heir_would_save

    def test_heir_noted(self, evaluator, regime):
        _purge(regime)
        _with_heir(regime)

        warnings = evaluator.diagnose(regime)

        assert warnings[-1].condition == TerminalCondition.PURGED_NO_HEIR
        assert warnings[-1].heir_would_save
