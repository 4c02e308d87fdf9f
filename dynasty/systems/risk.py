"""
Terminal condition evaluation.

Run once per turn, after every other system has advanced, to decide whether
the run is over. Checks run in a fixed order and the first match wins:

    system-level    nuclear war, territorial disintegration, capital falls,
                    foreign invasion          (nothing prevents these)
    party-level     revolution, military coup (nothing prevents these)
    personal        corruption exposure, assassination, natural death,
                    purge                     (a viable heir carries on)

Evaluation is a pure read of the aggregate. The only chance element, the
coup roll, draws from a generator derived from (seed, turn), so evaluating
the same state twice gives the same answer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

from ..config import BalanceConfig, DEFAULT_CONFIG
from ..state.schema import (
    SUCCESSION_PREFIX,
    SURVIVED_ASSASSINATION_PREFIX,
    HEIR_LOST_PREFIX,
    Flag,
    ProvinceCategory,
    StatId,
    Variable,
)
from ..state.schemas.verdict import (
    RunStatistics,
    TerminalCondition,
    TerminalVerdict,
)
from ..tools.dice import RandomSource, roll_percentile, turn_rng

if TYPE_CHECKING:
    from ..state.schema import Character, RegimeState

logger = logging.getLogger(__name__)


def has_viable_heir(state: "RegimeState", min_disposition: int = 50) -> bool:
    """
    Whether a designated heir could step in right now.

    The heir must exist on the roster, be active and be well disposed.
    Bond readiness (SuccessionBond.is_ready_to_succeed) is not consulted.
    """
    if not state.designated_heir_id:
        return False

    heir = state.get_character(state.designated_heir_id)
    if heir is None:
        return False

    return heir.is_active and heir.disposition >= min_disposition


@dataclass
class RiskWarning:
    """A condition whose gate is close. Advisory only."""
    condition: TerminalCondition
    message: str
    heir_would_save: bool = False


class RiskEvaluator:
    """Decides whether the run has reached a terminal condition."""

    def __init__(
        self,
        config: BalanceConfig | None = None,
        rng_factory: Callable[[int, int, str], RandomSource] = turn_rng,
    ):
        self.config = config or DEFAULT_CONFIG
        self._rng_factory = rng_factory

    @property
    def thresholds(self):
        return self.config.thresholds

    def evaluate(self, state: "RegimeState") -> TerminalVerdict | None:
        """Return the verdict for the first condition met, or None."""
        checks = [
            # System-level, cannot be prevented
            self._check_nuclear_war,
            self._check_territorial_disintegration,
            self._check_capital_falls,
            self._check_foreign_invasion,
            # Party-level
            self._check_revolution,
            self._check_military_coup,
            # Personal, a viable heir carries on
            self._check_corruption_exposed,
            self._check_assassination,
            self._check_death,
            self._check_purge,
        ]
        for check in checks:
            verdict = check(state)
            if verdict is not None:
                logger.debug(f"Terminal condition met: {verdict.condition.value}")
                return verdict
        return None

    def has_viable_heir(self, state: "RegimeState") -> bool:
        return has_viable_heir(state, self.thresholds.heir_min_disposition)

    # ─── System-level ───────────────────────────────────────────

    def _check_nuclear_war(self, state: "RegimeState") -> TerminalVerdict | None:
        tension = state.variable(Variable.WORLD_TENSION)
        if state.has_flag(Flag.NUCLEAR_ESCALATION) or tension >= self.thresholds.nuclear_world_tension:
            return self._verdict(
                state,
                TerminalCondition.NUCLEAR_WAR,
                "Nuclear exchange with enemy superpower",
            )
        return None

    def _check_territorial_disintegration(self, state: "RegimeState") -> TerminalVerdict | None:
        if state.has_flag(Flag.TERRITORIAL_DISINTEGRATION):
            return self._verdict(
                state,
                TerminalCondition.TERRITORIAL_DISINTEGRATION,
                "Multiple provinces successfully seceded from the union",
            )

        if state.has_flag(Flag.ECONOMIC_COLLAPSE_SECESSION):
            return self._verdict(
                state,
                TerminalCondition.TERRITORIAL_DISINTEGRATION,
                "Economic collapse following provincial secessions",
            )

        seceded = len(state.seceded_provinces())
        if seceded >= self.thresholds.territorial_collapse_provinces:
            return self._verdict(
                state,
                TerminalCondition.TERRITORIAL_DISINTEGRATION,
                f"Union dissolved as {seceded} provinces declared independence",
            )
        return None

    def _check_capital_falls(self, state: "RegimeState") -> TerminalVerdict | None:
        if state.has_flag(Flag.CAPITAL_SECEDED):
            return self._verdict(
                state,
                TerminalCondition.CAPITAL_FALLS,
                "The capital province has been lost",
            )

        capital = state.capital_province()
        if capital is not None and capital.is_seceded:
            return self._verdict(
                state,
                TerminalCondition.CAPITAL_FALLS,
                f"{capital.name} has fallen to rebel forces",
            )

        if state.has_flag(Flag.CAPITAL_CAPTURED):
            return self._verdict(
                state,
                TerminalCondition.CAPITAL_FALLS,
                "Enemy forces have captured the capital",
            )
        return None

    def _check_foreign_invasion(self, state: "RegimeState") -> TerminalVerdict | None:
        if state.has_flag(Flag.INVASION_DEFEAT):
            invader = state.labels.get("invading_power", "foreign forces")
            return self._verdict(
                state,
                TerminalCondition.FOREIGN_INVASION,
                f"Military defeat by {invader}",
            )

        lost_borders = [
            p for p in state.seceded_provinces()
            if p.category == ProvinceCategory.BORDER
        ]
        if (
            len(lost_borders) >= self.thresholds.invasion_border_provinces
            and state.has_flag(Flag.FOREIGN_OCCUPATION)
        ):
            return self._verdict(
                state,
                TerminalCondition.FOREIGN_INVASION,
                "Enemy occupation of critical territories",
            )
        return None

    # ─── Party-level ────────────────────────────────────────────

    def _check_revolution(self, state: "RegimeState") -> TerminalVerdict | None:
        if (
            state.stat(StatId.STABILITY) <= self.thresholds.revolution_stability
            and state.stat(StatId.POPULAR_SUPPORT) <= self.thresholds.revolution_popular_support
        ):
            return self._verdict(
                state,
                TerminalCondition.REVOLUTION_OVERTHROW,
                "Popular uprising and regime collapse",
            )
        return None

    def hostile_military_figures(self, state: "RegimeState") -> list["Character"]:
        """Senior faction members openly hostile to the player."""
        t = self.thresholds
        return [
            c for c in state.characters
            if c.faction_id == t.coup_faction
            and c.disposition <= t.coup_max_disposition
            and c.is_active
            and c.rank >= t.coup_min_rank
        ]

    def _check_military_coup(self, state: "RegimeState") -> TerminalVerdict | None:
        t = self.thresholds
        stability = state.stat(StatId.STABILITY)
        military_loyalty = state.stat(StatId.MILITARY_LOYALTY)

        if stability > t.coup_stability or military_loyalty > t.coup_military_loyalty:
            return None

        if state.has_flag(Flag.MILITARY_COUP):
            return self._verdict(
                state,
                TerminalCondition.MILITARY_COUP,
                "The People's Army seized power",
            )

        hostile = self.hostile_military_figures(state)
        if len(hostile) >= t.coup_min_hostile_figures:
            chance = (100 - stability) // 2 + (100 - military_loyalty) // 2
            rng = self._rng_factory(state.seed, state.turn_number, "coup")
            roll = roll_percentile(rng, chance)
            logger.debug(f"Coup roll {roll.roll} vs {chance}")
            if roll.success:
                return self._verdict(
                    state,
                    TerminalCondition.MILITARY_COUP,
                    f"General {hostile[0].name} led a military takeover",
                )
        return None

    # ─── Personal ───────────────────────────────────────────────

    def _check_corruption_exposed(self, state: "RegimeState") -> TerminalVerdict | None:
        if not state.has_flag(Flag.CORRUPTION_EXPOSED):
            return None

        t = self.thresholds
        corruption = state.variable(Variable.CORRUPTION_LEVEL)
        protection = state.stat(StatId.PATRON_FAVOR) + state.stat(StatId.STANDING)

        if corruption >= t.corruption_level and protection < t.corruption_protection_floor:
            if self.has_viable_heir(state):
                return None
            return self._verdict(
                state,
                TerminalCondition.CORRUPTION_EXPOSED,
                "Corruption scandal led to arrest and trial",
            )
        return None

    def _check_assassination(self, state: "RegimeState") -> TerminalVerdict | None:
        t = self.thresholds
        if (
            state.stat(StatId.RIVAL_THREAT) >= t.assassination_rival_threat
            and state.stat(StatId.NETWORK) <= t.assassination_network
        ):
            if self.has_viable_heir(state):
                return None
            return self._verdict(
                state,
                TerminalCondition.ASSASSINATION_NO_HEIR,
                "Rival-orchestrated assassination",
            )
        return None

    def _check_death(self, state: "RegimeState") -> TerminalVerdict | None:
        if not state.has_flag(Flag.PLAYER_DEATH_IMMINENT):
            return None
        if self.has_viable_heir(state):
            return None
        return self._verdict(
            state,
            TerminalCondition.DEATH_NO_HEIR,
            state.labels.get("death_cause", "Natural causes"),
        )

    def _check_purge(self, state: "RegimeState") -> TerminalVerdict | None:
        t = self.thresholds
        if (
            state.stat(StatId.PATRON_FAVOR) <= t.purge_patron_favor
            and state.stat(StatId.STANDING) <= t.purge_standing
            and state.variable(Variable.COALITION_STRENGTH) >= t.purge_coalition_strength
        ):
            if self.has_viable_heir(state):
                return None
            return self._verdict(
                state,
                TerminalCondition.PURGED_NO_HEIR,
                "Political purge by rival faction",
            )
        return None

    # ─── Verdict assembly ───────────────────────────────────────

    def _verdict(
        self,
        state: "RegimeState",
        condition: TerminalCondition,
        cause: str,
    ) -> TerminalVerdict:
        return TerminalVerdict(
            condition=condition,
            cause=cause,
            turn_occurred=state.turn_number,
            final_position=_position_title(state.current_title, state.current_rank),
            dynasty_length=state.turn_number,
            heirs_lost=state.count_flags(HEIR_LOST_PREFIX),
            stats=build_statistics(state),
        )

    # ─── Briefings ──────────────────────────────────────────────

    def diagnose(self, state: "RegimeState", margin: int = 10) -> list[RiskWarning]:
        """
        List the conditions whose gates are within margin points.

        Never produces a verdict and never rolls dice.
        """
        t = self.thresholds
        warnings = []
        heir = self.has_viable_heir(state)

        stability = state.stat(StatId.STABILITY)
        tension = state.variable(Variable.WORLD_TENSION)

        if tension >= t.nuclear_world_tension - margin * 2:
            warnings.append(RiskWarning(
                TerminalCondition.NUCLEAR_WAR,
                f"World tension at {tension}",
            ))

        seceded = len(state.seceded_provinces())
        if seceded >= max(1, t.territorial_collapse_provinces - 1):
            warnings.append(RiskWarning(
                TerminalCondition.TERRITORIAL_DISINTEGRATION,
                f"{seceded} provinces have already seceded",
            ))

        if (
            stability <= t.revolution_stability + margin
            and state.stat(StatId.POPULAR_SUPPORT) <= t.revolution_popular_support + margin
        ):
            warnings.append(RiskWarning(
                TerminalCondition.REVOLUTION_OVERTHROW,
                "Stability and popular support are collapsing",
            ))

        if (
            stability <= t.coup_stability + margin
            and state.stat(StatId.MILITARY_LOYALTY) <= t.coup_military_loyalty + margin
        ):
            hostile = len(self.hostile_military_figures(state))
            warnings.append(RiskWarning(
                TerminalCondition.MILITARY_COUP,
                f"Army loyalty wavering, {hostile} hostile senior officers",
            ))

        protection = state.stat(StatId.PATRON_FAVOR) + state.stat(StatId.STANDING)
        if (
            state.variable(Variable.CORRUPTION_LEVEL) >= t.corruption_level - margin
            and protection < t.corruption_protection_floor + margin
        ):
            warnings.append(RiskWarning(
                TerminalCondition.CORRUPTION_EXPOSED,
                "Corruption is visible and protection is thin",
                heir_would_save=heir,
            ))

        if (
            state.stat(StatId.RIVAL_THREAT) >= t.assassination_rival_threat - margin
            and state.stat(StatId.NETWORK) <= t.assassination_network + margin
        ):
            warnings.append(RiskWarning(
                TerminalCondition.ASSASSINATION_NO_HEIR,
                "Rivals are strong and your network is weak",
                heir_would_save=heir,
            ))

        if (
            state.stat(StatId.PATRON_FAVOR) <= t.purge_patron_favor + margin
            and state.stat(StatId.STANDING) <= t.purge_standing + margin
        ):
            warnings.append(RiskWarning(
                TerminalCondition.PURGED_NO_HEIR,
                "Patron favor and standing are near collapse",
                heir_would_save=heir,
            ))

        return warnings


def _position_title(title: str, rank: int) -> str:
    return title or f"Rank {rank}"


def build_statistics(state: "RegimeState") -> RunStatistics:
    """Summarize the run. Reads the aggregate, never writes it."""
    highest_rank = state.current_rank
    highest_title = _position_title(state.current_title, state.current_rank)
    for record in state.position_history:
        if record.was_player and record.rank > highest_rank:
            highest_rank = record.rank
            highest_title = _position_title(record.title, record.rank)

    return RunStatistics(
        turns_played=state.turn_number,
        highest_rank=highest_rank,
        highest_position=highest_title,
        characters_influenced=len([c for c in state.characters if c.disposition >= 60]),
        rivals_defeated=len([c for c in state.characters if c.is_rival and not c.is_active]),
        patrons_served=len([c for c in state.characters if c.is_patron]),
        major_decisions=len([e for e in state.events if e.event_type == "decision"]),
        assassinations_survived=state.count_flags(SURVIVED_ASSASSINATION_PREFIX),
        successful_successions=state.count_flags(SUCCESSION_PREFIX),
        repression_campaigns=len(state.campaigns),
        executions_ordered=sum(c.executions_made for c in state.campaigns),
    )


# Name kept for callers that think of this as the end-of-game check
GameOverChecker = RiskEvaluator
