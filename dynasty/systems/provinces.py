"""
Province stability and secession.

Each turn every province accumulates (or sheds) secession progress from
local and national pressure, its status drifts toward what its conditions
warrant, and trouble in one province spills into the others. The player can
intervene with troops, martial law, concessions or a new governor.

Progress only moves provinces *up* the status ladder. Seceded is terminal:
nothing in this module changes a seceded province again.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Callable

from ..config import BalanceConfig, DEFAULT_CONFIG
from ..state.event_bus import get_event_bus, EventType
from ..state.schema import (
    Flag,
    Governor,
    Province,
    ProvinceStatus,
    StatId,
    Variable,
    clamp,
)
from ..tools.dice import RandomSource, roll_range, turn_rng

if TYPE_CHECKING:
    from ..state.schema import RegimeState

logger = logging.getLogger(__name__)


class DeploymentLevel(str, Enum):
    MINIMAL = "minimal"            # Show of force
    MODERATE = "moderate"          # Serious reinforcement
    OVERWHELMING = "overwhelming"  # Full military occupation

    @property
    def display_name(self) -> str:
        return {
            DeploymentLevel.MINIMAL: "Show of Force",
            DeploymentLevel.MODERATE: "Reinforcement",
            DeploymentLevel.OVERWHELMING: "Military Occupation",
        }[self]


class ConcessionType(str, Enum):
    ECONOMIC_INVESTMENT = "economic_investment"          # Build infrastructure, create jobs
    CULTURAL_AUTONOMY = "cultural_autonomy"              # Allow local language, customs
    POLITICAL_REPRESENTATION = "political_representation"
    AMNESTY = "amnesty"                                  # Forgive past "crimes"
    ECONOMIC_EXPLOITATION = "economic_exploitation"      # Opposite: extract more

    @property
    def display_name(self) -> str:
        return {
            ConcessionType.ECONOMIC_INVESTMENT: "Economic Investment",
            ConcessionType.CULTURAL_AUTONOMY: "Cultural Autonomy",
            ConcessionType.POLITICAL_REPRESENTATION: "Political Representation",
            ConcessionType.AMNESTY: "General Amnesty",
            ConcessionType.ECONOMIC_EXPLOITATION: "Increased Extraction",
        }[self]


# Drift targets, highest first: (minimum instability score, status)
DRIFT_TARGETS: list[tuple[int, ProvinceStatus]] = [
    (80, ProvinceStatus.REBELLION),
    (60, ProvinceStatus.CRISIS),
    (40, ProvinceStatus.UNREST),
    (0, ProvinceStatus.STABLE),
]

# Ladder used for one-step drift; martial law sits outside it
DRIFT_LADDER = [
    ProvinceStatus.STABLE,
    ProvinceStatus.UNREST,
    ProvinceStatus.CRISIS,
    ProvinceStatus.REBELLION,
]

# Statuses that drift never touches
FROZEN_STATUSES = {
    ProvinceStatus.SECEDING,
    ProvinceStatus.SECEDED,
    ProvinceStatus.MARTIAL,
}


@dataclass
class TerritorialAssessment:
    """Read-only summary of the union's territorial health."""
    overall_stability: int
    stable_count: int
    crisis_count: int
    secession_risk_count: int
    average_loyalty: int
    average_party_control: int
    most_at_risk: Province | None = None
    recommendations: list[str] = field(default_factory=list)

    @property
    def status_description(self) -> str:
        if self.overall_stability >= 80:
            return "Excellent - Union is strong"
        elif self.overall_stability >= 60:
            return "Good - Minor concerns in some provinces"
        elif self.overall_stability >= 40:
            return "Concerning - Multiple provinces require attention"
        elif self.overall_stability >= 20:
            return "Critical - Territorial integrity at serious risk"
        return "Catastrophic - Union is disintegrating"


class ProvinceStabilityModel:
    """
    Advances provinces toward (or away from) secession.

    The per-province primitives (advance, impose/lift martial law, governor
    effects, drift) only touch the province. process_turn() and the player
    interventions also touch the aggregate: national stats, flags and
    world tension.
    """

    def __init__(
        self,
        config: BalanceConfig | None = None,
        rng_factory: Callable[[int, int, str], RandomSource] = turn_rng,
    ):
        self.config = config or DEFAULT_CONFIG
        self._rng_factory = rng_factory
        self._bus = get_event_bus()

    @property
    def tuning(self):
        return self.config.provinces

    # ─── Per-province primitives ─────────────────────────────────

    def advance(
        self,
        province: Province,
        national_stability: int,
        turn: int = 0,
        regime_id: str = "",
    ) -> int:
        """
        Apply one turn of secession pressure to a province.

        Returns the progress delta that was applied before clamping
        (0 for provinces that cannot move).
        """
        if province.is_seceded:
            return 0

        if not province.can_secede:
            province.secession_progress = 0
            return 0

        change = 0

        # Base pressure from autonomy desire
        if province.autonomy_desire > 70:
            change += 3
        elif province.autonomy_desire > 50:
            change += 1

        # National weakness accelerates secession
        if national_stability < 30:
            change += 5
        elif national_stability < 50:
            change += 2

        # Local conditions
        if province.party_control < 30:
            change += 3
        if province.popular_loyalty < 30:
            change += 2

        # Status modifier: multiplies, or overrides outright
        if province.status == ProvinceStatus.REBELLION:
            change *= 2
        elif province.status == ProvinceStatus.SECEDING:
            change *= 3
        elif province.status == ProvinceStatus.MARTIAL:
            change = self.tuning.martial_law_delta      # Military suppression
        elif province.status == ProvinceStatus.STABLE:
            change = self.tuning.stable_regression_delta  # Slow regression

        province.secession_progress = clamp(province.secession_progress + change)
        logger.debug(
            f"Province {province.id}: secession {change:+d} -> {province.secession_progress}"
        )
        self._bus.emit(
            EventType.PROVINCE_ADVANCED,
            regime_id=regime_id,
            turn=turn,
            province_id=province.id,
            delta=change,
            progress=province.secession_progress,
        )

        # Re-derive status from progress, highest first
        progress = province.secession_progress
        new_status = None
        if progress >= 100:
            new_status = ProvinceStatus.SECEDED
        elif progress >= self.tuning.seceding_progress and province.status != ProvinceStatus.SECEDING:
            new_status = ProvinceStatus.SECEDING
        elif progress >= self.tuning.rebellion_progress and province.severity < 3:
            new_status = ProvinceStatus.REBELLION

        if new_status is not None:
            self._change_status(province, new_status, turn, regime_id)

        return change

    def impose_martial_law(self, province: Province) -> bool:
        """Put a province under military rule. Returns False if seceded."""
        if province.is_seceded:
            logger.warning(f"Cannot impose martial law on seceded province {province.id}")
            return False

        province.set_status(ProvinceStatus.MARTIAL)
        province.adjust(
            military_presence=30,
            party_control=20,
            popular_loyalty=-15,
            autonomy_desire=10,
        )
        return True

    def lift_martial_law(self, province: Province) -> bool:
        """End military rule. Only acts on provinces under martial law."""
        if province.status != ProvinceStatus.MARTIAL:
            return False

        risk = province.instability_risk
        if risk > 60:
            province.set_status(ProvinceStatus.CRISIS)
        elif risk > 40:
            province.set_status(ProvinceStatus.UNREST)
        else:
            province.set_status(ProvinceStatus.STABLE)
        province.adjust(military_presence=-20)
        return True

    def apply_governor_effects(self, province: Province) -> None:
        gov = province.governor
        if gov is None or province.is_seceded:
            return

        # Competent governors improve things
        if gov.competence > 70:
            province.adjust(party_control=1, infrastructure_quality=1)
        elif gov.competence < 30:
            province.adjust(party_control=-1)

        if gov.corruption > 70:
            province.adjust(popular_loyalty=-2)

        if gov.local_popularity > 70:
            province.adjust(popular_loyalty=1)

    def instability_score(self, province: Province, national_stability: int) -> int:
        """Pressure score that decides where a province's status drifts."""
        score = province.autonomy_desire // 2
        score += (100 - province.party_control) // 3
        score += (100 - province.popular_loyalty) // 3
        score -= province.military_presence // 4

        if national_stability < 30:
            score += 20
        elif national_stability < 50:
            score += 10

        if province.has_distinct_culture:
            score += 10
        if province.has_distinct_language:
            score += 10

        score += len(province.historical_grievances) * 3

        if province.governor is not None:
            if province.governor.loyalty < 30:
                score += 10
            if province.governor.corruption > 70:
                score += 5

        return clamp(score)

    def drift_status(
        self,
        province: Province,
        national_stability: int,
        turn: int = 0,
        regime_id: str = "",
    ) -> bool:
        """
        Move status one step toward what local conditions warrant.

        Escalation moves one step per turn. Recovery moves one step only
        when the target is at least two steps calmer. Returns True if the
        status changed.
        """
        if province.status in FROZEN_STATUSES:
            return False

        score = self.instability_score(province, national_stability)
        target = next(status for minimum, status in DRIFT_TARGETS if score >= minimum)

        current = DRIFT_LADDER.index(province.status)
        wanted = DRIFT_LADDER.index(target)

        if wanted > current:
            new_status = DRIFT_LADDER[current + 1]
        elif wanted < current - 1:
            new_status = DRIFT_LADDER[current - 1]
        else:
            return False

        return self._change_status(province, new_status, turn, regime_id)

    def _change_status(
        self,
        province: Province,
        status: ProvinceStatus,
        turn: int,
        regime_id: str,
    ) -> bool:
        old = province.status
        if not province.set_status(status):
            return False

        logger.info(f"Province {province.name}: {old.value} -> {status.value}")
        self._bus.emit(
            EventType.PROVINCE_STATUS_CHANGED,
            regime_id=regime_id,
            turn=turn,
            province_id=province.id,
            old=old.value,
            new=status.value,
        )
        if status == ProvinceStatus.SECEDED:
            self._bus.emit(
                EventType.PROVINCE_SECEDED,
                regime_id=regime_id,
                turn=turn,
                province_id=province.id,
                name=province.name,
            )
        return True

    # ─── Turn processing ────────────────────────────────────────

    def process_turn(self, state: "RegimeState") -> None:
        """Advance every province, then apply cascades and integrity checks."""
        national_stability = state.stat(StatId.STABILITY)
        turn = state.turn_number

        for province in state.provinces:
            self.advance(province, national_stability, turn, state.id)
            self.apply_governor_effects(province)
            self.drift_status(province, national_stability, turn, state.id)
            province.turns_in_status += 1

        self.process_cascades(state)
        self.check_territorial_integrity(state)

    def process_cascades(self, state: "RegimeState") -> None:
        """Spread instability from troubled provinces to the rest."""
        crisis = [p for p in state.provinces if p.severity >= 2]
        rebelling = [p for p in state.provinces if p.severity >= 3]

        # Widespread crisis affects national stability
        if len(crisis) >= self.tuning.crisis_cascade_provinces:
            state.apply_stat(StatId.STABILITY, -5)
            logger.debug(f"{len(crisis)} provinces in crisis: national stability -5")

        # Multiple rebellions inspire others
        if len(rebelling) >= self.tuning.rebellion_cascade_provinces:
            for province in state.provinces:
                if province.severity < 3 and (
                    province.has_distinct_culture or province.autonomy_desire > 50
                ):
                    province.adjust(autonomy_desire=5)

        # Each secession shakes the rest of the union, once
        for seceded in state.seceded_provinces():
            key = f"secession_cascade_{seceded.id}"
            if state.has_flag(key):
                continue
            state.add_flag(key)

            for province in state.provinces:
                if not province.can_secede or province.is_seceded:
                    continue
                multiplier = 1.5 if province.has_distinct_culture else 1.0
                province.adjust(
                    secession_progress=int(self.tuning.secession_cascade_progress * multiplier),
                    autonomy_desire=int(self.tuning.secession_cascade_autonomy * multiplier),
                )

    def check_territorial_integrity(self, state: "RegimeState") -> None:
        """Raise the terminal flags the risk evaluator looks for."""
        seceded = state.seceded_provinces()
        lost_economy = sum(p.economic_contribution for p in seceded)
        capital = state.capital_province()

        flag = None
        if capital is not None and capital.is_seceded:
            flag = Flag.CAPITAL_SECEDED
        elif len(seceded) >= self.config.thresholds.territorial_collapse_provinces:
            flag = Flag.TERRITORIAL_DISINTEGRATION
        elif lost_economy >= self.tuning.economic_collapse_contribution:
            flag = Flag.ECONOMIC_COLLAPSE_SECESSION

        if flag is not None and not state.has_flag(flag):
            state.add_flag(flag)
            logger.info(f"Territorial alarm: {flag.value}")
            self._bus.emit(
                EventType.TERRITORIAL_ALARM,
                regime_id=state.id,
                turn=state.turn_number,
                reason=flag.value,
                seceded=len(seceded),
                lost_economy=lost_economy,
            )

        # Severe instability even without game over
        if len(seceded) >= 2:
            state.apply_stat(StatId.STABILITY, -20)
            state.apply_stat(StatId.PATRON_FAVOR, -30)
            state.apply_variable(Variable.WORLD_TENSION, 25)

    # ─── Interventions ──────────────────────────────────────────

    def deploy_troops(
        self,
        state: "RegimeState",
        province: Province,
        level: DeploymentLevel,
    ) -> bool:
        if province.is_seceded:
            logger.warning(f"Cannot deploy troops to seceded province {province.id}")
            return False

        if level == DeploymentLevel.MINIMAL:
            province.adjust(military_presence=10, party_control=5, popular_loyalty=-3)
            state.apply_stat(StatId.TREASURY, -5)
        elif level == DeploymentLevel.MODERATE:
            province.adjust(military_presence=25, party_control=15, popular_loyalty=-8)
            state.apply_stat(StatId.TREASURY, -15)
            state.apply_variable(Variable.WORLD_TENSION, 5)
        else:
            # Fear suppresses autonomy talk; resentment shows up in loyalty
            province.adjust(
                military_presence=50,
                party_control=30,
                popular_loyalty=-20,
                autonomy_desire=-5,
            )
            state.apply_stat(StatId.TREASURY, -30)
            state.apply_variable(Variable.WORLD_TENSION, 15)
            state.apply_stat(StatId.INTERNATIONAL_STANDING, -10)

        state.add_flag(f"deployed_troops_{province.id}_{state.turn_number}")
        return True

    def impose_martial_law_decree(self, state: "RegimeState", province: Province) -> bool:
        """Martial law with its national and international consequences."""
        if not self.impose_martial_law(province):
            return False

        state.apply_stat(StatId.STABILITY, -5)
        state.apply_variable(Variable.WORLD_TENSION, 10)
        state.apply_stat(StatId.INTERNATIONAL_STANDING, -15)
        state.apply_stat(StatId.TREASURY, -20)
        state.add_flag(f"martial_law_{province.id}_{state.turn_number}")

        # International reaction
        if province.has_distinct_culture:
            state.apply_variable(Variable.WORLD_TENSION, 10)

        logger.info(f"Martial law imposed on {province.name}")
        self._bus.emit(
            EventType.MARTIAL_LAW_IMPOSED,
            regime_id=state.id,
            turn=state.turn_number,
            province_id=province.id,
        )
        return True

    def lift_martial_law_decree(self, state: "RegimeState", province: Province) -> bool:
        if not self.lift_martial_law(province):
            return False

        state.add_flag(f"lifted_martial_law_{province.id}_{state.turn_number}")
        logger.info(f"Martial law lifted in {province.name} ({province.status.value})")
        self._bus.emit(
            EventType.MARTIAL_LAW_LIFTED,
            regime_id=state.id,
            turn=state.turn_number,
            province_id=province.id,
            status=province.status.value,
        )
        return True

    def offer_concession(
        self,
        state: "RegimeState",
        province: Province,
        kind: ConcessionType,
    ) -> bool:
        if province.is_seceded:
            logger.warning(f"Cannot offer concessions to seceded province {province.id}")
            return False

        if kind == ConcessionType.ECONOMIC_INVESTMENT:
            province.adjust(infrastructure_quality=15, popular_loyalty=10, autonomy_desire=-5)
            state.apply_stat(StatId.TREASURY, -25)

        elif kind == ConcessionType.CULTURAL_AUTONOMY:
            province.adjust(popular_loyalty=15, autonomy_desire=-10, party_control=-5)
            # May inspire other provinces
            for other in state.provinces:
                if other.has_distinct_culture and other.id != province.id and not other.is_seceded:
                    other.adjust(autonomy_desire=3)

        elif kind == ConcessionType.POLITICAL_REPRESENTATION:
            province.adjust(popular_loyalty=20, autonomy_desire=-15, party_control=-10)
            state.apply_stat(StatId.ELITE_LOYALTY, -5)  # Seen as deviation

        elif kind == ConcessionType.AMNESTY:
            province.adjust(popular_loyalty=25, party_control=-15)
            state.apply_stat(StatId.STANDING, -5)  # Seen as weakness

        elif kind == ConcessionType.ECONOMIC_EXPLOITATION:
            province.adjust(popular_loyalty=-20, autonomy_desire=15)
            state.apply_stat(StatId.TREASURY, 20)
            state.apply_stat(StatId.INTERNATIONAL_STANDING, -5)

        state.add_flag(f"concession_{kind.value}_{province.id}_{state.turn_number}")
        return True

    def replace_governor(
        self,
        state: "RegimeState",
        province: Province,
        character_id: str,
        loyalist: bool,
        rng: RandomSource | None = None,
    ) -> Governor | None:
        """Install a new governor. Loyalists are loyal but less competent."""
        if province.is_seceded:
            logger.warning(f"Cannot appoint a governor in seceded province {province.id}")
            return None

        if rng is None:
            rng = self._rng_factory(state.seed, state.turn_number, f"governor:{province.id}")

        if loyalist:
            loyalty = roll_range(rng, 70, 90)
            competence = roll_range(rng, 40, 70)
        else:
            loyalty = roll_range(rng, 30, 60)
            competence = roll_range(rng, 50, 80)

        province.governor = Governor(
            character_id=character_id,
            appointed_turn=state.turn_number,
            loyalty=loyalty,
            competence=competence,
            player_appointed=True,
        )

        # Loyalist appointments may anger locals
        if loyalist and province.has_distinct_culture:
            province.adjust(popular_loyalty=-10, autonomy_desire=5)

        state.add_flag(f"governor_replaced_{province.id}_{state.turn_number}")
        return province.governor

    # ─── Read-only queries ──────────────────────────────────────

    def provinces_at_risk(self, state: "RegimeState") -> list[Province]:
        """Secession-capable provinces past the warning line, worst first."""
        return sorted(
            (
                p for p in state.provinces
                if p.can_secede and p.secession_progress > self.tuning.at_risk_progress
            ),
            key=lambda p: p.secession_progress,
            reverse=True,
        )

    def territorial_assessment(self, state: "RegimeState") -> TerritorialAssessment:
        provinces = state.provinces
        total = max(1, len(provinces))
        at_risk = self.provinces_at_risk(state)

        return TerritorialAssessment(
            overall_stability=self._overall_stability(state),
            stable_count=len([p for p in provinces if p.status == ProvinceStatus.STABLE]),
            crisis_count=len([p for p in provinces if p.severity >= 2]),
            secession_risk_count=len(at_risk),
            average_loyalty=sum(p.popular_loyalty for p in provinces) // total,
            average_party_control=sum(p.party_control for p in provinces) // total,
            most_at_risk=at_risk[0] if at_risk else None,
            recommendations=self._recommendations(state),
        )

    def _overall_stability(self, state: "RegimeState") -> int:
        if not state.provinces:
            return 100

        average = sum(p.stability_score for p in state.provinces) // len(state.provinces)
        crisis_penalty = len([p for p in state.provinces if p.severity >= 2]) * 5
        secession_penalty = len(
            [p for p in state.provinces if p.status == ProvinceStatus.SECEDING]
        ) * 15
        return clamp(average - crisis_penalty - secession_penalty)

    def _recommendations(self, state: "RegimeState") -> list[str]:
        recommendations = []
        for province in state.provinces:
            if province.status == ProvinceStatus.REBELLION:
                recommendations.append(
                    f"URGENT: {province.name} is in open rebellion. Decisive action required."
                )
            elif province.status == ProvinceStatus.CRISIS and province.secession_progress > 50:
                recommendations.append(
                    f"WARNING: {province.name} approaching secession threshold. Consider intervention."
                )
            elif province.party_control < 40:
                recommendations.append(
                    f"Strengthen Party presence in {province.name} - control dangerously low."
                )
            elif province.popular_loyalty < 30 and province.has_distinct_culture:
                recommendations.append(
                    f"Consider concessions to {province.name} - loyalty critically low."
                )

        if not recommendations:
            recommendations.append("Territorial integrity stable. Continue monitoring.")
        return recommendations
