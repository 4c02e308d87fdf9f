"""
Repression campaigns.

A campaign is a bounded purge against one sector of the state. Launching
one costs the sector's loyalty up front; the narrative layer then reports
arrests, executions and eliminated rivals; ending it feeds the outcome into
power consolidation.

Only one campaign runs at a time, and a new one must wait out a cooldown
after the last one ends.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..config import BalanceConfig, DEFAULT_CONFIG
from ..state.event_bus import get_event_bus, EventType
from ..state.schema import PurgeIntensity, PurgeSector, RepressionCampaign
from .consolidation import ConsolidationTracker

if TYPE_CHECKING:
    from ..state.schema import RegimeState

logger = logging.getLogger(__name__)


class RepressionError(Exception):
    """Repression operation not allowed in the current state."""
    pass


class CampaignCooldownError(RepressionError):
    """A campaign is running, or the last one ended too recently."""
    def __init__(self, reason: str, turns_remaining: int = 0):
        self.reason = reason
        self.turns_remaining = turns_remaining
        super().__init__(reason)


class RepressionSystem:
    """Launches, tracks and closes repression campaigns."""

    def __init__(
        self,
        config: BalanceConfig | None = None,
        consolidation: ConsolidationTracker | None = None,
    ):
        self.config = config or DEFAULT_CONFIG
        self.consolidation = consolidation or ConsolidationTracker()
        self._bus = get_event_bus()

    def cooldown_remaining(self, state: "RegimeState") -> int:
        """Turns until a new campaign may start (0 = now)."""
        latest = state.latest_campaign()
        if latest is None:
            return 0
        if latest.is_active or latest.turn_ended is None:
            return self.config.repression.cooldown_turns
        elapsed = state.turn_number - latest.turn_ended
        return max(0, self.config.repression.cooldown_turns - elapsed)

    def can_launch(self, state: "RegimeState") -> bool:
        latest = state.latest_campaign()
        if latest is None:
            return True
        if latest.is_active or latest.turn_ended is None:
            return False
        return state.turn_number - latest.turn_ended >= self.config.repression.cooldown_turns

    def launch(
        self,
        state: "RegimeState",
        name: str,
        sector: PurgeSector,
        intensity: PurgeIntensity,
    ) -> RepressionCampaign:
        """
        Start a campaign and pay its immediate cost.

        Raises:
            CampaignCooldownError: If a campaign is active or in cooldown
        """
        if not self.can_launch(state):
            active = state.active_campaign()
            if active is not None:
                reason = f"Campaign '{active.name}' is still running"
            else:
                reason = "Previous campaign ended too recently"
            logger.warning(f"Rejected campaign '{name}': {reason}")
            raise CampaignCooldownError(reason, self.cooldown_remaining(state))

        campaign = RepressionCampaign(
            name=name,
            target_sector=sector,
            intensity=intensity,
            turn_started=state.turn_number,
        )

        stat, cost = sector.immediate_cost
        before = state.stat(stat)
        after = state.apply_stat(stat, cost)
        campaign.sector_loyalty_lost = before - after

        state.campaigns.append(campaign)

        logger.info(
            f"Campaign '{name}' launched against {sector.value} ({intensity.value}), "
            f"{stat.value} {cost:+d}"
        )
        self._bus.emit(
            EventType.CAMPAIGN_LAUNCHED,
            regime_id=state.id,
            turn=state.turn_number,
            campaign_id=campaign.id,
            sector=sector.value,
            intensity=intensity.value,
            quota=campaign.arrest_quota,
        )
        return campaign

    # ─── Accrual (reported by the narrative layer) ───────────────

    def record_arrests(
        self,
        campaign: RepressionCampaign,
        count: int,
        innocents: int = 0,
    ) -> None:
        if not campaign.is_active:
            return
        campaign.arrests_made += max(0, count)
        campaign.innocents_arrested += max(0, innocents)

    def record_executions(
        self,
        campaign: RepressionCampaign,
        count: int,
        martyrs: int = 0,
    ) -> None:
        if not campaign.is_active:
            return
        campaign.executions_made += max(0, count)
        campaign.martyrs_created += max(0, martyrs)

    def record_rivals_eliminated(self, campaign: RepressionCampaign, count: int) -> None:
        if not campaign.is_active:
            return
        campaign.rivals_eliminated += max(0, count)

    def record_costs(
        self,
        campaign: RepressionCampaign,
        sector_loyalty: int = 0,
        productivity: int = 0,
        international_standing: int = 0,
    ) -> None:
        if not campaign.is_active:
            return
        campaign.sector_loyalty_lost += max(0, sector_loyalty)
        campaign.productivity_lost += max(0, productivity)
        campaign.international_standing_lost += max(0, international_standing)

    # ─── Turn processing ────────────────────────────────────────

    def process_turn(self, state: "RegimeState") -> RepressionCampaign | None:
        """Age the running campaign, if any."""
        campaign = state.active_campaign()
        if campaign is None:
            return None

        campaign.turns_active += 1

        if campaign.quota_met and not campaign.quota_reported:
            campaign.quota_reported = True
            logger.info(f"Campaign '{campaign.name}' met its quota of {campaign.arrest_quota}")
            self._bus.emit(
                EventType.CAMPAIGN_QUOTA_MET,
                regime_id=state.id,
                turn=state.turn_number,
                campaign_id=campaign.id,
                arrests=campaign.arrests_made,
            )
        return campaign

    def end_campaign(
        self,
        state: "RegimeState",
        campaign: RepressionCampaign | None = None,
        turn: int | None = None,
    ) -> RepressionCampaign | None:
        """
        Close a campaign and settle its political outcome.

        Eliminated rivals count as a successful purge. Martyrs harden the
        opposition.
        """
        campaign = campaign or state.active_campaign()
        if campaign is None or not campaign.is_active:
            return None

        turn = state.turn_number if turn is None else turn
        campaign.end_campaign(turn)

        if campaign.rivals_eliminated > 0:
            self.consolidation.record_purge_outcome(state, success=True)
        if campaign.martyrs_created > 0:
            self.consolidation.record_factional_opposition(state)

        logger.info(
            f"Campaign '{campaign.name}' ended: {campaign.arrests_made} arrests, "
            f"{campaign.executions_made} executions, {campaign.rivals_eliminated} rivals"
        )
        self._bus.emit(
            EventType.CAMPAIGN_ENDED,
            regime_id=state.id,
            turn=turn,
            campaign_id=campaign.id,
            arrests=campaign.arrests_made,
            executions=campaign.executions_made,
            rivals_eliminated=campaign.rivals_eliminated,
            martyrs=campaign.martyrs_created,
        )
        return campaign
