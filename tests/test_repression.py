"""Tests for repression campaigns."""

import pytest

from dynasty.state import (
    EventType,
    PurgeIntensity,
    PurgeSector,
    StatId,
    get_event_bus,
)
from dynasty.systems import (
    CampaignCooldownError,
    RepressionError,
    RepressionSystem,
)


@pytest.fixture
def system(config):
    return RepressionSystem(config)


def _launch(system, regime, sector=PurgeSector.MILITARY, intensity=PurgeIntensity.MODERATE):
    return system.launch(regime, "Operation Clean Hands", sector, intensity)


class TestLaunch:
    """Test campaign creation and its immediate cost."""

    def test_launch_applies_sector_cost(self, system, regime):
        campaign = _launch(system, regime)

        assert regime.stat(StatId.MILITARY_LOYALTY) == 35
        assert campaign.sector_loyalty_lost == 15
        assert campaign.arrest_quota == 15
        assert campaign.turn_started == regime.turn_number
        assert campaign.is_active
        assert regime.active_campaign() is campaign

    def test_cost_is_clamped(self, system, regime):
        regime.national.military_loyalty = 5

        campaign = _launch(system, regime)

        assert regime.stat(StatId.MILITARY_LOYALTY) == 0
        assert campaign.sector_loyalty_lost == 5

    @pytest.mark.parametrize("sector,stat,cost", [
        (PurgeSector.PARTY_APPARATUS, StatId.ELITE_LOYALTY, -10),
        (PurgeSector.SECURITY_SERVICES, StatId.STABILITY, -5),
        (PurgeSector.INDUSTRIAL_MINISTRIES, StatId.INDUSTRIAL_OUTPUT, -10),
        (PurgeSector.REGIONAL_GOVERNMENTS, StatId.POPULAR_SUPPORT, -5),
        (PurgeSector.INTELLECTUALS, StatId.INTERNATIONAL_STANDING, -10),
    ])
    def test_sector_costs(self, system, regime, sector, stat, cost):
        _launch(system, regime, sector=sector)
        assert regime.stat(stat) == 50 + cost

    def test_intensity_quotas(self):
        assert PurgeIntensity.LIMITED.quota == 5
        assert PurgeIntensity.SWEEPING.quota == 30
        assert PurgeIntensity.SWEEPING.risk_multiplier == 2.5

    def test_launch_emits_event(self, system, regime):
        _launch(system, regime, intensity=PurgeIntensity.SWEEPING)

        events = get_event_bus().get_history(EventType.CAMPAIGN_LAUNCHED)
        assert events[0].data["quota"] == 30
        assert events[0].data["sector"] == "military"


class TestCooldown:
    """Test the one-at-a-time and cooldown rules."""

    def test_active_campaign_blocks(self, system, regime):
        _launch(system, regime)

        assert not system.can_launch(regime)
        with pytest.raises(CampaignCooldownError):
            _launch(system, regime)
        assert len(regime.campaigns) == 1

    def test_cooldown_error_is_repression_error(self, system, regime):
        _launch(system, regime)
        with pytest.raises(RepressionError):
            _launch(system, regime)

    def test_cooldown_after_end(self, system, regime):
        _launch(system, regime)
        regime.turn_number = 3
        system.end_campaign(regime)

        regime.turn_number = 5
        with pytest.raises(CampaignCooldownError) as exc:
            _launch(system, regime)
        assert exc.value.turns_remaining == 1

        regime.turn_number = 6
        assert system.can_launch(regime)
        _launch(system, regime)
        assert len(regime.campaigns) == 2

    def test_first_campaign_allowed(self, system, regime):
        assert system.can_launch(regime)
        assert system.cooldown_remaining(regime) == 0


class TestAccrual:
    """Test counters reported during a campaign."""

    def test_counters(self, system, regime):
        campaign = _launch(system, regime, intensity=PurgeIntensity.LIMITED)

        system.record_arrests(campaign, 4, innocents=2)
        system.record_arrests(campaign, 2)
        system.record_executions(campaign, 1, martyrs=1)
        system.record_rivals_eliminated(campaign, 1)
        system.record_costs(campaign, productivity=3, international_standing=2)

        assert campaign.arrests_made == 6
        assert campaign.innocents_arrested == 2
        assert campaign.executions_made == 1
        assert campaign.martyrs_created == 1
        assert campaign.rivals_eliminated == 1
        assert campaign.productivity_lost == 3
        assert campaign.international_standing_lost == 2
        assert campaign.quota_met

    def test_negative_input_ignored(self, system, regime):
        campaign = _launch(system, regime)

        system.record_arrests(campaign, -5, innocents=-1)

        assert campaign.arrests_made == 0
        assert campaign.innocents_arrested == 0

    def test_ended_campaign_is_frozen(self, system, regime):
        campaign = _launch(system, regime)
        system.end_campaign(regime)

        system.record_arrests(campaign, 10)
        system.record_executions(campaign, 3)

        assert campaign.arrests_made == 0
        assert campaign.executions_made == 0


class TestTurnsAndEnding:
    """Test per-turn processing and closing a campaign."""

    def test_process_turn(self, system, regime):
        campaign = _launch(system, regime, intensity=PurgeIntensity.LIMITED)

        system.process_turn(regime)
        system.record_arrests(campaign, 5)
        system.process_turn(regime)
        system.process_turn(regime)

        assert campaign.turns_active == 3
        assert len(get_event_bus().get_history(EventType.CAMPAIGN_QUOTA_MET)) == 1

    def test_process_turn_without_campaign(self, system, regime):
        assert system.process_turn(regime) is None

    def test_end_feeds_consolidation(self, system, regime):
        campaign = _launch(system, regime)
        system.record_rivals_eliminated(campaign, 2)
        system.record_executions(campaign, 2, martyrs=1)
        regime.turn_number = 4

        ended = system.end_campaign(regime)

        assert ended is campaign
        assert not campaign.is_active
        assert campaign.turn_ended == 4
        assert regime.consolidation.successful_purges == 1
        assert regime.consolidation.factional_opposition == 1
        assert regime.consolidation.score == 27

    def test_fruitless_campaign_no_purge_credit(self, system, regime):
        _launch(system, regime)
        system.end_campaign(regime)

        assert regime.consolidation.successful_purges == 0
        assert regime.consolidation.score == 20

    def test_end_twice_is_noop(self, system, regime):
        campaign = _launch(system, regime)
        system.end_campaign(regime, campaign)
        regime.turn_number = 9

        assert system.end_campaign(regime, campaign) is None
        assert campaign.turn_ended == 1
