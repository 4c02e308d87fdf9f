"""
Pytest fixtures for regime engine tests.

Provides fresh regime states, balance configs and scripted random sources
for isolated testing.
"""

import pytest
from pathlib import Path

# Add repo root to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from dynasty.config import BalanceConfig
from dynasty.scenarios import new_regime
from dynasty.state import (
    Character,
    Province,
    ProvinceCategory,
    RegimeState,
    reset_event_bus,
)


class ScriptedRandom:
    """
    Random source that replays fixed values.

    randint() returns the next scripted value (clamped into the requested
    range); once the script runs out it repeats the last value.
    """

    def __init__(self, values: list[int]):
        self.values = list(values)
        self.calls: list[tuple[int, int]] = []

    def randint(self, a: int, b: int) -> int:
        self.calls.append((a, b))
        value = self.values.pop(0) if len(self.values) > 1 else self.values[0]
        return max(a, min(b, value))

    def random(self) -> float:
        return 0.99


@pytest.fixture(autouse=True)
def fresh_event_bus():
    """Every test gets its own event bus."""
    reset_event_bus()
    yield
    reset_event_bus()


@pytest.fixture
def config():
    """Shipped balance."""
    return BalanceConfig()


@pytest.fixture
def regime():
    """Bare regime: default stats, no provinces, rank high enough to mentor."""
    return RegimeState(seed=1234, current_rank=5, current_title="Minister")


@pytest.fixture
def default_regime():
    """Regime on the default seven-zone map."""
    return new_regime(seed=42)


@pytest.fixture
def restless_province():
    """Culturally distinct province that can secede."""
    return Province(
        id="southern",
        name="Southern Zone",
        category=ProvinceCategory.AUTONOMOUS,
        autonomy_desire=80,
        party_control=20,
        popular_loyalty=20,
        has_distinct_culture=True,
        secession_progress=10,
    )


@pytest.fixture
def protege():
    return Character(id="protege", name="Lin Baxter", disposition=55, rank=3)


@pytest.fixture
def scripted_rng():
    """Factory for scripted random sources."""
    return ScriptedRandom


@pytest.fixture
def never_drift():
    """Random source whose percentile rolls always fail."""
    return ScriptedRandom([100])
