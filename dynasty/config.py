"""
Balance configuration persistence.

Every tunable threshold of the simulation lives here instead of being
hard-coded in the systems. Defaults are the shipped balance; a YAML file can
override any subset of them for playtesting.

    thresholds:
      revolution_stability: 5
      coup_military_loyalty: 20
    succession:
      ambition_drift_chance: 20
"""

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)


class GameOverThresholds(BaseModel):
    """Gates read by the risk evaluator."""
    nuclear_world_tension: int = 100

    territorial_collapse_provinces: int = 3
    invasion_border_provinces: int = 2

    revolution_stability: int = 5
    revolution_popular_support: int = 10

    coup_stability: int = 20
    coup_military_loyalty: int = 20
    coup_min_hostile_figures: int = 2
    coup_min_rank: int = 6
    coup_max_disposition: int = 29       # Hostile means disposition < 30
    coup_faction: str = "princelings"    # Red aristocracy with military ties

    corruption_level: int = 70
    corruption_protection_floor: int = 50  # patron favor + standing must be below

    assassination_rival_threat: int = 95
    assassination_network: int = 15

    purge_patron_favor: int = 5
    purge_standing: int = 10
    purge_coalition_strength: int = 80

    heir_min_disposition: int = 50


class ProvinceTuning(BaseModel):
    """Secession and intervention constants."""
    seceding_progress: int = 75
    rebellion_progress: int = 50
    at_risk_progress: int = 25

    martial_law_delta: int = -5
    stable_regression_delta: int = -2

    economic_collapse_contribution: int = 40
    crisis_cascade_provinces: int = 3
    rebellion_cascade_provinces: int = 2
    secession_cascade_progress: int = 5
    secession_cascade_autonomy: int = 8


class SuccessionTuning(BaseModel):
    """Mentor/protege decay constants."""
    neglect_after_turns: int = 2
    neglect_loyalty_loss: int = 5
    rival_neglect_count: int = 3
    rival_min_ambition: int = 70     # Strictly greater than
    rival_max_loyalty: int = 40      # Strictly less than
    ambition_drift_chance: int = 20  # Percent per turn
    ambition_drift_amount: int = 5
    initial_strength: int = 30


class RepressionTuning(BaseModel):
    """Purge campaign constants."""
    cooldown_turns: int = 3


class BalanceConfig(BaseModel):
    """Complete tunable balance for one run."""
    thresholds: GameOverThresholds = Field(default_factory=GameOverThresholds)
    provinces: ProvinceTuning = Field(default_factory=ProvinceTuning)
    succession: SuccessionTuning = Field(default_factory=SuccessionTuning)
    repression: RepressionTuning = Field(default_factory=RepressionTuning)


DEFAULT_CONFIG = BalanceConfig()


def get_config_path(config_dir: Path | str = ".") -> Path:
    """Get path to the balance file."""
    return Path(config_dir) / "balance.yaml"


def load_balance_config(path: Path | str | None = None) -> BalanceConfig:
    """
    Load balance from a YAML file, or return defaults if not found.

    Keys missing from the file keep their default values. A malformed file
    is logged and ignored.
    """
    path = Path(path) if path is not None else get_config_path()

    if not path.exists():
        return DEFAULT_CONFIG.model_copy(deep=True)

    try:
        with open(path, "r", encoding="utf-8") as f:
            saved = yaml.safe_load(f) or {}
        return BalanceConfig.model_validate(saved)
    except (yaml.YAMLError, ValidationError, OSError) as e:
        logger.warning(f"Ignoring unreadable balance file {path}: {e}")
        return DEFAULT_CONFIG.model_copy(deep=True)


def save_balance_config(config: BalanceConfig, path: Path | str | None = None) -> bool:
    """Save balance to a YAML file. Returns True on success."""
    path = Path(path) if path is not None else get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    try:
        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(config.model_dump(), f, sort_keys=False)
        return True
    except OSError as e:
        logger.warning(f"Could not save balance file {path}: {e}")
        return False
