"""Ready-made starting states."""

from .default import default_provinces, default_roster, new_regime

__all__ = ["default_provinces", "default_roster", "new_regime"]
