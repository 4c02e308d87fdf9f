"""
Schema contracts for the turn engine.

- TurnEvent: one notification captured during a turn
- TerminalVerdict: how the run ended, with run statistics
- TurnResult: everything a turn produced

All schemas are Pydantic BaseModel for validation and JSON serialization.
"""

from .event import TurnEvent
from .verdict import (
    DefeatCategory,
    RunStatistics,
    TerminalCondition,
    TerminalVerdict,
)
from .turn_result import TurnResult

__all__ = [
    "TurnEvent",
    # Verdict
    "DefeatCategory",
    "RunStatistics",
    "TerminalCondition",
    "TerminalVerdict",
    # Turn result
    "TurnResult",
]
