"""
TerminalVerdict schema: how a run ended.

Produced by the risk evaluator when a terminal condition is met. Carries the
condition, a short cause, and the statistics summary shown on the end screen.
"""

from enum import Enum

from pydantic import BaseModel, Field


class DefeatCategory(str, Enum):
    """Scale of the defeat, for scoring and statistics."""
    PERSONAL_DEFEAT = "personal_defeat"          # Player removed, system might survive
    PARTY_COLLAPSE = "party_collapse"            # Party loses power to other forces
    STATE_DISSOLUTION = "state_dissolution"      # The nation ceases to exist
    GLOBAL_CATASTROPHE = "global_catastrophe"    # Everyone loses

    @property
    def display_name(self) -> str:
        return self.value.replace("_", " ").title()


class TerminalCondition(str, Enum):
    # Personal failures (an heir could have continued)
    ASSASSINATION_NO_HEIR = "assassination_no_heir"
    DEATH_NO_HEIR = "death_no_heir"
    PURGED_NO_HEIR = "purged_no_heir"
    DYNASTY_EXTINCT = "dynasty_extinct"
    CORRUPTION_EXPOSED = "corruption_exposed"

    # Party-level failures
    REVOLUTION_OVERTHROW = "revolution_overthrow"
    MILITARY_COUP = "military_coup"

    # State-level failures
    TERRITORIAL_DISINTEGRATION = "territorial_disintegration"
    CAPITAL_FALLS = "capital_falls"
    FOREIGN_INVASION = "foreign_invasion"

    # Global
    NUCLEAR_WAR = "nuclear_war"

    @property
    def preventable_by_heir(self) -> bool:
        """System-level failures destroy everything; personal ones don't."""
        return self.category == DefeatCategory.PERSONAL_DEFEAT

    @property
    def category(self) -> DefeatCategory:
        return _CATEGORIES[self]

    @property
    def display_title(self) -> str:
        return _TITLES[self]


_CATEGORIES: dict[TerminalCondition, DefeatCategory] = {
    TerminalCondition.ASSASSINATION_NO_HEIR: DefeatCategory.PERSONAL_DEFEAT,
    TerminalCondition.DEATH_NO_HEIR: DefeatCategory.PERSONAL_DEFEAT,
    TerminalCondition.PURGED_NO_HEIR: DefeatCategory.PERSONAL_DEFEAT,
    TerminalCondition.DYNASTY_EXTINCT: DefeatCategory.PERSONAL_DEFEAT,
    TerminalCondition.CORRUPTION_EXPOSED: DefeatCategory.PERSONAL_DEFEAT,
    TerminalCondition.REVOLUTION_OVERTHROW: DefeatCategory.PARTY_COLLAPSE,
    TerminalCondition.MILITARY_COUP: DefeatCategory.PARTY_COLLAPSE,
    TerminalCondition.TERRITORIAL_DISINTEGRATION: DefeatCategory.STATE_DISSOLUTION,
    TerminalCondition.CAPITAL_FALLS: DefeatCategory.STATE_DISSOLUTION,
    TerminalCondition.FOREIGN_INVASION: DefeatCategory.STATE_DISSOLUTION,
    TerminalCondition.NUCLEAR_WAR: DefeatCategory.GLOBAL_CATASTROPHE,
}

_TITLES: dict[TerminalCondition, str] = {
    TerminalCondition.ASSASSINATION_NO_HEIR: "ASSASSINATED",
    TerminalCondition.DEATH_NO_HEIR: "PERISHED",
    TerminalCondition.PURGED_NO_HEIR: "PURGED",
    TerminalCondition.DYNASTY_EXTINCT: "DYNASTY EXTINCT",
    TerminalCondition.CORRUPTION_EXPOSED: "EXPOSED",
    TerminalCondition.REVOLUTION_OVERTHROW: "OVERTHROWN",
    TerminalCondition.MILITARY_COUP: "COUP D'ÉTAT",
    TerminalCondition.TERRITORIAL_DISINTEGRATION: "UNION DISSOLVED",
    TerminalCondition.CAPITAL_FALLS: "CAPITAL LOST",
    TerminalCondition.FOREIGN_INVASION: "DEFEATED",
    TerminalCondition.NUCLEAR_WAR: "ANNIHILATION",
}


class RunStatistics(BaseModel):
    """Summary counts for the end screen. Assembled by a pure read of state."""
    turns_played: int = 0
    highest_rank: int = 0
    highest_position: str = ""
    characters_influenced: int = 0
    rivals_defeated: int = 0
    patrons_served: int = 0
    major_decisions: int = 0
    assassinations_survived: int = 0
    successful_successions: int = 0
    repression_campaigns: int = 0
    executions_ordered: int = 0


class TerminalVerdict(BaseModel):
    """Authoritative end-of-run result."""
    condition: TerminalCondition
    cause: str
    turn_occurred: int
    final_position: str = ""
    dynasty_length: int = 0      # Turns the dynasty survived
    heirs_lost: int = 0
    stats: RunStatistics = Field(default_factory=RunStatistics)

    @property
    def category(self) -> DefeatCategory:
        return self.condition.category

    @property
    def preventable_by_heir(self) -> bool:
        return self.condition.preventable_by_heir

    @property
    def display_title(self) -> str:
        return self.condition.display_title
