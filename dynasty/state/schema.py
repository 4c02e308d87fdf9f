"""
Pydantic models for the regime state.

One RegimeState aggregate holds everything a run needs: national and personal
stats, flags, provinces, the consolidation record, succession bonds, purge
campaigns and the character roster. Systems receive the aggregate explicitly;
none of them keeps a private copy.

Scores are integers on a 0-100 scale and every mutator clamps instead of
rejecting, so malformed upstream effects degrade instead of raising.
"""

from datetime import datetime
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, Field

from ..config import SuccessionTuning
from ..tools.dice import RandomSource


def generate_id() -> str:
    return str(uuid4())[:8]


def clamp(value: int, low: int = 0, high: int = 100) -> int:
    """Clamp an integer score into [low, high]."""
    return max(low, min(high, value))


# -----------------------------------------------------------------------------
# Stat identifiers
# -----------------------------------------------------------------------------

class StatId(str, Enum):
    """Every stat the rules can read or write."""
    # National
    STABILITY = "stability"
    POPULAR_SUPPORT = "popular_support"
    MILITARY_LOYALTY = "military_loyalty"
    ELITE_LOYALTY = "elite_loyalty"
    TREASURY = "treasury"
    INDUSTRIAL_OUTPUT = "industrial_output"
    FOOD_SUPPLY = "food_supply"
    INTERNATIONAL_STANDING = "international_standing"

    # Personal
    STANDING = "standing"
    PATRON_FAVOR = "patron_favor"
    RIVAL_THREAT = "rival_threat"
    NETWORK = "network"

    @property
    def is_personal(self) -> bool:
        return self in PERSONAL_STATS


PERSONAL_STATS = frozenset({
    StatId.STANDING,
    StatId.PATRON_FAVOR,
    StatId.RIVAL_THREAT,
    StatId.NETWORK,
})


class Variable(str, Enum):
    """Numeric run variables set by events outside the core."""
    WORLD_TENSION = "world_tension"
    CORRUPTION_LEVEL = "corruption_level"
    COALITION_STRENGTH = "coalition_strength"  # Opposition building against the player


class Flag(str, Enum):
    """Tags the core reads. Other tags (prefix counters) are plain strings."""
    NUCLEAR_ESCALATION = "nuclear_escalation"
    TERRITORIAL_DISINTEGRATION = "territorial_disintegration"
    ECONOMIC_COLLAPSE_SECESSION = "economic_collapse_secession"
    CAPITAL_SECEDED = "capital_seceded"
    CAPITAL_CAPTURED = "capital_captured"
    INVASION_DEFEAT = "invasion_defeat"
    FOREIGN_OCCUPATION = "foreign_occupation"
    MILITARY_COUP = "military_coup"
    CORRUPTION_EXPOSED = "corruption_exposed"
    PLAYER_DEATH_IMMINENT = "player_death_imminent"


# Prefix tags counted into run statistics
SURVIVED_ASSASSINATION_PREFIX = "survived_assassination_"
SUCCESSION_PREFIX = "succession_"
HEIR_LOST_PREFIX = "heir_lost_"


def _tag(flag: "Flag | str") -> str:
    return flag.value if isinstance(flag, Enum) else flag


class NationalStats(BaseModel):
    """State-level indicators (0-100)."""
    stability: int = 50
    popular_support: int = 50
    military_loyalty: int = 50
    elite_loyalty: int = 50
    treasury: int = 50
    industrial_output: int = 50
    food_supply: int = 50
    international_standing: int = 50


class PersonalStats(BaseModel):
    """The ruler's own position (0-100)."""
    standing: int = 50
    patron_favor: int = 50
    rival_threat: int = 20
    network: int = 30


# -----------------------------------------------------------------------------
# Provinces
# -----------------------------------------------------------------------------

class ProvinceCategory(str, Enum):
    CAPITAL = "capital"            # Political center, government seat
    INDUSTRIAL = "industrial"      # Heavy industry, manufacturing
    AGRICULTURAL = "agricultural"  # Farming, food production
    BORDER = "border"              # Military presence, frontier defense
    AUTONOMOUS = "autonomous"      # Ethnic minorities, special status
    COASTAL = "coastal"            # Ports, naval, trade access
    EXTRACTIVE = "extractive"      # Mining, resources, labor camps


class ProvinceStatus(str, Enum):
    STABLE = "stable"
    UNREST = "unrest"
    CRISIS = "crisis"
    REBELLION = "rebellion"
    SECEDING = "seceding"
    SECEDED = "seceded"          # Terminal for the province
    MARTIAL = "martial_law"

    @property
    def severity(self) -> int:
        return STATUS_SEVERITY[self]

    @property
    def display_name(self) -> str:
        return self.value.replace("_", " ").title()


STATUS_SEVERITY: dict[ProvinceStatus, int] = {
    ProvinceStatus.STABLE: 0,
    ProvinceStatus.UNREST: 1,
    ProvinceStatus.CRISIS: 2,
    ProvinceStatus.REBELLION: 3,
    ProvinceStatus.SECEDING: 4,
    ProvinceStatus.SECEDED: 5,
    ProvinceStatus.MARTIAL: 2,  # Imposed order
}


class Governor(BaseModel):
    """Regional governor sub-record."""
    character_id: str
    appointed_turn: int = 0
    loyalty: int = 50           # Loyalty to the player
    competence: int = 50
    corruption: int = 25
    local_popularity: int = 50
    player_appointed: bool = False


class Province(BaseModel):
    """A governed territory with secession mechanics."""
    id: str = Field(default_factory=generate_id)
    name: str
    category: ProvinceCategory
    status: ProvinceStatus = ProvinceStatus.STABLE

    # Secession mechanics
    secession_progress: int = 0   # 0-100, progress toward leaving
    turns_in_status: int = 0

    # Political indicators (0-100)
    party_control: int = 70
    popular_loyalty: int = 60
    military_presence: int = 30
    autonomy_desire: int = 20

    # Economy
    infrastructure_quality: int = 50
    economic_contribution: int = 10   # % of national output

    # Historical/cultural
    has_distinct_culture: bool = False
    has_distinct_language: bool = False
    historical_grievances: list[str] = Field(default_factory=list)

    governor: Governor | None = None

    @property
    def severity(self) -> int:
        return self.status.severity

    @property
    def is_seceded(self) -> bool:
        return self.status == ProvinceStatus.SECEDED

    @property
    def can_secede(self) -> bool:
        """Only culturally distinct, restless, non-capital provinces can leave."""
        return (
            self.category != ProvinceCategory.CAPITAL
            and self.autonomy_desire > 50
            and self.has_distinct_culture
        )

    @property
    def stability_score(self) -> int:
        """Overall local stability (higher = more stable)."""
        culture_penalty = (10 if self.has_distinct_culture else 0) + (
            10 if self.has_distinct_language else 0
        )
        raw = (
            self.party_control
            + self.popular_loyalty
            + self.military_presence // 2
            - self.autonomy_desire
            - culture_penalty
        )
        # Integer division toward zero, like the rest of the scoring
        return clamp(int(raw / 2))

    @property
    def instability_risk(self) -> int:
        """Risk of status deterioration (higher = more risk). Not clamped."""
        return (
            100
            - self.stability_score
            + self.autonomy_desire // 2
            + len(self.historical_grievances) * 5
        )

    @property
    def is_dangerous(self) -> bool:
        return self.severity >= 2

    def set_status(self, status: ProvinceStatus) -> bool:
        """Change status, resetting the status timer. Returns True if changed."""
        if status == self.status:
            return False
        self.status = status
        self.turns_in_status = 0
        return True

    def adjust(self, **deltas: int) -> None:
        """Apply clamped deltas to 0-100 attributes, e.g. adjust(party_control=5)."""
        for attr, delta in deltas.items():
            setattr(self, attr, clamp(getattr(self, attr) + delta))


# -----------------------------------------------------------------------------
# Power consolidation
# -----------------------------------------------------------------------------

class ConsolidationScore(BaseModel):
    """
    How hard it is to remove the incumbent leader.

    Counters are incremented by discrete events; score is a pure function of
    the counters and is refreshed with recalculate().
    """
    score: int = 20  # Start relatively vulnerable

    turns_in_position: int = 0
    loyal_appointments: int = 0
    successful_purges: int = 0
    failed_policies: int = 0
    economic_crises: int = 0
    factional_opposition: int = 0

    def recalculate(self) -> int:
        new_score = 20
        new_score += min(30, self.turns_in_position * 2)
        new_score += min(25, self.loyal_appointments * 5)
        new_score += min(20, self.successful_purges * 10)
        new_score -= self.failed_policies * 5
        new_score -= self.economic_crises * 10
        new_score -= self.factional_opposition * 3
        self.score = clamp(new_score)
        return self.score

    @property
    def removal_threshold(self) -> int:
        """Percentage of the ruling council needed to depose the leader."""
        if self.score <= 20:
            return 51   # Simple majority
        elif self.score <= 40:
            return 60
        elif self.score <= 60:
            return 70
        elif self.score <= 80:
            return 80
        return 95       # Nearly impossible

    @property
    def display_level(self) -> str:
        if self.score <= 20:
            return "Vulnerable"
        elif self.score <= 40:
            return "Weak"
        elif self.score <= 60:
            return "Moderate"
        elif self.score <= 80:
            return "Strong"
        return "Absolute"


# -----------------------------------------------------------------------------
# Succession
# -----------------------------------------------------------------------------

class MentorshipType(str, Enum):
    INFORMAL = "informal"        # Casual guidance
    MENTORSHIP = "mentorship"    # Active mentoring
    GROOMING = "grooming"        # Intentional succession prep
    DESIGNATED = "designated"    # Official successor (high risk)

    @property
    def minimum_rank(self) -> int:
        return {
            MentorshipType.INFORMAL: 3,
            MentorshipType.MENTORSHIP: 4,
            MentorshipType.GROOMING: 4,
            MentorshipType.DESIGNATED: 5,
        }[self]

    @property
    def visibility(self) -> int:
        """How visible the relationship is to others."""
        return {
            MentorshipType.INFORMAL: 10,
            MentorshipType.MENTORSHIP: 30,
            MentorshipType.GROOMING: 60,
            MentorshipType.DESIGNATED: 90,
        }[self]

    @property
    def risk_level(self) -> str:
        return {
            MentorshipType.INFORMAL: "Low",
            MentorshipType.MENTORSHIP: "Low",
            MentorshipType.GROOMING: "Medium",
            MentorshipType.DESIGNATED: "High",
        }[self]


class SuccessionBond(BaseModel):
    """Mentor/protege relationship and its defection risk."""
    id: str = Field(default_factory=generate_id)
    mentor_id: str = "player"
    protege_id: str
    protege_name: str            # Cached for display
    protege_title: str | None = None

    strength: int = 30           # 0-100 relationship quality
    turns_active: int = 1
    mentorship_type: MentorshipType = MentorshipType.INFORMAL

    # Risk factors (0-100)
    protege_ambition: int = 55
    protege_competence: int = 55
    protege_loyalty: int = 50

    last_mentored_turn: int = 1
    neglect_counter: int = 0
    last_advanced_turn: int | None = None

    is_active: bool = True
    became_rival: bool = False
    became_rival_turn: int | None = None

    def advance_turn(
        self,
        current_turn: int,
        rng: RandomSource,
        tuning: SuccessionTuning | None = None,
    ) -> bool:
        """
        Apply one turn of decay to this relationship.

        Returns True if the protege turned rival during this call. Inactive
        bonds, and bonds already advanced this turn, are left untouched.
        """
        if not self.is_active or self.became_rival:
            return False
        if self.last_advanced_turn == current_turn:
            return False

        tuning = tuning or SuccessionTuning()

        self.last_advanced_turn = current_turn
        self.turns_active += 1
        turned = False

        if current_turn - self.last_mentored_turn >= tuning.neglect_after_turns:
            self.neglect_counter += 1
            self.protege_loyalty = clamp(self.protege_loyalty - tuning.neglect_loyalty_loss)

            if (
                self.neglect_counter >= tuning.rival_neglect_count
                and self.protege_ambition > tuning.rival_min_ambition
                and self.protege_loyalty < tuning.rival_max_loyalty
            ):
                self.become_rival(current_turn)
                turned = True

        # Ambition never decreases on its own
        if rng.randint(1, 100) <= tuning.ambition_drift_chance:
            self.protege_ambition = clamp(self.protege_ambition + tuning.ambition_drift_amount)

        return turned

    def mentor(self, turn: int, strength_bonus: int = 10) -> None:
        """Mentor actively cultivates this heir."""
        self.last_mentored_turn = turn
        self.neglect_counter = max(0, self.neglect_counter - 1)
        self.strength = clamp(self.strength + strength_bonus)
        self.protege_loyalty = clamp(self.protege_loyalty + 5)

    def advocate_promotion(self, success: bool) -> None:
        """Advocate for the heir's promotion."""
        if success:
            self.strength = clamp(self.strength + 15)
            self.protege_loyalty = clamp(self.protege_loyalty + 10)
        else:
            self.strength = clamp(self.strength - 10)
            self.protege_ambition = clamp(self.protege_ambition + 10)  # Frustrated

    def become_rival(self, turn: int) -> None:
        """One-way conversion into a rival."""
        self.is_active = False
        self.became_rival = True
        self.became_rival_turn = turn

    def deactivate(self) -> None:
        """End the relationship without hostility."""
        self.is_active = False

    @property
    def rival_risk(self) -> int:
        """Diagnostic 0-100 risk score. Does not drive conversion."""
        risk = 0

        if self.protege_ambition > 70:
            risk += 30
        elif self.protege_ambition > 50:
            risk += 15

        if self.protege_loyalty < 30:
            risk += 30
        elif self.protege_loyalty < 50:
            risk += 15

        risk += self.neglect_counter * 10

        if self.strength > 70:
            risk -= 20
        elif self.strength > 50:
            risk -= 10

        return clamp(risk)

    @property
    def is_ready_to_succeed(self) -> bool:
        return (
            self.strength >= 60
            and self.protege_competence >= 50
            and self.protege_loyalty >= 40
        )

    @property
    def status_description(self) -> str:
        if self.became_rival:
            return "Turned Rival"
        elif not self.is_active:
            return "Inactive"
        elif self.rival_risk > 60:
            return "Dangerous"
        elif self.rival_risk > 30:
            return "Restless"
        elif self.strength > 70:
            return "Devoted"
        elif self.strength > 50:
            return "Loyal"
        return "Developing"


# -----------------------------------------------------------------------------
# Repression
# -----------------------------------------------------------------------------

class PurgeSector(str, Enum):
    PARTY_APPARATUS = "party_apparatus"
    MILITARY = "military"
    SECURITY_SERVICES = "security_services"
    INDUSTRIAL_MINISTRIES = "industrial_ministries"
    REGIONAL_GOVERNMENTS = "regional_governments"
    INTELLECTUALS = "intellectuals"

    @property
    def immediate_cost(self) -> tuple[StatId, int]:
        """Stat hit taken the moment a campaign against this sector starts."""
        return SECTOR_COSTS[self]


SECTOR_COSTS: dict[PurgeSector, tuple[StatId, int]] = {
    PurgeSector.PARTY_APPARATUS: (StatId.ELITE_LOYALTY, -10),
    PurgeSector.MILITARY: (StatId.MILITARY_LOYALTY, -15),
    PurgeSector.SECURITY_SERVICES: (StatId.STABILITY, -5),
    PurgeSector.INDUSTRIAL_MINISTRIES: (StatId.INDUSTRIAL_OUTPUT, -10),
    PurgeSector.REGIONAL_GOVERNMENTS: (StatId.POPULAR_SUPPORT, -5),
    PurgeSector.INTELLECTUALS: (StatId.INTERNATIONAL_STANDING, -10),
}


class PurgeIntensity(str, Enum):
    LIMITED = "limited"
    MODERATE = "moderate"
    SWEEPING = "sweeping"

    @property
    def quota(self) -> int:
        return {
            PurgeIntensity.LIMITED: 5,
            PurgeIntensity.MODERATE: 15,
            PurgeIntensity.SWEEPING: 30,
        }[self]

    @property
    def risk_multiplier(self) -> float:
        """How likely innocents are swept up, used by narrative resolution."""
        return {
            PurgeIntensity.LIMITED: 1.0,
            PurgeIntensity.MODERATE: 1.5,
            PurgeIntensity.SWEEPING: 2.5,
        }[self]


class RepressionCampaign(BaseModel):
    """A bounded purge operation. Immutable history once ended."""
    id: str = Field(default_factory=generate_id)
    name: str
    target_sector: PurgeSector
    intensity: PurgeIntensity

    turn_started: int
    turn_ended: int | None = None
    is_active: bool = True
    turns_active: int = 0

    # Quotas and tracking
    arrest_quota: int = 0
    arrests_made: int = 0
    executions_made: int = 0
    quota_reported: bool = False

    # Costs
    sector_loyalty_lost: int = 0
    productivity_lost: int = 0
    international_standing_lost: int = 0

    # Results
    rivals_eliminated: int = 0
    innocents_arrested: int = 0
    martyrs_created: int = 0

    def model_post_init(self, __context) -> None:
        if not self.arrest_quota:
            self.arrest_quota = self.intensity.quota

    @property
    def risk_multiplier(self) -> float:
        return self.intensity.risk_multiplier

    @property
    def quota_met(self) -> bool:
        return self.arrests_made >= self.arrest_quota

    def end_campaign(self, turn: int) -> None:
        self.is_active = False
        self.turn_ended = turn


# -----------------------------------------------------------------------------
# Roster and history (read-only inputs from collaborators)
# -----------------------------------------------------------------------------

class CharacterStatus(str, Enum):
    ACTIVE = "active"
    DEAD = "dead"
    EXILED = "exiled"
    IMPRISONED = "imprisoned"
    RETIRED = "retired"
    DISAPPEARED = "disappeared"        # Can return
    UNDER_INVESTIGATION = "under_investigation"
    DETAINED = "detained"
    REHABILITATED = "rehabilitated"
    EXECUTED = "executed"


class Character(BaseModel):
    """Roster entry: the fields the core looks at."""
    id: str = Field(default_factory=generate_id)
    name: str
    title: str | None = None
    status: CharacterStatus = CharacterStatus.ACTIVE
    disposition: int = 50          # Toward the player
    faction_id: str | None = None
    rank: int = 0                  # Position index on the ladder
    is_rival: bool = False
    is_patron: bool = False

    @property
    def is_active(self) -> bool:
        return self.status == CharacterStatus.ACTIVE


class PositionRecord(BaseModel):
    """One tenure in a ladder position."""
    character_name: str
    title: str = ""
    rank: int
    turn_started: int
    turn_ended: int | None = None
    was_player: bool = False


class EventRecord(BaseModel):
    """Entry in the run's event log."""
    turn: int
    event_type: str          # "decision", "crisis", ...
    summary: str = ""


# -----------------------------------------------------------------------------
# Aggregate
# -----------------------------------------------------------------------------

class RegimeState(BaseModel):
    """
    The single shared record for one in-progress run.

    Owned by the game loop; every system receives it explicitly.
    """
    id: str = Field(default_factory=generate_id)
    name: str = "People's Socialist Republic"
    seed: int = 0
    turn_number: int = 1
    created_at: datetime = Field(default_factory=datetime.now)

    current_rank: int = 1
    current_title: str = ""

    national: NationalStats = Field(default_factory=NationalStats)
    personal: PersonalStats = Field(default_factory=PersonalStats)
    flags: set[str] = Field(default_factory=set)
    variables: dict[Variable, int] = Field(default_factory=dict)
    labels: dict[str, str] = Field(default_factory=dict)  # e.g. death_cause

    provinces: list[Province] = Field(default_factory=list)
    capital_province_id: str | None = None

    consolidation: ConsolidationScore = Field(default_factory=ConsolidationScore)
    succession_bonds: list[SuccessionBond] = Field(default_factory=list)
    campaigns: list[RepressionCampaign] = Field(default_factory=list)

    characters: list[Character] = Field(default_factory=list)
    position_history: list[PositionRecord] = Field(default_factory=list)
    events: list[EventRecord] = Field(default_factory=list)
    designated_heir_id: str | None = None

    # --- Stats ---------------------------------------------------------------

    def stat(self, stat: StatId) -> int:
        section = self.personal if stat.is_personal else self.national
        return getattr(section, stat.value)

    def set_stat(self, stat: StatId, value: int) -> int:
        section = self.personal if stat.is_personal else self.national
        value = clamp(value)
        setattr(section, stat.value, value)
        return value

    def apply_stat(self, stat: StatId, delta: int) -> int:
        """Shift a stat by delta, clamped to 0-100. Returns the new value."""
        return self.set_stat(stat, self.stat(stat) + delta)

    # --- Variables -----------------------------------------------------------

    def variable(self, var: Variable, default: int = 0) -> int:
        return self.variables.get(var, default)

    def has_variable(self, var: Variable) -> bool:
        return var in self.variables

    def set_variable(self, var: Variable, value: int) -> int:
        self.variables[var] = clamp(value)
        return self.variables[var]

    def apply_variable(self, var: Variable, delta: int, default: int = 0) -> int:
        return self.set_variable(var, self.variable(var, default) + delta)

    # --- Flags ---------------------------------------------------------------

    def has_flag(self, flag: Flag | str) -> bool:
        return _tag(flag) in self.flags

    def add_flag(self, flag: Flag | str) -> None:
        self.flags.add(_tag(flag))

    def remove_flag(self, flag: Flag | str) -> None:
        self.flags.discard(_tag(flag))

    def count_flags(self, prefix: str) -> int:
        return len([f for f in self.flags if f.startswith(prefix)])

    # --- Provinces -----------------------------------------------------------

    def get_province(self, province_id: str) -> Province | None:
        for province in self.provinces:
            if province.id == province_id:
                return province
        return None

    def capital_province(self) -> Province | None:
        """The designated capital, or the first capital-category province."""
        if self.capital_province_id:
            return self.get_province(self.capital_province_id)
        for province in self.provinces:
            if province.category == ProvinceCategory.CAPITAL:
                return province
        return None

    def seceded_provinces(self) -> list[Province]:
        return [p for p in self.provinces if p.is_seceded]

    # --- Campaigns -----------------------------------------------------------

    def active_campaign(self) -> RepressionCampaign | None:
        for campaign in self.campaigns:
            if campaign.is_active:
                return campaign
        return None

    def latest_campaign(self) -> RepressionCampaign | None:
        """Most recently started campaign (later entries win ties)."""
        if not self.campaigns:
            return None
        return max(
            enumerate(self.campaigns),
            key=lambda pair: (pair[1].turn_started, pair[0]),
        )[1]

    # --- Roster --------------------------------------------------------------

    def get_character(self, character_id: str) -> Character | None:
        for character in self.characters:
            if character.id == character_id:
                return character
        return None

    def get_bond(self, bond_id: str) -> SuccessionBond | None:
        for bond in self.succession_bonds:
            if bond.id == bond_id:
                return bond
        return None

    def snapshot(self) -> dict:
        """Compact view for renderers. Contains only what a UI needs."""
        return {
            "turn_number": self.turn_number,
            "national": self.national.model_dump(),
            "personal": self.personal.model_dump(),
            "consolidation": {
                "score": self.consolidation.score,
                "level": self.consolidation.display_level,
                "removal_threshold": self.consolidation.removal_threshold,
            },
            "provinces": {
                p.id: {
                    "status": p.status.value,
                    "secession_progress": p.secession_progress,
                }
                for p in self.provinces
            },
            "heirs": [
                {
                    "name": b.protege_name,
                    "status": b.status_description,
                    "rival_risk": b.rival_risk,
                }
                for b in self.succession_bonds
                if b.is_active
            ],
            "active_campaign": (
                self.active_campaign().name if self.active_campaign() else None
            ),
        }
