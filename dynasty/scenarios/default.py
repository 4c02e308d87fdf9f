"""
The default seven-zone scenario.

Values are the shipped starting balance. Nothing here is random: the seed
only affects what happens once turns start.
"""

from ..state.schema import (
    Character,
    Province,
    ProvinceCategory,
    RegimeState,
)


def default_provinces() -> list[Province]:
    """The seven zones of a new game, capital first."""
    return [
        Province(
            id="capital_district",
            name="Zone 7: Capital District",
            category=ProvinceCategory.CAPITAL,
            infrastructure_quality=90,
            economic_contribution=15,
            party_control=95,
            popular_loyalty=70,
            military_presence=80,
            autonomy_desire=5,
        ),
        Province(
            id="northeast",
            name="Zone 1: Northeast Industrial Zone",
            category=ProvinceCategory.INDUSTRIAL,
            infrastructure_quality=80,
            economic_contribution=28,
            party_control=80,
            popular_loyalty=65,
            military_presence=45,
            autonomy_desire=15,
            historical_grievances=[
                "Factory closures during reorganization",
                "Purge of Trotskyist elements 1945",
            ],
        ),
        Province(
            id="great_lakes",
            name="Zone 2: Great Lakes Zone",
            category=ProvinceCategory.INDUSTRIAL,
            infrastructure_quality=75,
            economic_contribution=25,
            party_control=75,
            popular_loyalty=60,
            military_presence=40,
            autonomy_desire=20,
            historical_grievances=[
                "Battle of Chicago casualties",
                "1947 quota strikes suppressed",
            ],
        ),
        Province(
            id="pacific",
            name="Zone 3: Pacific Zone",
            category=ProvinceCategory.COASTAL,
            infrastructure_quality=75,
            economic_contribution=18,
            party_control=65,
            popular_loyalty=55,
            military_presence=55,
            autonomy_desire=30,
            has_distinct_culture=True,
            historical_grievances=[
                "Siege of Los Angeles",
                "Internment of 'reactionary elements'",
                "Suppression of Japanese-American communities",
                "Hollywood purges",
            ],
        ),
        Province(
            id="southern",
            name="Zone 4: Southern Zone",
            category=ProvinceCategory.AUTONOMOUS,
            infrastructure_quality=55,
            economic_contribution=12,
            party_control=60,
            popular_loyalty=45,
            military_presence=50,
            autonomy_desire=55,
            has_distinct_culture=True,
            historical_grievances=[
                "Civil war destruction",
                "Forced collectivization of farms",
                "Suppression of religious institutions",
                "Execution of 'counter-revolutionary' landowners",
            ],
        ),
        Province(
            id="plains",
            name="Zone 5: Plains Zone",
            category=ProvinceCategory.AGRICULTURAL,
            infrastructure_quality=50,
            economic_contribution=10,
            party_control=55,
            popular_loyalty=50,
            military_presence=25,
            autonomy_desire=45,
            has_distinct_culture=True,
            historical_grievances=[
                "Forced collectivization",
                "Destruction of family farms",
                "1943 grain requisitions",
                "Suppression of farm cooperatives",
            ],
        ),
        Province(
            id="mountain",
            name="Zone 6: Mountain Zone",
            category=ProvinceCategory.EXTRACTIVE,
            infrastructure_quality=40,
            economic_contribution=10,
            party_control=55,
            popular_loyalty=45,
            military_presence=60,
            autonomy_desire=50,
            has_distinct_culture=True,
            historical_grievances=[
                "Labor camp system",
                "Displacement of ranchers",
                "Nuclear testing on native lands",
                "Water rights seizures",
            ],
        ),
    ]


def default_roster() -> list[Character]:
    """A patron, two senior officers and a promising junior cadre."""
    return [
        Character(
            id="patron",
            name="Comrade Whitfield",
            title="Secretary of the Central Committee",
            disposition=65,
            faction_id="old_guard",
            rank=7,
            is_patron=True,
        ),
        Character(
            id="general_marsh",
            name="Marsh",
            title="Chief of the General Staff",
            disposition=40,
            faction_id="princelings",
            rank=6,
        ),
        Character(
            id="general_okafor",
            name="Okafor",
            title="Commander, Eastern Military District",
            disposition=45,
            faction_id="princelings",
            rank=6,
        ),
        Character(
            id="cadre_lin",
            name="Lin Baxter",
            title="Deputy Director, Planning Bureau",
            disposition=55,
            faction_id="reformists",
            rank=3,
        ),
    ]


def new_regime(seed: int = 0, name: str = "People's Socialist Republic") -> RegimeState:
    """Build a fresh run on the default map."""
    return RegimeState(
        name=name,
        seed=seed,
        current_rank=4,
        current_title="Deputy Minister",
        provinces=default_provinces(),
        capital_province_id="capital_district",
        characters=default_roster(),
    )
