"""
Succession system.

Manages the player's mentor/protege bonds: designating heirs, the per-turn
decay of neglected relationships, and the one-way slide of an ambitious,
neglected protege into open rivalry.

The bond arithmetic lives on SuccessionBond itself; this module wires it to
the roster, the flags and the event bus.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable

from ..config import BalanceConfig, DEFAULT_CONFIG
from ..state.event_bus import get_event_bus, EventType
from ..state.schema import (
    HEIR_LOST_PREFIX,
    MentorshipType,
    SuccessionBond,
)
from ..tools.dice import RandomSource, roll_range, turn_rng

if TYPE_CHECKING:
    from ..state.schema import Character, RegimeState

logger = logging.getLogger(__name__)


class SuccessionError(Exception):
    """Succession operation not allowed in the current state."""
    pass


class SuccessionTracker:
    """Designates, cultivates and ages succession bonds."""

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
        return self.config.succession

    def designate(
        self,
        state: "RegimeState",
        character: "Character",
        mentorship_type: MentorshipType = MentorshipType.INFORMAL,
        turn: int | None = None,
        rng: RandomSource | None = None,
    ) -> SuccessionBond:
        """
        Take a character under the player's wing.

        The protege's hidden traits are rolled here. A DESIGNATED bond also
        names the character as official heir.

        Raises:
            SuccessionError: If the player's rank is too low for the
                mentorship type, or the character already has an active bond
        """
        turn = state.turn_number if turn is None else turn

        if state.current_rank < mentorship_type.minimum_rank:
            raise SuccessionError(
                f"{mentorship_type.value} requires rank {mentorship_type.minimum_rank}, "
                f"player holds rank {state.current_rank}"
            )
        if any(b.is_active and b.protege_id == character.id for b in state.succession_bonds):
            raise SuccessionError(f"{character.name} is already under mentorship")

        if rng is None:
            rng = self._rng_factory(
                state.seed, turn, f"designate:{len(state.succession_bonds)}"
            )

        bond = SuccessionBond(
            protege_id=character.id,
            protege_name=character.name,
            protege_title=character.title,
            strength=self.tuning.initial_strength,
            mentorship_type=mentorship_type,
            protege_ambition=roll_range(rng, 40, 70),
            protege_competence=roll_range(rng, 40, 70),
            protege_loyalty=roll_range(rng, 40, 60),
            last_mentored_turn=turn,
        )
        state.succession_bonds.append(bond)

        if mentorship_type == MentorshipType.DESIGNATED:
            state.designated_heir_id = character.id

        logger.info(f"{character.name} taken on as protege ({mentorship_type.value})")
        self._bus.emit(
            EventType.HEIR_DESIGNATED,
            regime_id=state.id,
            turn=turn,
            bond_id=bond.id,
            protege_id=character.id,
            mentorship_type=mentorship_type.value,
            visibility=mentorship_type.visibility,
        )
        return bond

    def process_turn(self, state: "RegimeState") -> list[SuccessionBond]:
        """
        Age every active bond once. Returns bonds that turned rival.

        Each bond draws from its own stream, so adding a protege does not
        change the rolls of the others.
        """
        turned = []
        turn = state.turn_number

        for index, bond in enumerate(state.succession_bonds):
            if not bond.is_active:
                continue

            rng = self._rng_factory(state.seed, turn, f"succession:{index}")
            neglect_before = bond.neglect_counter

            if bond.advance_turn(turn, rng, self.tuning):
                self._handle_rival(state, bond)
                turned.append(bond)
            elif bond.neglect_counter > neglect_before:
                self._bus.emit(
                    EventType.PROTEGE_NEGLECTED,
                    regime_id=state.id,
                    turn=turn,
                    bond_id=bond.id,
                    neglect=bond.neglect_counter,
                    loyalty=bond.protege_loyalty,
                )

        return turned

    def mentor(
        self,
        state: "RegimeState",
        bond: SuccessionBond,
        strength_bonus: int = 10,
    ) -> bool:
        if not bond.is_active:
            logger.warning(f"Cannot mentor inactive protege {bond.protege_name}")
            return False

        bond.mentor(state.turn_number, strength_bonus)
        self._bus.emit(
            EventType.PROTEGE_MENTORED,
            regime_id=state.id,
            turn=state.turn_number,
            bond_id=bond.id,
            strength=bond.strength,
        )
        return True

    def advocate_promotion(
        self,
        state: "RegimeState",
        bond: SuccessionBond,
        success: bool,
    ) -> bool:
        if not bond.is_active:
            logger.warning(f"Cannot advocate for inactive protege {bond.protege_name}")
            return False
        bond.advocate_promotion(success)
        return True

    def deactivate(self, state: "RegimeState", bond: SuccessionBond) -> None:
        """End a relationship quietly (protege promoted away, retired, ...)."""
        bond.deactivate()
        if state.designated_heir_id == bond.protege_id:
            state.designated_heir_id = None

    def ready_heirs(self, state: "RegimeState") -> list[SuccessionBond]:
        """Active bonds whose protege could take over now."""
        return [b for b in state.succession_bonds if b.is_active and b.is_ready_to_succeed]

    def _handle_rival(self, state: "RegimeState", bond: SuccessionBond) -> None:
        turn = state.turn_number

        character = state.get_character(bond.protege_id)
        if character is not None:
            character.is_rival = True
        if state.designated_heir_id == bond.protege_id:
            state.designated_heir_id = None
        state.add_flag(f"{HEIR_LOST_PREFIX}{turn}_{bond.protege_id}")

        logger.info(f"Protege {bond.protege_name} turned rival on turn {turn}")
        self._bus.emit(
            EventType.PROTEGE_TURNED_RIVAL,
            regime_id=state.id,
            turn=turn,
            bond_id=bond.id,
            protege_id=bond.protege_id,
            name=bond.protege_name,
        )
