"""
Event bus for regime state changes.

Provides decoupled communication between the simulation systems and whatever
renders them (cards, timelines, logs). Systems emit, listeners react.

Usage:
    from .event_bus import get_event_bus, EventType

    bus = get_event_bus()
    bus.on(EventType.PROVINCE_SECEDED, my_handler)

    bus.emit(EventType.PROVINCE_SECEDED, province="southern", turn=12)

    def my_handler(event: GameEvent):
        print(f"{event.data['province']} has left the union")
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Simulation events that can be published."""

    # Province events
    PROVINCE_ADVANCED = "province.advanced"
    PROVINCE_STATUS_CHANGED = "province.status_changed"
    PROVINCE_SECEDED = "province.seceded"
    MARTIAL_LAW_IMPOSED = "province.martial_law_imposed"
    MARTIAL_LAW_LIFTED = "province.martial_law_lifted"
    TERRITORIAL_ALARM = "province.territorial_alarm"

    # Consolidation events
    CONSOLIDATION_CHANGED = "consolidation.changed"

    # Succession events
    HEIR_DESIGNATED = "succession.designated"
    PROTEGE_MENTORED = "succession.mentored"
    PROTEGE_NEGLECTED = "succession.neglected"
    PROTEGE_TURNED_RIVAL = "succession.turned_rival"

    # Repression events
    CAMPAIGN_LAUNCHED = "repression.launched"
    CAMPAIGN_QUOTA_MET = "repression.quota_met"
    CAMPAIGN_ENDED = "repression.ended"

    # Turn events
    TURN_START = "turn.start"
    TURN_ADVANCED = "turn.advanced"
    TURN_END = "turn.end"
    GAME_OVER = "game.over"


@dataclass
class GameEvent:
    """
    Event payload for the event bus.

    Attributes:
        type: The event type (from EventType enum)
        data: Event-specific payload as dict
        regime_id: ID of the run this event belongs to
        turn: Turn number when the event occurred
        timestamp: When the event was emitted
    """

    type: EventType
    data: dict = field(default_factory=dict)
    regime_id: str = ""
    turn: int = 0
    timestamp: datetime = field(default_factory=datetime.now)

    def __str__(self) -> str:
        return f"[{self.type.value}] {self.data}"


EventHandler = Callable[[GameEvent], None]


class EventBus:
    """
    Synchronous event bus.

    Listeners are called immediately on emit(), in subscription order.
    The bus never feeds back into the rules: it is a notification channel,
    not part of the regime state.
    """

    def __init__(self):
        self._listeners: dict[EventType, list[EventHandler]] = {}
        self._history: list[GameEvent] = []
        self._history_limit = 200

    def on(self, event_type: EventType, handler: EventHandler) -> None:
        """Subscribe to an event type."""
        if event_type not in self._listeners:
            self._listeners[event_type] = []
        if handler not in self._listeners[event_type]:
            self._listeners[event_type].append(handler)

    def off(self, event_type: EventType, handler: EventHandler) -> None:
        """Unsubscribe from an event type."""
        if event_type in self._listeners and handler in self._listeners[event_type]:
            self._listeners[event_type].remove(handler)

    def emit(
        self,
        event_type: EventType,
        regime_id: str = "",
        turn: int = 0,
        **data,
    ) -> GameEvent:
        """
        Emit an event to all subscribers.

        Args:
            event_type: The type of event
            regime_id: Run context (optional)
            turn: Turn number (optional)
            **data: Event-specific data

        Returns:
            The emitted GameEvent (for chaining/testing)
        """
        event = GameEvent(
            type=event_type,
            data=data,
            regime_id=regime_id,
            turn=turn,
        )

        self._history.append(event)
        if len(self._history) > self._history_limit:
            self._history = self._history[-self._history_limit :]

        for handler in self._listeners.get(event_type, []):
            try:
                handler(event)
            except Exception:
                # One bad listener shouldn't break the turn
                logger.exception(f"Error in handler for {event_type.value}")

        return event

    def clear(self) -> None:
        """Clear all listeners. Useful for testing."""
        self._listeners.clear()

    def get_history(self, event_type: EventType | None = None) -> list[GameEvent]:
        """Recent events, optionally filtered by type."""
        if event_type is None:
            return list(self._history)
        return [e for e in self._history if e.type == event_type]

    def listener_count(self, event_type: EventType) -> int:
        return len(self._listeners.get(event_type, []))


_event_bus: EventBus | None = None


def get_event_bus() -> EventBus:
    """
    Get the global event bus instance.

    Returns the same instance across all calls (singleton pattern).
    """
    global _event_bus
    if _event_bus is None:
        _event_bus = EventBus()
    return _event_bus


def reset_event_bus() -> None:
    """Reset the global event bus. Useful for testing."""
    global _event_bus
    _event_bus = None
