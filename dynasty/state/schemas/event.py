"""
TurnEvent schema: individual events produced while a turn advances.

Every notification a system publishes on the event bus during a turn is
also captured as a TurnEvent, so a TurnResult carries the full record of
what changed without the caller subscribing to anything.
"""

from datetime import datetime
from uuid import uuid4

from pydantic import BaseModel, Field


class TurnEvent(BaseModel):
    """
    A single event produced during a turn.

    Events are records of what happened. They never mutate state; the
    system that made the change emits the event afterwards.
    """
    event_id: str = Field(default_factory=lambda: str(uuid4())[:8])
    event_type: str  # e.g. "province.seceded", "succession.turned_rival"
    payload: dict = Field(default_factory=dict)
    # Payload varies by event_type:
    # province.status_changed: {"province_id": "southern", "old": "rebellion", "new": "seceding"}
    # repression.ended: {"campaign_id": "abc123", "rivals_eliminated": 2}

    summary: str = ""
    timestamp: datetime = Field(default_factory=datetime.now)
