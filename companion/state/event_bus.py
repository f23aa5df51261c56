"""
In-process publish/subscribe for pet state changes.

The manager publishes after a change is persisted; hosts (UI refresh,
notifications, achievements) subscribe without the engine knowing them.

    bus = get_event_bus()
    bus.on(EventType.PET_EVOLVED, lambda e: notify(e.user_id, e.data["stage_name"]))
"""

import logging
import threading
from collections import defaultdict, deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable

logger = logging.getLogger(__name__)

HISTORY_SIZE = 100


class EventType(Enum):
    # Lifecycle
    PET_ADOPTED = "pet.adopted"
    PET_RELEASED = "pet.released"
    PET_EVOLVED = "pet.evolved"

    # Interactions
    INTERACTION_RESOLVED = "interaction.resolved"
    INTERACTION_REFUSED = "interaction.refused"

    # Progression
    PET_LEVELED_UP = "pet.leveled_up"
    BOND_INCREASED = "bond.increased"
    MOOD_CHANGED = "mood.changed"


@dataclass(frozen=True)
class PetEvent:
    """One published change. `data` carries the type-specific fields."""

    type: EventType
    pet_id: str = ""
    user_id: str = ""
    data: dict = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)

    def __str__(self) -> str:
        return f"[{self.type.value}] {self.pet_id} {self.data}"


Subscriber = Callable[[PetEvent], None]


class EventBus:
    """
    Synchronous bus: subscribers run inside emit(), on the emitting thread.

    A subscriber that raises is logged and skipped; the rest still run and
    the engine operation that emitted is unaffected.
    """

    def __init__(self, history_size: int = HISTORY_SIZE):
        self._subscribers: defaultdict[EventType, list[Subscriber]] = defaultdict(list)
        self._recent: deque[PetEvent] = deque(maxlen=history_size)
        self._lock = threading.Lock()

    def on(self, event_type: EventType, subscriber: Subscriber) -> None:
        with self._lock:
            subscribers = self._subscribers[event_type]
            if subscriber not in subscribers:
                subscribers.append(subscriber)

    def off(self, event_type: EventType, subscriber: Subscriber) -> None:
        with self._lock:
            subscribers = self._subscribers.get(event_type, [])
            if subscriber in subscribers:
                subscribers.remove(subscriber)

    def emit(self, event_type: EventType, pet_id: str = "", user_id: str = "", **data) -> PetEvent:
        """Publish an event and return it."""
        event = PetEvent(type=event_type, pet_id=pet_id, user_id=user_id, data=data)

        with self._lock:
            self._recent.append(event)
            subscribers = list(self._subscribers.get(event_type, []))

        for subscriber in subscribers:
            try:
                subscriber(event)
            except Exception:
                logger.exception(f"Subscriber failed on {event_type.value} for pet {pet_id}")

        return event

    def clear(self) -> None:
        """Drop subscribers and history (test utility)."""
        with self._lock:
            self._subscribers.clear()
            self._recent.clear()

    def get_history(self, event_type: EventType | None = None) -> list[PetEvent]:
        """Recent events, oldest first, optionally of one type."""
        with self._lock:
            events = list(self._recent)
        if event_type is not None:
            events = [e for e in events if e.type == event_type]
        return events

    def listener_count(self, event_type: EventType) -> int:
        return len(self._subscribers.get(event_type, []))


_default_bus: EventBus | None = None


def get_event_bus() -> EventBus:
    """Process-wide bus used when a manager isn't given one."""
    global _default_bus
    if _default_bus is None:
        _default_bus = EventBus()
    return _default_bus


def reset_event_bus() -> None:
    global _default_bus
    _default_bus = None
