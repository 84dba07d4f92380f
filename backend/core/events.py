# ------------------------------ IMPORTS ------------------------------
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List
import logging

from core.utils.data_helpers import utcnow

logger = logging.getLogger(__name__)

# ------------------------------ DOMAIN EVENTS ------------------------------

@dataclass
class DomainEvent:
    """Something the notification collaborator may want to act on."""
    name: str
    payload: Dict[str, Any]
    occurred_at: datetime = field(default_factory=utcnow)

Subscriber = Callable[[DomainEvent], None]

class EventBus:
    """In-process fan-out of domain events to registered subscribers."""

    def __init__(self):
        self._subscribers: List[Subscriber] = []

    def subscribe(self, subscriber: Subscriber) -> None:
        self._subscribers.append(subscriber)

    def unsubscribe(self, subscriber: Subscriber) -> None:
        if subscriber in self._subscribers:
            self._subscribers.remove(subscriber)

    def publish(self, name: str, **payload: Any) -> DomainEvent:
        """Deliver an event after commit. Subscriber errors are logged, not raised."""
        event = DomainEvent(name=name, payload=payload)
        logger.info(f"Event {name}: {payload}")
        for subscriber in list(self._subscribers):
            try:
                subscriber(event)
            except Exception as e:
                logger.warning(f"Event subscriber failed for {name}: {e}")
        return event

# ------------------------------ GLOBAL INSTANCE ------------------------------
event_bus = EventBus()

# ------------------------------ END OF FILE ------------------------------
