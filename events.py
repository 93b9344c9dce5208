# events.py
"""
Synchronous in-process domain events.

Mutations in logic.py publish an event after their commit; subscribers
(the notification writer) run inside the same request. A failing
subscriber is logged and does not undo the mutation that published it.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    ANNOUNCEMENT_ACTIVATED = "announcement_activated"
    PARTICIPANT_STATUS_CHANGED = "participant_status_changed"
    AUDITION_SCHEDULED = "audition_scheduled"
    AUDITION_RESULT_RECORDED = "audition_result_recorded"


@dataclass
class DomainEvent:
    type: EventType
    payload: Dict = field(default_factory=dict)
    occurred_at: datetime = field(default_factory=datetime.utcnow)


def announcement_activated(announcement_id: int, title: str, content: str,
                           category_id: Optional[int]) -> DomainEvent:
    return DomainEvent(EventType.ANNOUNCEMENT_ACTIVATED, {
        'announcement_id': announcement_id,
        'title': title,
        'content': content,
        'category_id': category_id,
    })


def participant_status_changed(participant_id: int, old_status: str, new_status: str) -> DomainEvent:
    return DomainEvent(EventType.PARTICIPANT_STATUS_CHANGED, {
        'participant_id': participant_id,
        'old_status': old_status,
        'new_status': new_status,
    })


def audition_scheduled(audition_id: int, participant_id: int, scheduled_date: datetime, venue: str) -> DomainEvent:
    return DomainEvent(EventType.AUDITION_SCHEDULED, {
        'audition_id': audition_id,
        'participant_id': participant_id,
        'scheduled_date': scheduled_date,
        'venue': venue,
    })


def audition_result_recorded(audition_id: int, participant_id: int, result: str) -> DomainEvent:
    return DomainEvent(EventType.AUDITION_RESULT_RECORDED, {
        'audition_id': audition_id,
        'participant_id': participant_id,
        'result': result,
    })


class EventBus:
    """Registry of handlers keyed by event type."""

    def __init__(self):
        self._subscribers: Dict[EventType, List[Callable[[DomainEvent], None]]] = defaultdict(list)

    def subscribe(self, event_type: EventType):
        def decorator(handler):
            if handler not in self._subscribers[event_type]:
                self._subscribers[event_type].append(handler)
            return handler
        return decorator

    def publish(self, event: DomainEvent) -> int:
        """Deliver the event to every handler; returns how many succeeded."""
        delivered = 0
        for handler in list(self._subscribers.get(event.type, [])):
            try:
                handler(event)
                delivered += 1
            except Exception:
                logger.exception("Handler %s failed for event %s", handler.__name__, event.type.value)
        return delivered


bus = EventBus()
