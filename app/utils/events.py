"""
In-process domain events.

Writes publish events after they commit; listeners (profile counters, the
notification inbox, or a relay pushing changes to open clients) subscribe by
event name. A failing listener is logged and never affects the publisher.
"""
import uuid
from collections import defaultdict
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from loguru import logger
from pydantic import BaseModel, Field
from sqlmodel import Session


ITEM_CREATED = "item.created"
ITEM_STATUS_CHANGED = "item.status_changed"
ITEM_DELETED = "item.deleted"
REQUEST_SUBMITTED = "request.submitted"
REQUEST_DECIDED = "request.decided"
ORGANIZATION_REVIEWED = "organization.reviewed"


class DomainEvent(BaseModel):
    name: str
    item_id: Optional[uuid.UUID] = None
    request_id: Optional[uuid.UUID] = None
    organization_id: Optional[uuid.UUID] = None
    # users whose derived state may have changed
    user_ids: List[uuid.UUID] = Field(default_factory=list)
    data: dict = Field(default_factory=dict)
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


Listener = Callable[[Session, DomainEvent], None]


class EventBus:
    def __init__(self):
        self._listeners: Dict[str, List[Listener]] = defaultdict(list)

    def subscribe(self, name: str, listener: Listener):
        if listener not in self._listeners[name]:
            self._listeners[name].append(listener)

    def unsubscribe(self, name: str, listener: Listener):
        if listener in self._listeners[name]:
            self._listeners[name].remove(listener)

    def clear(self):
        self._listeners.clear()

    def publish(self, session: Session, event: DomainEvent):
        logger.debug(f"[event] {event.name} item={event.item_id} request={event.request_id}")

        for listener in list(self._listeners[event.name]):
            try:
                listener(session, event)
            except Exception as e:
                session.rollback()
                logger.exception(f"Listener {getattr(listener, '__name__', listener)} failed on {event.name}: {e}")


bus = EventBus()
