"""In-process event bus: delivers committed domain events to subscribers.

Subscribers run synchronously, in subscription order.  A failing subscriber
is logged and skipped; it never fails the engine operation that produced
the event, and never stops delivery to the others.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Callable

import structlog

from orderengine.domain.events import DomainEvent, EventPublisher

logger = structlog.get_logger(__name__)

Subscriber = Callable[[DomainEvent], None]


class InMemoryEventBus(EventPublisher):

    def __init__(self) -> None:
        self._subscribers: dict[type, list[Subscriber]] = defaultdict(list)
        self._catch_all: list[Subscriber] = []

    def subscribe(self, handler: Subscriber, event_type: type | None = None) -> None:
        """Register ``handler`` for one event type, or for every event when omitted."""
        if event_type is None:
            self._catch_all.append(handler)
        else:
            self._subscribers[event_type].append(handler)

    def publish(self, event: DomainEvent) -> None:
        for handler in [*self._subscribers.get(type(event), []), *self._catch_all]:
            try:
                handler(event)
            except Exception:
                logger.exception(
                    "event_subscriber_failed",
                    event_type=type(event).__name__,
                    subscriber=getattr(handler, "__qualname__", repr(handler)),
                )
