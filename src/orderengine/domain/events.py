"""Domain events exposed at the engine boundary.

Events are collected inside a unit of work and published only after it
commits, so consumers (notifications, analytics, inventory reports) never
see work that was rolled back.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class StatusChangedEvent:
    """An order moved between statuses.

    ``from_status`` is ``None`` for the event emitted at placement.
    """

    order_id: int
    from_status: str | None
    to_status: str
    timestamp: datetime
    reason: str = ""


@dataclass(frozen=True)
class ItemStatusChangedEvent:
    order_id: int
    item_id: int
    from_status: str
    to_status: str
    timestamp: datetime


@dataclass(frozen=True)
class StockAdjustedEvent:
    """Stock of one product changed by ``delta`` (negative on reservation)."""

    product_id: int
    delta: int
    reason: str
    timestamp: datetime
    order_id: int | None = None


DomainEvent = StatusChangedEvent | ItemStatusChangedEvent | StockAdjustedEvent


class EventPublisher(ABC):

    @abstractmethod
    def publish(self, event: DomainEvent) -> None:
        """Deliver one event to every interested subscriber."""
