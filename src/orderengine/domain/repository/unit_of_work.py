"""Abstract unit of work: one storage transaction per engine operation.

Usage::

    with uow_factory() as uow:
        ...                      # repositories share one transaction
        uow.commit()
    events = uow.collect_events()

Leaving the ``with`` block without ``commit()`` rolls back.  Events recorded
through ``record()`` are discarded on rollback.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable

from orderengine.domain.events import DomainEvent
from orderengine.domain.repository.customer_repository import CustomerRepository
from orderengine.domain.repository.order_repository import OrderRepository
from orderengine.domain.repository.product_repository import ProductRepository
from orderengine.domain.repository.stock_movement_repository import (
    StockMovementRepository,
)


class UnitOfWork(ABC):

    products: ProductRepository
    customers: CustomerRepository
    orders: OrderRepository
    movements: StockMovementRepository

    def __init__(self) -> None:
        self._events: list[DomainEvent] = []
        self._committed_events: list[DomainEvent] = []

    def __enter__(self) -> UnitOfWork:
        self._events = []
        self._committed_events = []
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self.is_active:
            self.rollback()

    def record(self, event: DomainEvent) -> None:
        """Queue an event for publication once the transaction commits."""
        self._events.append(event)

    def collect_events(self) -> list[DomainEvent]:
        """Hand over committed events exactly once."""
        events, self._committed_events = self._committed_events, []
        return events

    def commit(self) -> None:
        self._commit()
        self._committed_events.extend(self._events)
        self._events = []

    def rollback(self) -> None:
        self._events = []
        self._rollback()

    @property
    @abstractmethod
    def is_active(self) -> bool:
        """True while a transaction is open and neither committed nor rolled back."""

    @abstractmethod
    def _commit(self) -> None:
        """Make every change durable, or raise PersistenceError."""

    @abstractmethod
    def _rollback(self) -> None:
        """Discard every change, or raise PersistenceError."""


UnitOfWorkFactory = Callable[[], UnitOfWork]
