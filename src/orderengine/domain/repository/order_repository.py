"""Abstract repository for Order aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod

from orderengine.domain.model.order import Order, OrderStatus


class OrderRepository(ABC):

    @abstractmethod
    def get_by_id(self, order_id: int, for_update: bool = False) -> Order | None:
        """Return an order with its items and history, or None.

        With ``for_update`` the order stays locked against other writers
        until the unit of work ends.
        """

    @abstractmethod
    def get_by_reference(self, reference: str) -> Order | None:
        """Return an order by its human-facing reference, or None."""

    @abstractmethod
    def find(
        self,
        customer_id: int | None = None,
        status: OrderStatus | None = None,
    ) -> list[Order]:
        """Return orders matching the filters, oldest first."""

    @abstractmethod
    def add(self, order: Order) -> None:
        """Persist a new order with its items; assigns order and item IDs."""

    @abstractmethod
    def save(self, order: Order) -> None:
        """Persist status changes of an existing order and its items."""
