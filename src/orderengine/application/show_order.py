"""Application services: order queries (show, list, next statuses)."""

from __future__ import annotations

from orderengine.application.dto import OrderDTO, to_order_dto
from orderengine.domain.exceptions import EntityNotFoundError, ValidationError
from orderengine.domain.model.order import Order, OrderStatus
from orderengine.domain.repository.unit_of_work import UnitOfWork, UnitOfWorkFactory
from orderengine.domain.service.order_status_machine import StatusMachine


def _load(uow: UnitOfWork, order_id: int | None, reference: str | None) -> Order:
    if order_id is None and not reference:
        raise ValidationError("Give an order ID or a reference")
    if order_id is not None:
        order = uow.orders.get_by_id(order_id)
        label = f"#{order_id}"
    else:
        order = uow.orders.get_by_reference(reference.strip().upper())  # type: ignore[union-attr]
        label = f"'{reference}'"
    if order is None:
        raise EntityNotFoundError(f"Order {label} not found")
    return order


class ShowOrderHandler:

    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def handle(self, order_id: int | None = None, reference: str | None = None) -> OrderDTO:
        with self._uow_factory() as uow:
            order = _load(uow, order_id, reference)
        return to_order_dto(order)


class ListOrdersHandler:

    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def handle(
        self,
        customer_email: str | None = None,
        status: OrderStatus | None = None,
    ) -> list[OrderDTO]:
        with self._uow_factory() as uow:
            customer_id = None
            if customer_email:
                customer = uow.customers.get_by_email(customer_email.strip().lower())
                if customer is None:
                    raise EntityNotFoundError(f"Customer not found: '{customer_email}'")
                customer_id = customer.id
            orders = uow.orders.find(customer_id=customer_id, status=status)
        return [to_order_dto(order) for order in orders]


class NextStatusesHandler:
    """Which statuses an order may move to from where it is now."""

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        order_machine: StatusMachine[OrderStatus],
    ) -> None:
        self._uow_factory = uow_factory
        self._order_machine = order_machine

    def handle(self, order_id: int) -> list[str]:
        with self._uow_factory() as uow:
            order = _load(uow, order_id, None)
        return sorted(s.value for s in self._order_machine.next_possible(order.status))
