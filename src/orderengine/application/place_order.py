"""Application service: Place Order use case.

Turns a customer's request into a persisted order in one transaction:
resolve the customer and addresses, reserve stock for every line, freeze
prices, build the order.  Any failure rolls back every reservation made in
the call, so a rejected order leaves stock exactly as it found it.
"""

from __future__ import annotations

from datetime import datetime, timezone

import structlog

from orderengine.application.dto import OrderLine, PlaceOrderCommand
from orderengine.application.transactions import run_in_transaction
from orderengine.domain.errors import (
    CustomerInactive,
    CustomerNotFound,
    InvalidOrderRequest,
    InvalidQuantity,
    PlacementError,
    ProductNotFound,
    ProductUnavailable,
)
from orderengine.domain.events import EventPublisher, StatusChangedEvent
from orderengine.domain.model.order import (
    MAX_LINE_ITEMS,
    Order,
    OrderItem,
    OrderStatus,
    generate_reference,
)
from orderengine.domain.repository.unit_of_work import UnitOfWork, UnitOfWorkFactory
from orderengine.domain.result import Err, Ok, Result
from orderengine.domain.service.price_freezer import PriceFreezer
from orderengine.domain.service.product_stock import ProductStock

logger = structlog.get_logger(__name__)


class OrderPlacementCoordinator:

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        publisher: EventPublisher,
        price_freezer: PriceFreezer | None = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._publisher = publisher
        self._price_freezer = price_freezer or PriceFreezer()

    def place_order(self, command: PlaceOrderCommand) -> Result[Order, PlacementError]:
        """Place a new order.

        Steps:
        1. Validate and merge the requested lines (nothing touched yet).
        2. Resolve customer and addresses.
        3. Reserve stock and freeze the price of every line.
        4. Persist the order in PENDING (or PAID) and commit.
        """
        log = logger.bind(customer_email=command.customer_email)

        merged = _merge_lines(command.lines)
        if isinstance(merged, Err):
            log.warning("order_rejected", kind=merged.error.kind, reason=merged.error.message)
            return merged

        result = run_in_transaction(
            self._uow_factory,
            self._publisher,
            "place order",
            lambda uow: self._place(uow, command, merged.value),
            customer_email=command.customer_email,
        )

        if isinstance(result, Ok):
            order = result.value
            log.info(
                "order_placed",
                order_id=order.id,
                reference=order.reference,
                status=order.status.value,
                total=str(order.total_amount),
            )
        else:
            log.warning("order_rejected", kind=result.error.kind, reason=result.error.message)
        return result

    def _place(
        self,
        uow: UnitOfWork,
        command: PlaceOrderCommand,
        lines: list[OrderLine],
    ) -> Result[Order, PlacementError]:
        customer = uow.customers.get_by_email(command.customer_email.strip().lower())
        if customer is None:
            return Err(CustomerNotFound(command.customer_email))
        if not customer.is_active:
            return Err(CustomerInactive(command.customer_email))

        shipping = command.shipping_address or customer.default_address
        if shipping is None:
            return Err(InvalidOrderRequest(
                "No shipping address given and the customer has no default address"
            ))
        billing = command.billing_address or shipping

        now = datetime.now(timezone.utc)
        reference = generate_reference(now)
        stock = ProductStock(uow)

        items: list[OrderItem] = []
        for line in lines:
            product = uow.products.get_by_id(line.product_id)
            if product is None:
                return Err(ProductNotFound(line.product_id))
            if not product.is_active:
                return Err(ProductUnavailable(line.product_id))

            reserved = stock.reserve(
                product.id,  # type: ignore[arg-type]
                line.quantity,
                reason=f"order {reference}",
            )
            if isinstance(reserved, Err):
                return reserved

            price = self._price_freezer.freeze(product, line.quantity)
            if items and price.currency != items[0].price.currency:
                return Err(InvalidOrderRequest(
                    f"All items must share one currency: product #{product.id} is "
                    f"priced in {price.currency}, the order in {items[0].price.currency}"
                ))

            items.append(OrderItem(
                id=None,
                product_id=product.id,  # type: ignore[arg-type]
                product_name=product.name,
                price=price,
            ))

        initial = OrderStatus.PAID if command.payment_verified else OrderStatus.PENDING
        order = Order.create(
            customer_id=customer.id,  # type: ignore[arg-type]
            items=items,
            shipping_address=shipping,
            billing_address=billing,
            initial_status=initial,
            created_at=now,
            reference=reference,
        )
        uow.orders.add(order)
        uow.record(StatusChangedEvent(
            order_id=order.id,  # type: ignore[arg-type]
            from_status=None,
            to_status=initial.value,
            timestamp=now,
            reason="order placed",
        ))
        return Ok(order)


def _merge_lines(lines: list[OrderLine]) -> Result[list[OrderLine], PlacementError]:
    """Sum quantities of repeated products, keeping first-appearance order."""
    if not lines:
        return Err(InvalidOrderRequest("Order must contain at least one item"))

    totals: dict[int, int] = {}
    for line in lines:
        quantity = line.quantity
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            return Err(InvalidQuantity(line.product_id, quantity))
        totals[line.product_id] = totals.get(line.product_id, 0) + quantity

    if len(totals) > MAX_LINE_ITEMS:
        return Err(InvalidOrderRequest(f"Maximum {MAX_LINE_ITEMS} items per order"))

    return Ok([OrderLine(product_id, quantity) for product_id, quantity in totals.items()])
