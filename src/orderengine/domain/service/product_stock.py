"""Domain service: Product Stock.

The only gate through which quantity-on-hand moves.  Reservation is a single
conditional decrement in storage, so two concurrent orders for the same
product can never both take the last units.  Every adjustment lands in the
stock movement ledger and is queued as a ``StockAdjustedEvent`` on the
surrounding unit of work.
"""

from __future__ import annotations

from datetime import datetime, timezone

import structlog

from orderengine.domain.errors import InsufficientStock, ProductNotFound, StockError
from orderengine.domain.events import StockAdjustedEvent
from orderengine.domain.exceptions import InventoryInconsistencyError, ValidationError
from orderengine.domain.repository.unit_of_work import UnitOfWork
from orderengine.domain.result import Err, Ok, Result

logger = structlog.get_logger(__name__)


class ProductStock:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def reserve(
        self,
        product_id: int,
        quantity: int,
        reason: str = "order placement",
        order_id: int | None = None,
    ) -> Result[None, StockError]:
        """Take ``quantity`` units off the shelf, or leave stock untouched.

        Returns ``Err(InsufficientStock)`` naming the units still available,
        or ``Err(ProductNotFound)``.
        """
        if quantity <= 0:
            raise ValidationError("Reservation quantity must be positive")

        if self._uow.products.decrement_stock(product_id, quantity):
            self._record(product_id, -quantity, reason, order_id)
            return Ok(None)

        product = self._uow.products.get_by_id(product_id)
        if product is None:
            return Err(ProductNotFound(product_id))

        logger.info(
            "stock_reservation_refused",
            product_id=product_id,
            requested=quantity,
            available=product.stock_quantity,
        )
        return Err(InsufficientStock(product_id, quantity, product.stock_quantity))

    def release(
        self,
        product_id: int,
        quantity: int,
        reason: str,
        order_id: int | None = None,
    ) -> None:
        """Put ``quantity`` units back on the shelf (cancellation, return, restock)."""
        if quantity < 0:
            raise ValidationError("Release quantity cannot be negative")
        if quantity == 0:
            return

        if not self._uow.products.increment_stock(product_id, quantity):
            raise InventoryInconsistencyError(
                f"Cannot release {quantity} unit(s) of product #{product_id}: "
                f"product no longer exists"
            )
        self._record(product_id, quantity, reason, order_id)

    def _record(self, product_id: int, delta: int, reason: str, order_id: int | None) -> None:
        event = StockAdjustedEvent(
            product_id=product_id,
            delta=delta,
            reason=reason,
            timestamp=datetime.now(timezone.utc),
            order_id=order_id,
        )
        self._uow.movements.add(event)
        self._uow.record(event)
