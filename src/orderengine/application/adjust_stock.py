"""Application service: Adjust Stock use case (receiving, write-offs, counts).

Positive deltas put units on the shelf, negative deltas take them off
through the same conditional decrement orders use, so an adjustment can
never drive stock below zero or steal units an order just reserved.
"""

from __future__ import annotations

from orderengine.application.transactions import run_in_transaction
from orderengine.domain.errors import StockError
from orderengine.domain.events import EventPublisher
from orderengine.domain.exceptions import EntityNotFoundError, ValidationError
from orderengine.domain.model.product import Product
from orderengine.domain.repository.unit_of_work import UnitOfWork, UnitOfWorkFactory
from orderengine.domain.result import Err, Ok, Result
from orderengine.domain.service.product_stock import ProductStock


class AdjustStockHandler:

    def __init__(self, uow_factory: UnitOfWorkFactory, publisher: EventPublisher) -> None:
        self._uow_factory = uow_factory
        self._publisher = publisher

    def handle(self, product_id: int, delta: int, reason: str) -> Result[Product, StockError]:
        if delta == 0:
            raise ValidationError("Stock adjustment must be non-zero")
        if not reason or not reason.strip():
            raise ValidationError("A reason is required for stock adjustments")

        def adjust(uow: UnitOfWork) -> Result[Product, StockError]:
            if uow.products.get_by_id(product_id) is None:
                raise EntityNotFoundError(f"Product #{product_id} not found")
            stock = ProductStock(uow)
            if delta > 0:
                stock.release(product_id, delta, reason=reason.strip())
            else:
                reserved = stock.reserve(product_id, -delta, reason=reason.strip())
                if isinstance(reserved, Err):
                    return reserved
            return Ok(uow.products.get_by_id(product_id))  # type: ignore[arg-type]

        return run_in_transaction(
            self._uow_factory,
            self._publisher,
            "adjust stock",
            adjust,
            product_id=product_id,
        )
