"""Application services: inventory queries (stock levels, movement history)."""

from __future__ import annotations

from dataclasses import dataclass

from orderengine.domain.exceptions import EntityNotFoundError, ValidationError
from orderengine.domain.repository.unit_of_work import UnitOfWorkFactory

DEFAULT_LOW_STOCK_THRESHOLD = 10


@dataclass(frozen=True)
class InventoryLineDTO:
    product_id: int
    product_name: str
    status: str
    on_hand: int
    low_stock: bool


@dataclass(frozen=True)
class StockMovementDTO:
    delta: int
    reason: str
    order_id: int | None
    timestamp: str


class ShowInventoryHandler:

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        low_stock_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD,
    ) -> None:
        if low_stock_threshold < 0:
            raise ValidationError("Low stock threshold cannot be negative")
        self._uow_factory = uow_factory
        self._threshold = low_stock_threshold

    def handle(self, low_stock_only: bool = False) -> list[InventoryLineDTO]:
        with self._uow_factory() as uow:
            products = uow.products.list_all()
        lines = [
            InventoryLineDTO(
                product_id=p.id,  # type: ignore[arg-type]
                product_name=p.name,
                status=p.status.value,
                on_hand=p.stock_quantity,
                low_stock=p.stock_quantity <= self._threshold,
            )
            for p in products
        ]
        if low_stock_only:
            lines = [line for line in lines if line.low_stock]
        return lines


class ShowStockHistoryHandler:

    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def handle(self, product_id: int) -> list[StockMovementDTO]:
        with self._uow_factory() as uow:
            if uow.products.get_by_id(product_id) is None:
                raise EntityNotFoundError(f"Product #{product_id} not found")
            movements = uow.movements.list_for_product(product_id)
        return [
            StockMovementDTO(
                delta=m.delta,
                reason=m.reason,
                order_id=m.order_id,
                timestamp=m.timestamp.strftime("%Y-%m-%d %H:%M:%S UTC"),
            )
            for m in movements
        ]
