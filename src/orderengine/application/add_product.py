"""Application service: Add Product use case."""

from __future__ import annotations

from datetime import datetime, timezone

from orderengine.domain.events import StockAdjustedEvent
from orderengine.domain.exceptions import ValidationError
from orderengine.domain.model.product import Product
from orderengine.domain.model.value_objects import Money
from orderengine.domain.repository.unit_of_work import UnitOfWorkFactory


class AddProductHandler:

    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def handle(
        self,
        name: str,
        price: str,
        stock: int = 0,
        currency: str = "USD",
    ) -> Product:
        """Add a new product to the catalog with its opening stock."""
        if not name or not name.strip():
            raise ValidationError("Product name is required")

        money = Money.of(price, currency)
        if money.amount <= 0:
            raise ValidationError("Product price must be greater than zero")

        with self._uow_factory() as uow:
            if uow.products.get_by_name(name.strip()) is not None:
                raise ValidationError(f"Product '{name.strip()}' already exists")

            product = Product(id=None, name=name.strip(), price=money, stock_quantity=stock)
            uow.products.add(product)
            if stock:
                # Opening stock is the first line of the product's ledger.
                uow.movements.add(StockAdjustedEvent(
                    product_id=product.id,  # type: ignore[arg-type]
                    delta=stock,
                    reason="initial stock",
                    timestamp=datetime.now(timezone.utc),
                ))
            uow.commit()
        return product
