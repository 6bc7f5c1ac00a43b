"""Application service: Update Product use case."""

from __future__ import annotations

from orderengine.domain.exceptions import EntityNotFoundError, ValidationError
from orderengine.domain.model.product import Product
from orderengine.domain.model.value_objects import Money
from orderengine.domain.repository.unit_of_work import UnitOfWorkFactory


class UpdateProductHandler:

    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def handle(
        self,
        product_id: int,
        new_price: str | None = None,
        active: bool | None = None,
    ) -> Product:
        """Update a product's price and/or whether it is on sale.

        This does NOT affect any existing orders; they captured a
        price snapshot at placement time.
        """
        if new_price is None and active is None:
            raise ValidationError("Nothing to update: give a price or a status")

        with self._uow_factory() as uow:
            product = uow.products.get_by_id(product_id)
            if product is None:
                raise EntityNotFoundError(f"Product #{product_id} not found")

            if new_price is not None:
                product.update_price(Money.of(new_price, product.price.currency))
            if active is True:
                product.activate()
            elif active is False:
                product.deactivate()

            uow.products.save(product)
            uow.commit()
        return product


class ListProductsHandler:

    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def handle(self) -> list[Product]:
        with self._uow_factory() as uow:
            return uow.products.list_all()
