"""Product aggregate.

Products live independently of orders. They have their own lifecycle:
prices change, stock is received and sold, products are taken off sale.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from orderengine.domain.exceptions import ValidationError
from orderengine.domain.model.value_objects import Money


class ProductStatus(Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


@dataclass
class Product:
    """A product in the catalog together with its quantity on hand.

    ``stock_quantity`` is authoritative in storage; concurrent writers go
    through ``ProductRepository.decrement_stock`` / ``increment_stock`` and
    never assign it directly.
    """

    id: int | None
    name: str
    price: Money
    stock_quantity: int = 0
    status: ProductStatus = ProductStatus.ACTIVE

    def __post_init__(self) -> None:
        if self.stock_quantity < 0:
            raise ValidationError("Stock quantity cannot be negative")

    @property
    def is_active(self) -> bool:
        return self.status == ProductStatus.ACTIVE

    def update_price(self, new_price: Money) -> None:
        """Change the product price.

        This does NOT affect any existing orders because order items hold
        a frozen price snapshot.
        """
        if new_price.amount <= 0:
            raise ValidationError("Product price must be greater than zero")
        self.price = new_price

    def deactivate(self) -> None:
        self.status = ProductStatus.INACTIVE

    def activate(self) -> None:
        self.status = ProductStatus.ACTIVE
