"""Domain service: Price Freezer.

Captures a product's current unit price into the snapshot an order item
keeps for its whole life.
"""

from __future__ import annotations

from orderengine.domain.model.product import Product
from orderengine.domain.model.value_objects import FrozenPrice, Money, Quantity


class PriceFreezer:

    def freeze(self, product: Product, quantity: int) -> FrozenPrice:
        """Return an immutable (unit price, quantity, line total) snapshot.

        Copies the amount and currency into a new ``Money`` so the snapshot
        shares nothing with the product.  Raises ValidationError for a
        non-positive quantity.
        """
        unit_price = Money(product.price.amount, product.price.currency)
        return FrozenPrice(unit_price=unit_price, quantity=Quantity(quantity))
