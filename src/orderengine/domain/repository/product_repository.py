"""Abstract repository for Product aggregate.

Defined in the domain layer so the domain never depends on
infrastructure. Concrete implementations (SQL, in-memory)
live in the infrastructure layer and the test fakes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from orderengine.domain.model.product import Product


class ProductRepository(ABC):

    @abstractmethod
    def get_by_id(self, product_id: int) -> Product | None:
        """Return a product by its ID, or None if not found."""

    @abstractmethod
    def get_by_name(self, name: str) -> Product | None:
        """Return a product by its name (case-insensitive), or None."""

    @abstractmethod
    def list_all(self) -> list[Product]:
        """Return every product in the catalog, ordered by ID."""

    @abstractmethod
    def add(self, product: Product) -> None:
        """Persist a new product and assign its ID."""

    @abstractmethod
    def save(self, product: Product) -> None:
        """Persist catalogue attributes (name, price, status).

        Never writes ``stock_quantity``; stock only moves through the two
        methods below.
        """

    @abstractmethod
    def decrement_stock(self, product_id: int, quantity: int) -> bool:
        """Atomically subtract ``quantity`` if at least that much is on hand.

        Must be a single indivisible check-and-decrement with respect to
        every other writer of the same product.  Returns False, leaving
        stock untouched, when the product is missing or short.
        """

    @abstractmethod
    def increment_stock(self, product_id: int, quantity: int) -> bool:
        """Atomically add ``quantity``.  Returns False if the product is missing."""
