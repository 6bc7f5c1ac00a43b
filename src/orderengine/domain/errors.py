"""Error values returned (not raised) by engine operations.

Each error carries enough context for a caller to render a precise message.
``PlacementError``, ``TransitionError`` and ``StockError`` are the closed
sets an operation can return.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import ClassVar, Union


class EngineError(ABC):
    """Common surface of every error value."""

    kind: ClassVar[str] = "error"

    @property
    @abstractmethod
    def message(self) -> str:
        """Human-readable description for the caller."""


# --- Validation errors (nothing was mutated) --------------------------------


@dataclass(frozen=True)
class InvalidQuantity(EngineError):
    kind: ClassVar[str] = "invalid_quantity"

    product_id: int
    quantity: int

    @property
    def message(self) -> str:
        return (
            f"Quantity for product #{self.product_id} must be a positive "
            f"integer, got {self.quantity!r}"
        )


@dataclass(frozen=True)
class InvalidOrderRequest(EngineError):
    kind: ClassVar[str] = "invalid_order_request"

    reason: str

    @property
    def message(self) -> str:
        return self.reason


@dataclass(frozen=True)
class CustomerNotFound(EngineError):
    kind: ClassVar[str] = "customer_not_found"

    email: str

    @property
    def message(self) -> str:
        return f"Customer not found: '{self.email}'"


@dataclass(frozen=True)
class CustomerInactive(EngineError):
    kind: ClassVar[str] = "customer_inactive"

    email: str

    @property
    def message(self) -> str:
        return f"Customer '{self.email}' is not active"


@dataclass(frozen=True)
class ProductNotFound(EngineError):
    kind: ClassVar[str] = "product_not_found"

    product_id: int

    @property
    def message(self) -> str:
        return f"Product #{self.product_id} not found"


@dataclass(frozen=True)
class ProductUnavailable(EngineError):
    kind: ClassVar[str] = "product_unavailable"

    product_id: int

    @property
    def message(self) -> str:
        return f"Product #{self.product_id} is not available for sale"


@dataclass(frozen=True)
class OrderNotFound(EngineError):
    kind: ClassVar[str] = "order_not_found"

    order_id: int

    @property
    def message(self) -> str:
        return f"Order #{self.order_id} not found"


@dataclass(frozen=True)
class OrderItemNotFound(EngineError):
    kind: ClassVar[str] = "order_item_not_found"

    order_id: int
    item_id: int

    @property
    def message(self) -> str:
        return f"Item #{self.item_id} not found in order #{self.order_id}"


# --- Business-rule conflicts (work done in the call is rolled back) ---------


@dataclass(frozen=True)
class InsufficientStock(EngineError):
    kind: ClassVar[str] = "insufficient_stock"

    product_id: int
    requested: int
    available: int

    @property
    def message(self) -> str:
        return (
            f"Insufficient stock for product #{self.product_id} "
            f"(requested {self.requested}, available {self.available})"
        )


@dataclass(frozen=True)
class IllegalTransition(EngineError):
    kind: ClassVar[str] = "illegal_transition"

    from_status: str
    to_status: str
    item_id: int | None = None
    detail: str | None = None

    @property
    def message(self) -> str:
        subject = f"item #{self.item_id}" if self.item_id is not None else "order"
        text = f"Cannot move {subject} from {self.from_status} to {self.to_status}"
        if self.detail:
            text = f"{text}: {self.detail}"
        return text


# --- Infrastructure failures -----------------------------------------------


@dataclass(frozen=True)
class PersistenceFailure(EngineError):
    kind: ClassVar[str] = "persistence_failure"

    operation: str
    detail: str

    @property
    def message(self) -> str:
        return f"Could not {self.operation}: {self.detail}"


StockError = Union[InsufficientStock, ProductNotFound]

PlacementError = Union[
    InvalidQuantity,
    InvalidOrderRequest,
    CustomerNotFound,
    CustomerInactive,
    ProductNotFound,
    ProductUnavailable,
    InsufficientStock,
    PersistenceFailure,
]

TransitionError = Union[
    OrderNotFound,
    OrderItemNotFound,
    IllegalTransition,
    PersistenceFailure,
]
