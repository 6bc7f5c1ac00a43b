"""Order aggregate, the core of the domain.

The Order is an aggregate root that owns its items.  Its total is always
derived from the items' frozen prices, so it cannot drift from them.
Status changes are validated by the transition service against the state
machine; the aggregate only records them.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from orderengine.domain.exceptions import ValidationError
from orderengine.domain.model.value_objects import Address, FrozenPrice, Money


class OrderStatus(Enum):
    PENDING = "PENDING"
    PAYMENT_FAILED = "PAYMENT_FAILED"
    PAID = "PAID"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    COMPLETED = "COMPLETED"
    ON_HOLD = "ON_HOLD"
    CANCELLED = "CANCELLED"
    RETURNED = "RETURNED"
    REFUNDED = "REFUNDED"


class ItemStatus(Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    PARTIALLY_SHIPPED = "PARTIALLY_SHIPPED"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"
    RETURNED = "RETURNED"
    REFUNDED = "REFUNDED"


# Once an item reaches one of these its units are back on the shelf.
RELEASED_ITEM_STATUSES = frozenset(
    {ItemStatus.CANCELLED, ItemStatus.RETURNED, ItemStatus.REFUNDED}
)

MAX_LINE_ITEMS = 50


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_reference(created_at: datetime) -> str:
    """Human-facing order reference, e.g. ``ORD-20240131-9F2C41AB``."""
    return f"ORD-{created_at:%Y%m%d}-{uuid.uuid4().hex[:8].upper()}"


@dataclass
class OrderItem:
    """One product line of an order.

    ``price`` is a snapshot taken at placement; quantity and unit price
    never change afterwards.  Only ``status`` moves.
    """

    id: int | None
    product_id: int
    product_name: str
    price: FrozenPrice
    status: ItemStatus = ItemStatus.PENDING

    @property
    def unit_price(self) -> Money:
        return self.price.unit_price

    @property
    def quantity(self) -> int:
        return self.price.quantity.value

    @property
    def line_total(self) -> Money:
        return self.price.line_total

    @property
    def holds_stock(self) -> bool:
        """True while the item's units are still reserved against the product."""
        return self.status not in RELEASED_ITEM_STATUSES


@dataclass(frozen=True)
class StatusChange:
    from_status: OrderStatus | None
    to_status: OrderStatus
    reason: str
    changed_at: datetime


@dataclass
class Order:
    """Aggregate root for customer orders.

    Use ``Order.create()`` for new orders.  The ``__init__`` stays plain so
    repositories can reconstitute persisted orders without re-validating.
    """

    id: int | None
    reference: str
    customer_id: int
    items: list[OrderItem]
    shipping_address: Address
    billing_address: Address
    status: OrderStatus = OrderStatus.PENDING
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime | None = None
    status_history: list[StatusChange] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.updated_at is None:
            self.updated_at = self.created_at

    # --- Factory (used for NEW orders only) -----------------------------------

    @staticmethod
    def create(
        customer_id: int,
        items: list[OrderItem],
        shipping_address: Address,
        billing_address: Address,
        initial_status: OrderStatus = OrderStatus.PENDING,
        created_at: datetime | None = None,
        reference: str | None = None,
    ) -> Order:
        """Create a new order, enforcing all invariants."""
        if not items:
            raise ValidationError("Order must contain at least one item")

        if len(items) > MAX_LINE_ITEMS:
            raise ValidationError(f"Maximum {MAX_LINE_ITEMS} items per order")

        currencies = {item.price.currency for item in items}
        if len(currencies) > 1:
            raise ValidationError(
                f"All items must share one currency, got {', '.join(sorted(currencies))}"
            )

        if initial_status not in (OrderStatus.PENDING, OrderStatus.PAID):
            raise ValidationError(
                f"Orders start as PENDING or PAID, not {initial_status.value}"
            )

        created_at = created_at or _utcnow()
        order = Order(
            id=None,
            reference=reference or generate_reference(created_at),
            customer_id=customer_id,
            items=list(items),
            shipping_address=shipping_address,
            billing_address=billing_address,
            status=initial_status,
            created_at=created_at,
        )
        order.status_history.append(
            StatusChange(None, initial_status, "order placed", created_at)
        )
        return order

    # --- Status recording -----------------------------------------------------

    def record_status(self, new_status: OrderStatus, reason: str, at: datetime) -> StatusChange:
        """Set the status and append the change to the history.

        Legality is checked by the caller against the injected state machine.
        """
        change = StatusChange(self.status, new_status, reason, at)
        self.status = new_status
        self.updated_at = at
        self.status_history.append(change)
        return change

    # --- Computed properties --------------------------------------------------

    @property
    def currency(self) -> str:
        return self.items[0].price.currency

    @property
    def total_amount(self) -> Money:
        result = Money.zero(self.currency)
        for item in self.items:
            result = result + item.line_total
        return result

    @property
    def active_items(self) -> list[OrderItem]:
        """Items that were not cancelled."""
        return [item for item in self.items if item.status != ItemStatus.CANCELLED]

    @property
    def holds_stock(self) -> bool:
        return any(item.holds_stock for item in self.items)

    def find_item(self, item_id: int) -> OrderItem | None:
        for item in self.items:
            if item.id == item_id:
                return item
        return None
