"""Commands and Data Transfer Objects: plain containers that cross layer boundaries.

Commands carry validated input from the outer surface (CLI, HTTP) into the
engine.  DTOs carry data back out without exposing domain internals.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from orderengine.domain.model.order import ItemStatus, Order, OrderStatus
from orderengine.domain.model.value_objects import Address

# --- Inbound commands --------------------------------------------------------


@dataclass(frozen=True)
class OrderLine:
    """Input: what the customer asked for (product ID + quantity)."""

    product_id: int
    quantity: int


@dataclass(frozen=True)
class PlaceOrderCommand:
    customer_email: str
    lines: list[OrderLine]
    shipping_address: Address | None = None
    billing_address: Address | None = None
    # Set when the payment was already verified upstream; the order then
    # starts as PAID instead of PENDING.
    payment_verified: bool = False


@dataclass(frozen=True)
class TransitionCommand:
    order_id: int
    target_status: OrderStatus
    reason: str = ""


@dataclass(frozen=True)
class ItemTransitionCommand:
    order_id: int
    item_id: int
    target_status: ItemStatus
    reason: str = ""


# --- Outbound DTOs -----------------------------------------------------------


@dataclass(frozen=True)
class OrderItemDTO:
    """Output: a single order item as displayed to the user."""

    id: int
    product_id: int
    product_name: str
    quantity: int
    unit_price: str  # formatted, e.g. "15.00 USD"
    line_total: str
    status: str


@dataclass(frozen=True)
class StatusChangeDTO:
    from_status: str | None
    to_status: str
    reason: str
    changed_at: str


@dataclass(frozen=True)
class OrderDTO:
    """Output: a complete order as displayed to the user."""

    id: int
    reference: str
    customer_id: int
    status: str
    items: list[OrderItemDTO]
    total: str
    currency: str
    shipping_address: str
    billing_address: str
    created_at: str
    history: list[StatusChangeDTO] = field(default_factory=list)


def to_order_dto(order: Order) -> OrderDTO:
    return OrderDTO(
        id=order.id,  # type: ignore[arg-type]
        reference=order.reference,
        customer_id=order.customer_id,
        status=order.status.value,
        items=[
            OrderItemDTO(
                id=item.id,  # type: ignore[arg-type]
                product_id=item.product_id,
                product_name=item.product_name,
                quantity=item.quantity,
                unit_price=str(item.unit_price),
                line_total=str(item.line_total),
                status=item.status.value,
            )
            for item in order.items
        ],
        total=str(order.total_amount),
        currency=order.currency,
        shipping_address=str(order.shipping_address),
        billing_address=str(order.billing_address),
        created_at=order.created_at.strftime("%Y-%m-%d %H:%M UTC"),
        history=[
            StatusChangeDTO(
                from_status=change.from_status.value if change.from_status else None,
                to_status=change.to_status.value,
                reason=change.reason,
                changed_at=change.changed_at.strftime("%Y-%m-%d %H:%M:%S UTC"),
            )
            for change in order.status_history
        ],
    )
