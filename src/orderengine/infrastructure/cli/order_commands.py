"""CLI commands for the Order aggregate."""

from __future__ import annotations

import click

from orderengine.application.dto import (
    ItemTransitionCommand,
    OrderLine,
    PlaceOrderCommand,
    TransitionCommand,
    to_order_dto,
)
from orderengine.domain.exceptions import DomainException
from orderengine.domain.model.order import ItemStatus, OrderStatus
from orderengine.domain.result import Err
from orderengine.infrastructure.cli.common import (
    display_order,
    fail,
    get_container,
    parse_address,
)

ORDER_STATUSES = [s.value for s in OrderStatus]
ITEM_STATUSES = [s.value for s in ItemStatus]


def _parse_items(raw: str) -> list[OrderLine]:
    """Parse '1:3,2:5' (product ID : quantity) into OrderLine list."""
    lines: list[OrderLine] = []
    for pair in raw.split(","):
        pair = pair.strip()
        if ":" not in pair:
            raise click.BadParameter(
                f"Invalid item format '{pair}'. Expected 'ProductID:Quantity'."
            )
        id_str, qty_str = pair.rsplit(":", 1)
        try:
            product_id = int(id_str)
            qty = int(qty_str)
        except ValueError:
            raise click.BadParameter(
                f"Invalid item '{pair}'. Product ID and quantity must be integers."
            )
        lines.append(OrderLine(product_id=product_id, quantity=qty))
    return lines


@click.command("place")
@click.option("--customer", required=True, help="Customer email.")
@click.option("--items", required=True, help="Items as 'ProductID:Qty,ProductID:Qty'.")
@click.option("--ship-to", default=None, help="Shipping address (defaults to the customer's).")
@click.option("--bill-to", default=None, help="Billing address (defaults to shipping).")
@click.option("--paid", is_flag=True, default=False, help="Payment already verified.")
def order_place(
    customer: str,
    items: str,
    ship_to: str | None,
    bill_to: str | None,
    paid: bool,
) -> None:
    """Place a new order (reserves stock)."""
    command = PlaceOrderCommand(
        customer_email=customer,
        lines=_parse_items(items),
        shipping_address=parse_address(ship_to),
        billing_address=parse_address(bill_to),
        payment_verified=paid,
    )

    result = get_container().placement_coordinator().place_order(command)
    if isinstance(result, Err):
        raise fail(result.error)

    dto = to_order_dto(result.value)
    click.echo(f"Order #{dto.id} {dto.reference} placed  (status={dto.status})")
    click.echo()
    display_order(dto)


@click.command("show")
@click.option("--id", "order_id", type=int, default=None, help="Order ID to display.")
@click.option("--ref", "reference", default=None, help="Order reference to display.")
def order_show(order_id: int | None, reference: str | None) -> None:
    """Show details and status history of an existing order."""
    handler = get_container().show_order()

    try:
        dto = handler.handle(order_id=order_id, reference=reference)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    display_order(dto, history=True)


@click.command("list")
@click.option("--customer", default=None, help="Only orders of this customer email.")
@click.option(
    "--status",
    type=click.Choice(ORDER_STATUSES, case_sensitive=False),
    default=None,
    help="Only orders in this status.",
)
def order_list(customer: str | None, status: str | None) -> None:
    """List orders, oldest first."""
    handler = get_container().list_orders()

    try:
        orders = handler.handle(
            customer_email=customer,
            status=OrderStatus(status.upper()) if status else None,
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not orders:
        click.echo("No orders found.")
        return

    click.echo(f"{'ID':<6} {'Reference':<22} {'Customer':>8} {'Status':<15} {'Total':>14}")
    click.echo("-" * 69)
    for dto in orders:
        click.echo(
            f"{dto.id:<6} {dto.reference:<22} {dto.customer_id:>8} {dto.status:<15} {dto.total:>14}"
        )


@click.command("transition")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.option(
    "--to",
    "target",
    required=True,
    type=click.Choice(ORDER_STATUSES, case_sensitive=False),
    help="Target status.",
)
@click.option("--reason", default="", help="Why the order moves.")
def order_transition(order_id: int, target: str, reason: str) -> None:
    """Move an order to another status (cascades onto its items)."""
    command = TransitionCommand(
        order_id=order_id,
        target_status=OrderStatus(target.upper()),
        reason=reason,
    )

    result = get_container().transition_service().transition(command)
    if isinstance(result, Err):
        raise fail(result.error)

    click.echo(f"Order #{order_id} is now {result.value.status.value}.")


@click.command("item-transition")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.option("--item", "item_id", required=True, type=int, help="Item ID within the order.")
@click.option(
    "--to",
    "target",
    required=True,
    type=click.Choice(ITEM_STATUSES, case_sensitive=False),
    help="Target item status.",
)
@click.option("--reason", default="", help="Why the item moves.")
def order_item_transition(order_id: int, item_id: int, target: str, reason: str) -> None:
    """Move a single order item to another status."""
    command = ItemTransitionCommand(
        order_id=order_id,
        item_id=item_id,
        target_status=ItemStatus(target.upper()),
        reason=reason,
    )

    result = get_container().transition_service().transition_item(command)
    if isinstance(result, Err):
        raise fail(result.error)

    order = result.value
    item = order.find_item(item_id)
    click.echo(
        f"Item #{item_id} is now {item.status.value}; "  # type: ignore[union-attr]
        f"order #{order_id} is {order.status.value}."
    )


@click.command("next")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
def order_next(order_id: int) -> None:
    """Show the statuses an order can move to next."""
    handler = get_container().next_statuses()

    try:
        statuses = handler.handle(order_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not statuses:
        click.echo(f"Order #{order_id} is in a final status.")
        return
    click.echo(", ".join(statuses))
