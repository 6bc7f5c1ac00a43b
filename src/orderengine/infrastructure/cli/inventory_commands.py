"""CLI commands for inventory management."""

from __future__ import annotations

import click

from orderengine.domain.exceptions import DomainException
from orderengine.domain.result import Err
from orderengine.infrastructure.cli.common import fail, get_container


@click.command("show")
@click.option("--low-stock", is_flag=True, default=False, help="Only products at or below the threshold.")
def inventory_show(low_stock: bool) -> None:
    """Show current stock levels."""
    lines = get_container().show_inventory().handle(low_stock_only=low_stock)

    if not lines:
        click.echo("No inventory records found.")
        return

    click.echo(f"{'ID':<6} {'Product':<20} {'On hand':>8}  {'Status':<8}")
    click.echo("-" * 48)
    for line in lines:
        flag = "  LOW" if line.low_stock else ""
        click.echo(
            f"{line.product_id:<6} {line.product_name:<20} {line.on_hand:>8}  {line.status:<8}{flag}"
        )


@click.command("adjust")
@click.option("--product", "product_id", required=True, type=int, help="Product ID.")
@click.option("--delta", required=True, type=int, help="Units to add (positive) or remove (negative).")
@click.option("--reason", required=True, help="Why stock changes (e.g. 'received PO-17').")
def inventory_adjust(product_id: int, delta: int, reason: str) -> None:
    """Add or remove stock for a product."""
    handler = get_container().adjust_stock()

    try:
        result = handler.handle(product_id=product_id, delta=delta, reason=reason)
    except DomainException as exc:
        raise click.ClickException(str(exc))
    if isinstance(result, Err):
        raise fail(result.error)

    product = result.value
    click.echo(f"Stock for '{product.name}' is now {product.stock_quantity}")


@click.command("history")
@click.option("--product", "product_id", required=True, type=int, help="Product ID.")
def inventory_history(product_id: int) -> None:
    """Show every stock movement of a product."""
    handler = get_container().stock_history()

    try:
        movements = handler.handle(product_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not movements:
        click.echo("No stock movements recorded.")
        return

    click.echo(f"{'When':<24} {'Delta':>7}  {'Order':<7} Reason")
    click.echo("-" * 60)
    for m in movements:
        order = f"#{m.order_id}" if m.order_id is not None else "-"
        click.echo(f"{m.timestamp:<24} {m.delta:>+7}  {order:<7} {m.reason}")
