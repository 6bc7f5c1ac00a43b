"""CLI commands for the Product aggregate."""

from __future__ import annotations

import click

from orderengine.domain.exceptions import DomainException
from orderengine.infrastructure.cli.common import get_container


@click.command("add")
@click.option("--name", required=True, help="Product name.")
@click.option("--price", required=True, help="Price (e.g. 15.00).")
@click.option("--stock", default=0, type=click.IntRange(min=0), help="Opening stock.")
@click.option("--currency", default="USD", show_default=True, help="ISO currency code.")
def product_add(name: str, price: str, stock: int, currency: str) -> None:
    """Add a new product to the catalog."""
    handler = get_container().add_product()

    try:
        product = handler.handle(name=name, price=price, stock=stock, currency=currency.upper())
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(
        f"Product #{product.id} '{product.name}' added at {product.price} "
        f"({product.stock_quantity} in stock)"
    )


@click.command("list")
def product_list() -> None:
    """List all products in the catalog."""
    products = get_container().list_products().handle()

    if not products:
        click.echo("No products found.")
        return

    click.echo(f"{'ID':<6} {'Name':<20} {'Price':>14} {'Stock':>7}  {'Status':<8}")
    click.echo("-" * 60)
    for p in products:
        click.echo(
            f"{p.id:<6} {p.name:<20} {str(p.price):>14} {p.stock_quantity:>7}  {p.status.value:<8}"
        )


@click.command("update")
@click.option("--id", "product_id", required=True, type=int, help="Product ID.")
@click.option("--price", default=None, help="New price (e.g. 29.99).")
@click.option("--activate/--deactivate", "active", default=None, help="Put on or take off sale.")
def product_update(product_id: int, price: str | None, active: bool | None) -> None:
    """Update a product's price or sale status (existing orders keep their prices)."""
    handler = get_container().update_product()

    try:
        product = handler.handle(product_id=product_id, new_price=price, active=active)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Product #{product.id} now {product.price}, {product.status.value}")
