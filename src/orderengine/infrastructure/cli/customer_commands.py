"""CLI commands for the Customer aggregate."""

from __future__ import annotations

import click

from orderengine.domain.exceptions import DomainException
from orderengine.infrastructure.cli.common import get_container, parse_address


@click.command("register")
@click.option("--email", required=True, help="Customer email (unique).")
@click.option("--name", required=True, help="Full name.")
@click.option("--phone", default="", help="Phone number.")
@click.option("--address", default=None, help="Default address 'line1, city, state, postal[, country]'.")
def customer_register(email: str, name: str, phone: str, address: str | None) -> None:
    """Register a new customer."""
    handler = get_container().register_customer()

    try:
        customer = handler.handle(
            email=email,
            name=name,
            phone=phone,
            default_address=parse_address(address),
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Customer #{customer.id} '{customer.email}' registered")


@click.command("list")
def customer_list() -> None:
    """List all customers."""
    customers = get_container().list_customers().handle()

    if not customers:
        click.echo("No customers found.")
        return

    click.echo(f"{'ID':<6} {'Email':<30} {'Name':<20} {'Status':<10}")
    click.echo("-" * 68)
    for c in customers:
        click.echo(f"{c.id:<6} {c.email:<30} {c.name:<20} {c.status.value:<10}")
