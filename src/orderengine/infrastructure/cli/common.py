"""Helpers shared by the CLI command modules."""

from __future__ import annotations

import click

from orderengine.application.dto import OrderDTO
from orderengine.domain.errors import EngineError
from orderengine.domain.exceptions import DomainException
from orderengine.domain.model.value_objects import Address
from orderengine.infrastructure.bootstrap import Container, build_container


def get_container() -> Container:
    """Build the engine once per CLI invocation, on first use."""
    root = click.get_current_context().find_root()
    if root.obj is None:
        try:
            root.obj = build_container()
        except DomainException as exc:
            raise click.ClickException(str(exc))
    return root.obj


def fail(error: EngineError) -> click.ClickException:
    return click.ClickException(error.message)


def parse_address(raw: str | None) -> Address | None:
    """Parse 'line1, city, state, postal code[, country]' into an Address."""
    if raw is None:
        return None
    parts = [part.strip() for part in raw.split(",")]
    if len(parts) == 4:
        parts.append("US")
    if len(parts) != 5:
        raise click.BadParameter(
            f"Invalid address '{raw}'. Expected 'line1, city, state, postal code[, country]'."
        )
    line1, city, state, postal_code, country = parts
    try:
        return Address(
            line1=line1,
            city=city,
            state=state,
            postal_code=postal_code,
            country=country,
        )
    except DomainException as exc:
        raise click.BadParameter(str(exc))


def display_order(dto: OrderDTO, history: bool = False) -> None:
    """Shared formatting for displaying an order."""
    click.echo(f"Order #{dto.id} {dto.reference}  (status={dto.status})")
    click.echo(f"Customer: #{dto.customer_id}")
    click.echo(f"Created:  {dto.created_at}")
    click.echo(f"Ship to:  {dto.shipping_address}")
    click.echo(f"Bill to:  {dto.billing_address}")
    click.echo()

    click.echo(
        f"  {'Item':<6} {'Product':<20} {'Qty':>5} {'Price':>14} {'Total':>14}  {'Status':<17}"
    )
    click.echo(f"  {'-'*81}")
    for item in dto.items:
        click.echo(
            f"  {item.id:<6} {item.product_name:<20} {item.quantity:>5} "
            f"{item.unit_price:>14} {item.line_total:>14}  {item.status:<17}"
        )
    click.echo(f"  {'-'*81}")
    click.echo(f"  {'Order Total':<33} {dto.total:>29}")

    if history:
        click.echo()
        click.echo("  History:")
        for change in dto.history:
            origin = change.from_status or "-"
            line = f"    {change.changed_at}  {origin} -> {change.to_status}"
            if change.reason:
                line = f"{line}  ({change.reason})"
            click.echo(line)
