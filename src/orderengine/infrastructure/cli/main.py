import click

from orderengine.domain.exceptions import DomainException
from orderengine.infrastructure.cli.customer_commands import customer_list, customer_register
from orderengine.infrastructure.cli.inventory_commands import (
    inventory_adjust,
    inventory_history,
    inventory_show,
)
from orderengine.infrastructure.cli.order_commands import (
    order_item_transition,
    order_list,
    order_next,
    order_place,
    order_show,
    order_transition,
)
from orderengine.infrastructure.cli.product_commands import (
    product_add,
    product_list,
    product_update,
)
from orderengine.infrastructure.config import load_settings
from orderengine.infrastructure.logging import add_context, configure_logging


@click.group()
@click.option("--verbose", "-v", is_flag=True, default=False, help="Log engine activity to stderr.")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """Order Lifecycle & Inventory Engine"""
    try:
        settings = load_settings()
    except DomainException as exc:
        raise click.ClickException(str(exc))
    configure_logging("INFO" if verbose else settings.log_level, settings.log_format)
    add_context(command=ctx.invoked_subcommand)


@cli.group()
def customer() -> None:
    """Manage customers."""


@cli.group()
def product() -> None:
    """Manage products."""


@cli.group()
def inventory() -> None:
    """Manage inventory."""


@cli.group()
def order() -> None:
    """Manage orders."""


# Register subcommands
customer.add_command(customer_register)
customer.add_command(customer_list)
product.add_command(product_add)
product.add_command(product_list)
product.add_command(product_update)
inventory.add_command(inventory_show)
inventory.add_command(inventory_adjust)
inventory.add_command(inventory_history)
order.add_command(order_place)
order.add_command(order_show)
order.add_command(order_list)
order.add_command(order_transition)
order.add_command(order_item_transition)
order.add_command(order_next)
