import click

from storefront.infrastructure.cli.inventory_commands import (
    inventory_adjust,
    inventory_history,
    inventory_low_stock,
    inventory_report,
    inventory_set,
    inventory_show,
    inventory_validate,
)
from storefront.infrastructure.cli.order_commands import (
    order_cancel,
    order_create,
    order_show,
    order_status,
)
from storefront.infrastructure.cli.product_commands import product_add, product_list
from storefront.infrastructure.config import get_settings
from storefront.infrastructure.logging_config import configure_logging


@click.group()
def cli() -> None:
    """Storefront back office: orders, catalogue and stock."""
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_format)


@cli.group()
def order() -> None:
    """Manage orders."""


@cli.group()
def product() -> None:
    """Manage products."""


@cli.group()
def inventory() -> None:
    """Manage inventory."""


# Register subcommands
order.add_command(order_cancel)
order.add_command(order_create)
order.add_command(order_show)
order.add_command(order_status)
product.add_command(product_add)
product.add_command(product_list)
inventory.add_command(inventory_adjust)
inventory.add_command(inventory_history)
inventory.add_command(inventory_low_stock)
inventory.add_command(inventory_report)
inventory.add_command(inventory_set)
inventory.add_command(inventory_show)
inventory.add_command(inventory_validate)
