import click

from shopstock.infrastructure.bootstrap import settings
from shopstock.infrastructure.cli.inventory_commands import (
    inventory_check,
    inventory_low,
    inventory_show,
    inventory_sync,
)
from shopstock.infrastructure.cli.order_commands import (
    order_cancel,
    order_create,
    order_pay,
    order_payment_failed,
    order_show,
    order_status,
)
from shopstock.infrastructure.cli.product_commands import product_add, product_list
from shopstock.infrastructure.cli.reservation_commands import (
    reservations_expire,
    reservations_watch,
)
from shopstock.infrastructure.logging_config import configure_logging


@click.group()
def cli() -> None:
    """shopstock — storefront inventory reservation and reconciliation"""
    configure_logging(settings().log_level)


@cli.group()
def order() -> None:
    """Manage orders."""


@cli.group()
def product() -> None:
    """Manage products."""


@cli.group()
def inventory() -> None:
    """Inspect and reconcile stock."""


@cli.group()
def reservations() -> None:
    """Expire stale reservations."""


# Register subcommands
order.add_command(order_cancel)
order.add_command(order_create)
order.add_command(order_pay)
order.add_command(order_payment_failed)
order.add_command(order_show)
order.add_command(order_status)
product.add_command(product_add)
product.add_command(product_list)
inventory.add_command(inventory_check)
inventory.add_command(inventory_low)
inventory.add_command(inventory_show)
inventory.add_command(inventory_sync)
reservations.add_command(reservations_expire)
reservations.add_command(reservations_watch)
