"""CLI commands for the Product catalog."""

from __future__ import annotations

import click

from shopstock.application.add_product import AddProductHandler
from shopstock.domain.exceptions import DomainException
from shopstock.domain.model.product import DEFAULT_LOW_STOCK_THRESHOLD
from shopstock.infrastructure.bootstrap import unit_of_work


@click.command("add")
@click.option("--name", required=True, help="Product name.")
@click.option("--price", required=True, help="Price (e.g. 15.00).")
@click.option("--stock", default=0, show_default=True, type=int, help="Opening stock.")
@click.option(
    "--threshold",
    default=DEFAULT_LOW_STOCK_THRESHOLD,
    show_default=True,
    type=int,
    help="Low-stock alert threshold.",
)
def product_add(name: str, price: str, stock: int, threshold: int) -> None:
    """Add a new product to the catalog."""
    handler = AddProductHandler(unit_of_work)

    try:
        product = handler.handle(
            name=name, price=price, stock=stock, low_stock_threshold=threshold
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(
        f"Product #{product.id} '{product.name}' added at {product.price} "
        f"with {product.stock} in stock"
    )


@click.command("list")
def product_list() -> None:
    """List all products in the catalog."""
    with unit_of_work() as uow:
        products = uow.products.list_all()

    if not products:
        click.echo("No products found.")
        return

    click.echo(f"{'ID':<6} {'Name':<20} {'Price':>10} {'Stock':>8}")
    click.echo("-" * 47)
    for p in products:
        click.echo(f"{p.id:<6} {p.name:<20} {str(p.price):>10} {p.stock:>8}")
