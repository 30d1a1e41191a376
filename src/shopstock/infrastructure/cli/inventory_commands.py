"""CLI commands for stock inspection and reconciliation."""

from __future__ import annotations

import click

from shopstock.application.show_inventory import ShowInventoryHandler, to_inventory_line
from shopstock.domain.exceptions import DomainException
from shopstock.domain.service.reconciliation import SyncResult
from shopstock.infrastructure.bootstrap import (
    inventory_service,
    reconciliation_service,
    unit_of_work,
)
from shopstock.infrastructure.cli.parsing import parse_stock_lines


def _print_lines(lines) -> None:
    click.echo(
        f"{'ID':<6} {'Product':<20} {'Stock':>8} {'Reserved':>10} {'Available':>10}  Flags"
    )
    click.echo("-" * 64)
    for line in lines:
        flags = "OUT" if not line.in_stock else ("LOW" if line.low_stock else "")
        click.echo(
            f"{line.product_id:<6} {line.name:<20} {line.stock:>8} "
            f"{line.reserved:>10} {line.available:>10}  {flags}"
        )


@click.command("show")
def inventory_show() -> None:
    """Show current stock levels."""
    lines = ShowInventoryHandler(unit_of_work).handle()

    if not lines:
        click.echo("No products found.")
        return
    _print_lines(lines)


@click.command("low")
def inventory_low() -> None:
    """List products that are low on stock or sold out."""
    svc = inventory_service()
    products = svc.get_out_of_stock_products() + svc.get_low_stock_products()

    if not products:
        click.echo("All products are comfortably stocked.")
        return
    _print_lines([to_inventory_line(p) for p in products])


@click.command("check")
@click.option("--items", required=True, help="Items as 'ProductID:Qty,ProductID:Qty'.")
def inventory_check(items: str) -> None:
    """Check whether the given quantities could be reserved right now."""
    report = inventory_service().check_stock_availability(parse_stock_lines(items))

    for result in report.results:
        mark = "ok " if result.available else "NO "
        click.echo(
            f"  {mark} {result.product_name or result.product_id:<20} "
            f"x{result.requested_quantity:<5} {result.reason}"
        )
    click.echo("All available." if report.all_available else "Some items are unavailable.")


def _print_sync(result: SyncResult) -> None:
    click.echo(f"{result.product_name}: {result.message}")


@click.command("sync")
@click.option("--product", "product_id", default=None, help="Product ID to reconcile.")
@click.option("--all", "sync_all", is_flag=True, default=False, help="Reconcile every product.")
def inventory_sync(product_id: str | None, sync_all: bool) -> None:
    """Recompute reserved stock from the open orders."""
    if not product_id and not sync_all:
        raise click.ClickException("Give --product ID or --all")

    svc = reconciliation_service()
    if sync_all:
        results, failures = svc.sync_all()
        for result in results:
            _print_sync(result)
        for failure in failures:
            click.echo(f"{failure.product_id}: FAILED ({failure.reason})", err=True)
        if failures:
            raise click.ClickException(f"{len(failures)} product(s) could not be synced")
        return

    try:
        result = svc.sync_inventory(product_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))
    _print_sync(result)
