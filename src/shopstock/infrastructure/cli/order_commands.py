"""CLI commands for the Order lifecycle."""

from __future__ import annotations

import click

from shopstock.application.cancel_order import CancelOrderHandler
from shopstock.application.confirm_payment import ConfirmPaymentHandler
from shopstock.application.create_order import CreateOrderHandler
from shopstock.application.dto import OrderDTO
from shopstock.application.payment_failed import PaymentFailedHandler
from shopstock.application.show_order import ShowOrderHandler
from shopstock.application.update_order_status import UpdateOrderStatusHandler
from shopstock.domain.exceptions import DomainException
from shopstock.domain.model.order import OrderStatus, PaymentMethod
from shopstock.infrastructure.bootstrap import (
    inventory_service,
    settings,
    stock_alert_notifier,
    unit_of_work,
)
from shopstock.infrastructure.cli.parsing import parse_item_specs


def _display_order(dto: OrderDTO) -> None:
    """Shared formatting for displaying an order."""
    click.echo(f"Order {dto.order_number} (#{dto.id})")
    click.echo(f"User:     {dto.user_id}")
    click.echo(f"Status:   {dto.order_status}   Payment: {dto.payment_status} ({dto.payment_method})")
    click.echo(f"Created:  {dto.created_at}")
    if dto.tracking_number:
        click.echo(f"Tracking: {dto.tracking_number}")
    click.echo()
    click.echo(f"  {'Product':<20} {'Qty':>5} {'Price':>10} {'Subtotal':>10}")
    click.echo(f"  {'-'*48}")
    for item in dto.items:
        click.echo(
            f"  {item.name:<20} {item.quantity:>5} {item.price:>10} {item.subtotal:>10}"
        )
    click.echo(f"  {'-'*48}")
    click.echo(f"  {'Order Total':<27} {dto.total_amount:>21}")
    click.echo()
    click.echo("  History:")
    for entry in dto.status_history:
        note = f"  ({entry.note})" if entry.note else ""
        click.echo(f"    {entry.timestamp}  {entry.status}{note}")


@click.command("create")
@click.option("--user", "user_id", required=True, help="Owning user ID.")
@click.option("--items", required=True, help="Items as 'ProductID:Qty,ProductID:Qty'.")
@click.option(
    "--payment",
    type=click.Choice([m.value for m in PaymentMethod]),
    default=PaymentMethod.CARD.value,
    show_default=True,
    help="Payment method.",
)
def order_create(user_id: str, items: str, payment: str) -> None:
    """Create an order and reserve its stock."""
    specs = parse_item_specs(items)
    handler = CreateOrderHandler(
        unit_of_work, inventory_service(), attempts=settings().order_attempts
    )

    try:
        dto = handler.handle(user_id, specs, PaymentMethod(payment))
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order {dto.order_number} created, stock reserved.")
    _display_order(dto)


@click.command("show")
@click.argument("order_ref")
def order_show(order_ref: str) -> None:
    """Show an order by ID or by ORD-... number."""
    try:
        dto = ShowOrderHandler(unit_of_work).handle(order_ref)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_order(dto)


@click.command("pay")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.option("--intent", default="", help="Payment gateway reference.")
def order_pay(order_id: int, intent: str) -> None:
    """Record a successful payment (deducts stock)."""
    handler = ConfirmPaymentHandler(unit_of_work, inventory_service(), stock_alert_notifier())

    try:
        result = handler.handle(order_id, payment_intent=intent)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if result.already_paid:
        click.echo(f"Order {result.order_number} was already paid; nothing to do.")
        return
    click.echo(f"Order {result.order_number} paid, stock deducted.")
    for alert in result.low_stock:
        click.echo(f"  low stock: {alert.product_name} ({alert.available_stock} left)")


@click.command("payment-failed")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
def order_payment_failed(order_id: int) -> None:
    """Record a failed payment (releases stock, cancels the order)."""
    handler = PaymentFailedHandler(unit_of_work, inventory_service())

    try:
        handler.handle(order_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order #{order_id} payment failed, stock released.")


@click.command("cancel")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to cancel.")
@click.option("--reason", default="", help="Note stored in the status history.")
def order_cancel(order_id: int, reason: str) -> None:
    """Cancel an order (releases or restores its stock)."""
    handler = CancelOrderHandler(unit_of_work, inventory_service())

    try:
        handler.handle(order_id, reason=reason)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order #{order_id} cancelled.")


@click.command("status")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.option(
    "--to",
    "new_status",
    required=True,
    type=click.Choice([s.value for s in OrderStatus]),
    help="Target status.",
)
@click.option("--note", default="", help="Note stored in the status history.")
@click.option("--tracking", default=None, help="Tracking number (when shipping).")
def order_status(order_id: int, new_status: str, note: str, tracking: str | None) -> None:
    """Move an order to a new status."""
    handler = UpdateOrderStatusHandler(unit_of_work, inventory_service())

    try:
        dto = handler.handle(order_id, OrderStatus(new_status), note, tracking)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order {dto.order_number} is now {dto.order_status}.")
