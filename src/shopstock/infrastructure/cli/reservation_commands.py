"""CLI commands for the reservation expiration sweep."""

from __future__ import annotations

import time

import click

from shopstock.domain.exceptions import DomainException
from shopstock.infrastructure.bootstrap import (
    expiration_scheduler,
    reservation_expiry_service,
    settings,
)


@click.command("expire")
@click.option(
    "--timeout",
    type=click.IntRange(min=1),
    default=None,
    help="Minutes before an unpaid card order expires.",
)
def reservations_expire(timeout: int | None) -> None:
    """Run one expiration sweep now."""
    minutes = timeout if timeout is not None else settings().reservation_timeout_minutes

    try:
        report = reservation_expiry_service().release_expired_reservations(minutes)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    for order_number in report.cancelled_orders:
        click.echo(f"  cancelled {order_number}")
    for failure in report.failures:
        click.echo(f"  FAILED {failure.order_number}: {failure.reason}", err=True)
    click.echo(
        f"Released {report.released_count} reservation(s) "
        f"across {len(report.cancelled_orders)} order(s)."
    )


@click.command("watch")
@click.option(
    "--timeout",
    type=click.IntRange(min=1),
    default=None,
    help="Minutes before an unpaid card order expires.",
)
@click.option(
    "--interval",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Seconds between sweeps.",
)
def reservations_watch(timeout: int | None, interval: float | None) -> None:
    """Sweep expired reservations on a fixed interval until interrupted."""
    scheduler = expiration_scheduler(timeout_minutes=timeout, interval_seconds=interval)
    scheduler.start()
    click.echo("Watching for expired reservations (Ctrl-C to stop).")
    try:
        while scheduler.running:
            time.sleep(1)
    except KeyboardInterrupt:
        pass
    finally:
        scheduler.stop()
