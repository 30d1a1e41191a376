"""Domain service: expire stale card-order reservations.

A card order that stays pending and unpaid past the timeout is cancelled
and its reservation released.  COD orders are never touched: they stay
pending until delivery.

The sweep is one transaction; each order is handled inside its own
savepoint so one bad order is logged and skipped without undoing the
others.  Re-running the sweep is harmless because cancelled orders no
longer match the query.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from shopstock.domain.exceptions import DomainException, ValidationError
from shopstock.domain.model.order import Order, OrderStatus, utc_now
from shopstock.domain.repository.unit_of_work import UnitOfWork
from shopstock.domain.service.inventory_service import InventoryService

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MINUTES = 5
EXPIRY_NOTE = "Payment timeout - stock reservation expired"


@dataclass(frozen=True)
class ExpiredReservation:
    order_id: int
    order_number: str
    product_id: str
    product_name: str
    quantity: int


@dataclass(frozen=True)
class ExpiryFailure:
    order_number: str
    reason: str


@dataclass
class ExpirationReport:
    released: list[ExpiredReservation] = field(default_factory=list)
    cancelled_orders: list[str] = field(default_factory=list)
    failures: list[ExpiryFailure] = field(default_factory=list)

    @property
    def released_count(self) -> int:
        return len(self.released)


class ReservationExpiryService:

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        inventory: InventoryService,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._uow_factory = uow_factory
        self._inventory = inventory
        self._clock = clock

    def release_expired_reservations(
        self, timeout_minutes: int = DEFAULT_TIMEOUT_MINUTES
    ) -> ExpirationReport:
        if timeout_minutes <= 0:
            raise ValidationError(
                f"Reservation timeout must be positive, got {timeout_minutes} minutes"
            )
        now = self._clock()
        cutoff = now - timedelta(minutes=timeout_minutes)
        report = ExpirationReport()

        with self._uow_factory() as uow:
            for order in uow.orders.find_expired_card_orders(cutoff):
                try:
                    with uow.savepoint():
                        released = self._expire(uow, order, now)
                except DomainException as exc:
                    logger.warning(
                        "Could not expire order %s: %s", order.order_number, exc
                    )
                    report.failures.append(ExpiryFailure(order.order_number, str(exc)))
                    continue
                report.released.extend(released)
                report.cancelled_orders.append(order.order_number)
            uow.commit()

        if report.cancelled_orders or report.failures:
            logger.info(
                "Expired %d order(s), released %d reservation(s), %d failure(s)",
                len(report.cancelled_orders),
                report.released_count,
                len(report.failures),
            )
        return report

    def _expire(
        self, uow: UnitOfWork, order: Order, now: datetime
    ) -> list[ExpiredReservation]:
        receipts = self._inventory.release_stock_for_order(order.stock_lines(), uow=uow)
        order.update_status(OrderStatus.CANCELLED, EXPIRY_NOTE, now)
        uow.orders.save(order)
        return [
            ExpiredReservation(
                order_id=order.id,  # type: ignore[arg-type]
                order_number=order.order_number,
                product_id=receipt.product_id,
                product_name=receipt.product_name,
                quantity=receipt.quantity,
            )
            for receipt in receipts
            if receipt.quantity > 0
        ]
