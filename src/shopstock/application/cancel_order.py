"""Application service: Cancel Order use case.

Unpaid orders give their reservation back (release); paid orders already
had their stock deducted, so the units are restored instead.  The stock
change and the status change share one transaction.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from shopstock.domain.exceptions import OrderNotFound, ValidationError
from shopstock.domain.model.order import Order, OrderStatus, utc_now
from shopstock.domain.repository.unit_of_work import UnitOfWork
from shopstock.domain.service.inventory_service import InventoryService, StockReceipt

logger = logging.getLogger(__name__)

DEFAULT_CANCEL_NOTE = "Cancelled by user"


def cancel_order(
    uow: UnitOfWork,
    inventory: InventoryService,
    order: Order,
    note: str,
    now: datetime,
) -> list[StockReceipt]:
    """Apply the stock effect of a cancellation and cancel *order*.

    Runs inside the caller's unit of work; the caller commits.
    """
    if not order.can_be_cancelled():
        raise ValidationError(
            f"Order cannot be cancelled. Current status: {order.order_status.value}"
        )

    lines = order.stock_lines()
    if order.is_paid:
        receipts = inventory.restore_stock_for_order(lines, uow=uow)
    else:
        receipts = inventory.release_stock_for_order(lines, uow=uow)

    order.update_status(OrderStatus.CANCELLED, note, now)
    uow.orders.save(order)
    return receipts


class CancelOrderHandler:

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        inventory: InventoryService,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._uow_factory = uow_factory
        self._inventory = inventory
        self._clock = clock

    def handle(self, order_id: int, reason: str = "") -> list[StockReceipt]:
        with self._uow_factory() as uow:
            order = uow.orders.get_by_id(order_id)
            if order is None:
                raise OrderNotFound(f"Order #{order_id} not found")

            was_paid = order.is_paid
            receipts = cancel_order(
                uow, self._inventory, order, reason or DEFAULT_CANCEL_NOTE, self._clock()
            )
            uow.commit()

        logger.info(
            "Order %s cancelled, stock %s",
            order.order_number, "restored" if was_paid else "released",
        )
        return receipts
