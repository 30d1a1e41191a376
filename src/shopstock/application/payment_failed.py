"""Application service: Payment Failed use case (payment-failure webhook).

A failed card payment ends the order: the reservation is released and
the order cancelled, so the units are offered to other customers right
away instead of waiting for the expiration sweep.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from shopstock.domain.exceptions import OrderNotFound
from shopstock.domain.model.order import OrderStatus, utc_now
from shopstock.domain.repository.unit_of_work import UnitOfWork
from shopstock.domain.service.inventory_service import InventoryService

logger = logging.getLogger(__name__)

PAYMENT_FAILED_NOTE = "Payment failed"


class PaymentFailedHandler:

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        inventory: InventoryService,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._uow_factory = uow_factory
        self._inventory = inventory
        self._clock = clock

    def handle(self, order_id: int) -> None:
        with self._uow_factory() as uow:
            order = uow.orders.get_by_id(order_id)
            if order is None:
                raise OrderNotFound(f"Order #{order_id} not found")

            if order.order_status == OrderStatus.CANCELLED:
                logger.info("Order %s already cancelled", order.order_number)
                return

            order.mark_payment_failed()
            self._inventory.release_stock_for_order(order.stock_lines(), uow=uow)
            order.update_status(OrderStatus.CANCELLED, PAYMENT_FAILED_NOTE, self._clock())
            uow.orders.save(order)
            uow.commit()

        logger.info("Payment failed for order %s, stock released", order.order_number)
