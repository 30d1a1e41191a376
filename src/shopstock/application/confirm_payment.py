"""Application service: Confirm Payment use case (payment-success webhook).

Marks the order paid and deducts its stock in one transaction.  Payment
gateways redeliver webhooks, so an order that is already paid is
acknowledged without touching stock again.  Two deliveries racing each
other collide on the order's version and only one commits.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

from shopstock.application.notifications import StockAlertNotifier
from shopstock.domain.exceptions import OrderNotFound, ValidationError
from shopstock.domain.model.order import OrderStatus, utc_now
from shopstock.domain.repository.unit_of_work import UnitOfWork
from shopstock.domain.service.inventory_service import InventoryService, LowStockAlert

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaymentConfirmation:
    order_number: str
    already_paid: bool
    low_stock: list[LowStockAlert] = field(default_factory=list)


class ConfirmPaymentHandler:

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        inventory: InventoryService,
        notifier: StockAlertNotifier,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._uow_factory = uow_factory
        self._inventory = inventory
        self._notifier = notifier
        self._clock = clock

    def handle(self, order_id: int, payment_intent: str = "") -> PaymentConfirmation:
        with self._uow_factory() as uow:
            order = uow.orders.get_by_id(order_id)
            if order is None:
                raise OrderNotFound(f"Order #{order_id} not found")

            if order.is_paid:
                logger.info(
                    "Order %s already paid, ignoring duplicate confirmation",
                    order.order_number,
                )
                return PaymentConfirmation(order.order_number, already_paid=True)

            if order.order_status == OrderStatus.CANCELLED:
                raise ValidationError(
                    f"Order {order.order_number} is cancelled; "
                    f"the payment must be refunded instead"
                )

            order.mark_as_paid(payment_intent, self._clock())
            alerts = self._inventory.deduct_stock_for_order(order.stock_lines(), uow=uow)
            uow.orders.save(order)
            uow.commit()

        logger.info("Payment confirmed for order %s", order.order_number)
        for alert in alerts:
            self._notifier.notify_low_stock(alert)
        return PaymentConfirmation(order.order_number, already_paid=False, low_stock=alerts)
