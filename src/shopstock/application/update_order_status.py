"""Application service: Update Order Status use case (admin action).

Plain transitions only touch the order.  A transition to ``cancelled``
carries a stock effect and is routed through the cancellation logic so
stock and status move together.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

from shopstock.application.cancel_order import cancel_order
from shopstock.application.dto import OrderDTO, to_order_dto
from shopstock.domain.exceptions import OrderNotFound
from shopstock.domain.model.order import OrderStatus, utc_now
from shopstock.domain.repository.unit_of_work import UnitOfWork
from shopstock.domain.service.inventory_service import InventoryService


class UpdateOrderStatusHandler:

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        inventory: InventoryService,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._uow_factory = uow_factory
        self._inventory = inventory
        self._clock = clock

    def handle(
        self,
        order_id: int,
        new_status: OrderStatus,
        note: str = "",
        tracking_number: str | None = None,
    ) -> OrderDTO:
        now = self._clock()
        with self._uow_factory() as uow:
            order = uow.orders.get_by_id(order_id)
            if order is None:
                raise OrderNotFound(f"Order #{order_id} not found")

            if new_status == OrderStatus.CANCELLED:
                cancel_order(uow, self._inventory, order, note or "Cancelled by admin", now)
            else:
                if new_status == OrderStatus.SHIPPED and tracking_number:
                    order.add_tracking_number(tracking_number, now, note)
                order.update_status(new_status, note, now)
                uow.orders.save(order)
            uow.commit()

        return to_order_dto(order)
