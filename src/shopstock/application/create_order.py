"""Application service: Create Order use case (checkout).

Flow:
1. Cheap availability precheck, outside any write transaction, so an
   obviously unfillable cart is rejected fast.
2. In ONE unit of work: snapshot products into line items, allocate the
   day's next order number, reserve stock, insert the order.
3. If a concurrent writer wins a race (product version or order number),
   the whole step 2 is re-run from fresh reads.

On any failure nothing is persisted: no order, no reservation.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from shopstock.application.dto import OrderDTO, OrderItemSpec, to_order_dto
from shopstock.application.retry import DEFAULT_ATTEMPTS, retry_on_conflict
from shopstock.domain.exceptions import (
    ProductNotFound,
    StockReservationFailed,
    ValidationError,
)
from shopstock.domain.model.order import (
    Order,
    OrderLineItem,
    PaymentMethod,
    order_number_prefix,
    utc_now,
)
from shopstock.domain.model.value_objects import Quantity, StockLine
from shopstock.domain.repository.unit_of_work import UnitOfWork
from shopstock.domain.service.inventory_service import InventoryService

logger = logging.getLogger(__name__)


class CreateOrderHandler:

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        inventory: InventoryService,
        clock: Callable[[], datetime] = utc_now,
        attempts: int = DEFAULT_ATTEMPTS,
    ) -> None:
        self._uow_factory = uow_factory
        self._inventory = inventory
        self._clock = clock
        self._attempts = attempts

    def handle(
        self,
        user_id: str,
        item_specs: list[OrderItemSpec],
        payment_method: PaymentMethod = PaymentMethod.CARD,
    ) -> OrderDTO:
        if not item_specs:
            raise ValidationError("Order must contain at least one item")

        lines = [StockLine(spec.product_id, spec.quantity) for spec in item_specs]
        report = retry_on_conflict(
            lambda: self._inventory.check_stock_availability(lines),
            attempts=self._attempts,
        )
        if not report.all_available:
            reasons = "; ".join(
                f"{r.product_name or r.product_id}: {r.reason}"
                for r in report.results
                if not r.available
            )
            logger.warning("Rejected order for user %s: %s", user_id, reasons)
            raise StockReservationFailed(reasons)

        order = retry_on_conflict(
            lambda: self._place(user_id, item_specs, payment_method),
            attempts=self._attempts,
        )
        logger.info(
            "Order %s created for user %s (%s)",
            order.order_number, user_id, payment_method.value,
        )
        return to_order_dto(order)

    def _place(
        self,
        user_id: str,
        item_specs: list[OrderItemSpec],
        payment_method: PaymentMethod,
    ) -> Order:
        now = self._clock()
        with self._uow_factory() as uow:
            line_items = []
            for spec in item_specs:
                product = uow.products.get_by_id(spec.product_id)
                if product is None:
                    raise ProductNotFound(f"Product {spec.product_id} not found")
                line_items.append(
                    OrderLineItem(
                        product_id=product.id,
                        name=product.name,
                        price=product.price,  # <-- price snapshot
                        quantity=Quantity(spec.quantity),
                        image=product.image,
                    )
                )

            today = now.date()
            order_number = Order.generate_number(
                today, uow.orders.last_order_number(order_number_prefix(today))
            )
            order = Order.create(
                order_number=order_number,
                user_id=user_id,
                items=line_items,
                payment_method=payment_method,
                now=now,
            )

            self._inventory.reserve_stock_for_order(order.stock_lines(), uow=uow)
            uow.orders.add(order)
            uow.commit()
        return order
