"""Application service: Show Order use case (query)."""

from __future__ import annotations

from collections.abc import Callable

from shopstock.application.dto import OrderDTO, to_order_dto
from shopstock.domain.exceptions import OrderNotFound
from shopstock.domain.repository.unit_of_work import UnitOfWork


class ShowOrderHandler:

    def __init__(self, uow_factory: Callable[[], UnitOfWork]) -> None:
        self._uow_factory = uow_factory

    def handle(self, order_ref: int | str) -> OrderDTO:
        """Look an order up by numeric ID or by its ``ORD-...`` number."""
        with self._uow_factory() as uow:
            if isinstance(order_ref, str) and not order_ref.isdigit():
                order = uow.orders.get_by_number(order_ref)
            else:
                order = uow.orders.get_by_id(int(order_ref))
        if order is None:
            raise OrderNotFound(f"Order {order_ref} not found")
        return to_order_dto(order)
