"""SQLAlchemy-backed implementation of OrderRepository."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from shopstock.domain.exceptions import OptimisticConflict, OrderNotFound
from shopstock.domain.model.order import (
    OPEN_STATUSES,
    SETTLED_PAYMENTS,
    Order,
    OrderLineItem,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    StatusHistoryEntry,
)
from shopstock.domain.model.value_objects import Money, Quantity
from shopstock.domain.repository.order_repository import OrderRepository
from shopstock.infrastructure.persistence.orm import (
    OrderItemRow,
    OrderRow,
    StatusHistoryRow,
)


class SqlAlchemyOrderRepository(OrderRepository):

    def __init__(self, session: Session) -> None:
        self._session = session

    # --- OrderRepository interface --------------------------------------------

    def get_by_id(self, order_id: int) -> Order | None:
        row = self._session.get(OrderRow, order_id)
        return self._to_domain(row) if row is not None else None

    def get_by_number(self, order_number: str) -> Order | None:
        row = self._session.scalars(
            select(OrderRow).where(OrderRow.order_number == order_number)
        ).first()
        return self._to_domain(row) if row is not None else None

    def last_order_number(self, prefix: str) -> str | None:
        return self._session.scalar(
            select(func.max(OrderRow.order_number)).where(
                OrderRow.order_number.like(f"{prefix}%")
            )
        )

    def find_expired_card_orders(self, created_before: datetime) -> list[Order]:
        rows = self._session.scalars(
            select(OrderRow)
            .where(
                OrderRow.order_status == OrderStatus.PENDING.value,
                OrderRow.payment_status == PaymentStatus.PENDING.value,
                OrderRow.payment_method == PaymentMethod.CARD.value,
                OrderRow.created_at < _to_storage(created_before),
            )
            .order_by(OrderRow.created_at)
        )
        return [self._to_domain(row) for row in rows]

    def find_reserving_orders(self, product_id: str) -> list[Order]:
        referencing = select(OrderItemRow.order_id).where(
            OrderItemRow.product_id == product_id
        )
        rows = self._session.scalars(
            select(OrderRow)
            .where(
                OrderRow.id.in_(referencing),
                OrderRow.order_status.in_([s.value for s in OPEN_STATUSES]),
                OrderRow.payment_status.not_in([s.value for s in SETTLED_PAYMENTS]),
            )
            .order_by(OrderRow.id)
        )
        return [self._to_domain(row) for row in rows]

    def add(self, order: Order) -> None:
        row = OrderRow(
            order_number=order.order_number,
            user_id=order.user_id,
            payment_method=order.payment_method.value,
            payment_status=order.payment_status.value,
            order_status=order.order_status.value,
            payment_intent=order.payment_intent,
            tracking_number=order.tracking_number,
            total_amount=str(order.total_amount.amount),
            created_at=_to_storage(order.created_at),
            items=[
                OrderItemRow(
                    position=position,
                    product_id=item.product_id,
                    name=item.name,
                    price=str(item.price.amount),
                    currency=item.price.currency,
                    quantity=item.quantity.value,
                    image=item.image,
                )
                for position, item in enumerate(order.items)
            ],
            history=[
                self._history_row(position, entry)
                for position, entry in enumerate(order.status_history)
            ],
        )
        self._session.add(row)
        try:
            self._session.flush()
        except IntegrityError as exc:
            raise OptimisticConflict(
                f"Order number {order.order_number} was taken concurrently"
            ) from exc
        order.id = row.id
        order.version = row.version

    def save(self, order: Order) -> None:
        row = self._session.get(OrderRow, order.id)
        if row is None:
            raise OrderNotFound(f"Order #{order.id} not found")
        if row.version != order.version:
            raise OptimisticConflict(
                f"Order {order.order_number} was modified concurrently "
                f"(expected version {order.version}, found {row.version})"
            )

        row.payment_status = order.payment_status.value
        row.order_status = order.order_status.value
        row.payment_intent = order.payment_intent
        row.tracking_number = order.tracking_number
        # history is append-only: persist only the entries added since load
        for position in range(len(row.history), len(order.status_history)):
            row.history.append(self._history_row(position, order.status_history[position]))

        try:
            self._session.flush()
        except StaleDataError as exc:
            raise OptimisticConflict(
                f"Order {order.order_number} was modified concurrently"
            ) from exc
        order.version = row.version

    # --- Mapping --------------------------------------------------------------

    @staticmethod
    def _history_row(position: int, entry: StatusHistoryEntry) -> StatusHistoryRow:
        return StatusHistoryRow(
            position=position,
            status=entry.status.value,
            timestamp=_to_storage(entry.timestamp),
            note=entry.note,
        )

    @staticmethod
    def _to_domain(row: OrderRow) -> Order:
        return Order(
            id=row.id,
            order_number=row.order_number,
            user_id=row.user_id,
            items=[
                OrderLineItem(
                    product_id=i.product_id,
                    name=i.name,
                    price=Money(Decimal(i.price), i.currency),
                    quantity=Quantity(i.quantity),
                    image=i.image,
                )
                for i in row.items
            ],
            payment_method=PaymentMethod(row.payment_method),
            payment_status=PaymentStatus(row.payment_status),
            order_status=OrderStatus(row.order_status),
            status_history=[
                StatusHistoryEntry(
                    status=OrderStatus(h.status),
                    timestamp=_from_storage(h.timestamp),
                    note=h.note,
                )
                for h in row.history
            ],
            payment_intent=row.payment_intent,
            tracking_number=row.tracking_number,
            created_at=_from_storage(row.created_at),
            version=row.version,
        )


def _to_storage(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment
    return moment.astimezone(timezone.utc).replace(tzinfo=None)


def _from_storage(moment: datetime) -> datetime:
    return moment.replace(tzinfo=timezone.utc)
