"""Order aggregate.

The Order owns an immutable snapshot of the cart at checkout time, two
independent status fields (payment and fulfilment), and an append-only
status history.  Order status changes are restricted to the transition
table below; everything that moves the status goes through
``update_status``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum

from shopstock.domain.exceptions import InvalidStatusTransition, ValidationError
from shopstock.domain.model.value_objects import Money, Quantity, StockLine


class OrderStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentMethod(Enum):
    CARD = "card"
    COD = "cod"


VALID_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

OPEN_STATUSES = frozenset({OrderStatus.PENDING, OrderStatus.PROCESSING})
SETTLED_PAYMENTS = frozenset({PaymentStatus.PAID, PaymentStatus.REFUNDED})

ORDER_NUMBER_PREFIX = "ORD"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class OrderLineItem:
    """Snapshot of one cart line at order-creation time.

    Price, name and image are copied from the product so later catalog
    edits never change what the customer was charged.
    """

    product_id: str
    name: str
    price: Money
    quantity: Quantity
    image: str = ""

    @property
    def subtotal(self) -> Money:
        return self.price * self.quantity.value


@dataclass(frozen=True)
class StatusHistoryEntry:
    status: OrderStatus
    timestamp: datetime
    note: str = ""


@dataclass
class Order:
    """Aggregate root for customer orders.

    Use ``Order.create()`` for new orders — it enforces all business
    rules and seeds the status history.  The plain constructor is used by
    repositories to reconstitute persisted orders.
    """

    id: int | None
    order_number: str
    user_id: str
    items: list[OrderLineItem]
    payment_method: PaymentMethod = PaymentMethod.CARD
    payment_status: PaymentStatus = PaymentStatus.PENDING
    order_status: OrderStatus = OrderStatus.PENDING
    status_history: list[StatusHistoryEntry] = field(default_factory=list)
    payment_intent: str = ""
    tracking_number: str = ""
    created_at: datetime = field(default_factory=utc_now)
    version: int = 0

    # --- Factory --------------------------------------------------------------

    @staticmethod
    def create(
        order_number: str,
        user_id: str,
        items: list[OrderLineItem],
        payment_method: PaymentMethod = PaymentMethod.CARD,
        now: datetime | None = None,
    ) -> Order:
        if not user_id:
            raise ValidationError("Order must belong to a user")
        if not items:
            raise ValidationError("Order must contain at least one item")

        created_at = now or utc_now()
        return Order(
            id=None,
            order_number=order_number,
            user_id=user_id,
            items=list(items),
            payment_method=payment_method,
            created_at=created_at,
            status_history=[
                StatusHistoryEntry(OrderStatus.PENDING, created_at, "Order created")
            ],
        )

    @staticmethod
    def generate_number(on: date, last_number: str | None) -> str:
        """Build ``ORD-YYYYMMDD-NNNN`` as one past today's highest sequence."""
        prefix = order_number_prefix(on)
        sequence = 1
        if last_number and last_number.startswith(prefix):
            sequence = int(last_number.rsplit("-", 1)[1]) + 1
        return f"{prefix}{sequence:04d}"

    # --- State transitions ----------------------------------------------------

    def update_status(
        self,
        new_status: OrderStatus,
        note: str = "",
        now: datetime | None = None,
    ) -> None:
        """Move to *new_status* and record it in the history.

        A same-state update is a no-op; anything outside the transition
        table raises ``InvalidStatusTransition``.
        """
        if new_status == self.order_status:
            return
        if new_status not in VALID_TRANSITIONS[self.order_status]:
            raise InvalidStatusTransition(
                f"Cannot transition from {self.order_status.value} to {new_status.value}"
            )
        self.order_status = new_status
        self.status_history.append(
            StatusHistoryEntry(new_status, now or utc_now(), note)
        )

    def mark_as_paid(self, payment_intent: str = "", now: datetime | None = None) -> None:
        self.payment_status = PaymentStatus.PAID
        if payment_intent:
            self.payment_intent = payment_intent
        if self.order_status == OrderStatus.PENDING:
            self.update_status(OrderStatus.PROCESSING, "Payment received", now)

    def mark_payment_failed(self) -> None:
        if self.payment_status == PaymentStatus.PAID:
            raise ValidationError(
                f"Order {self.order_number} is already paid"
            )
        self.payment_status = PaymentStatus.FAILED

    def add_tracking_number(
        self,
        tracking_number: str,
        now: datetime | None = None,
        note: str = "",
    ) -> None:
        """Record the carrier reference; ships a processing order.

        *note* is kept in the shipped history entry ahead of the tracking
        reference.
        """
        self.tracking_number = tracking_number
        if self.order_status == OrderStatus.PROCESSING:
            entry = f"Tracking: {tracking_number}"
            self.update_status(
                OrderStatus.SHIPPED, f"{note}; {entry}" if note else entry, now
            )

    # --- Queries --------------------------------------------------------------

    def can_be_cancelled(self) -> bool:
        return (
            self.order_status in OPEN_STATUSES
            and self.payment_status != PaymentStatus.REFUNDED
        )

    @property
    def is_paid(self) -> bool:
        return self.payment_status == PaymentStatus.PAID

    @property
    def holds_reservation(self) -> bool:
        """True while this order's units count toward ``reserved_stock``."""
        return (
            self.order_status in OPEN_STATUSES
            and self.payment_status not in SETTLED_PAYMENTS
        )

    @property
    def total_amount(self) -> Money:
        total = Money.zero()
        for item in self.items:
            total = total + item.subtotal
        return total

    def stock_lines(self) -> list[StockLine]:
        return [
            StockLine(item.product_id, item.quantity.value, item.name)
            for item in self.items
        ]

    def quantity_of(self, product_id: str) -> int:
        return sum(
            item.quantity.value for item in self.items if item.product_id == product_id
        )


def order_number_prefix(on: date) -> str:
    return f"{ORDER_NUMBER_PREFIX}-{on:%Y%m%d}-"
