"""Data Transfer Objects — plain containers that cross layer boundaries.

DTOs carry data between the CLI (or any other caller) and the
application layer without exposing domain internals.
"""

from __future__ import annotations

from dataclasses import dataclass

from shopstock.domain.model.order import Order


@dataclass(frozen=True)
class OrderItemSpec:
    """Input: what the customer asked for (product ID + quantity)."""

    product_id: str
    quantity: int


@dataclass(frozen=True)
class OrderLineItemDTO:
    product_id: str
    name: str
    quantity: int
    price: str  # formatted, e.g. "$15.00"
    subtotal: str


@dataclass(frozen=True)
class StatusHistoryDTO:
    status: str
    timestamp: str
    note: str


@dataclass(frozen=True)
class OrderDTO:
    """Output: a complete order as displayed to the user."""

    id: int
    order_number: str
    user_id: str
    order_status: str
    payment_status: str
    payment_method: str
    items: list[OrderLineItemDTO]
    total_amount: str
    tracking_number: str
    created_at: str
    status_history: list[StatusHistoryDTO]


def to_order_dto(order: Order) -> OrderDTO:
    return OrderDTO(
        id=order.id,  # type: ignore[arg-type]
        order_number=order.order_number,
        user_id=order.user_id,
        order_status=order.order_status.value,
        payment_status=order.payment_status.value,
        payment_method=order.payment_method.value,
        items=[
            OrderLineItemDTO(
                product_id=item.product_id,
                name=item.name,
                quantity=item.quantity.value,
                price=str(item.price),
                subtotal=str(item.subtotal),
            )
            for item in order.items
        ],
        total_amount=str(order.total_amount),
        tracking_number=order.tracking_number,
        created_at=order.created_at.strftime("%Y-%m-%d %H:%M UTC"),
        status_history=[
            StatusHistoryDTO(
                status=entry.status.value,
                timestamp=entry.timestamp.strftime("%Y-%m-%d %H:%M:%S UTC"),
                note=entry.note,
            )
            for entry in order.status_history
        ],
    )
