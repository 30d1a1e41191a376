"""Unit tests for the reservation expiration sweep."""

from datetime import datetime, timedelta, timezone

import pytest

from shopstock.domain.exceptions import ValidationError
from shopstock.domain.model.order import (
    Order,
    OrderLineItem,
    OrderStatus,
    PaymentMethod,
)
from shopstock.domain.model.product import Product
from shopstock.domain.model.value_objects import Money, Quantity
from shopstock.domain.service.inventory_service import InventoryService
from shopstock.domain.service.reservation_expiry import (
    EXPIRY_NOTE,
    ReservationExpiryService,
)
from tests.fakes import InMemoryStore

NOW = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)


def _setup(stock: int = 10, reserved: int = 0):
    store = InMemoryStore([
        Product(id="1", name="Widget", price=Money.of("10.00"), stock=stock, reserved_stock=reserved),
        Product(id="2", name="Gadget", price=Money.of("20.00"), stock=stock, reserved_stock=reserved),
    ])
    inventory = InventoryService(store.uow_factory, clock=lambda: NOW)
    svc = ReservationExpiryService(store.uow_factory, inventory, clock=lambda: NOW)
    return svc, store


def _place(
    store: InMemoryStore,
    number: str,
    age_minutes: int,
    lines: list[tuple[str, int]],
    method: PaymentMethod = PaymentMethod.CARD,
) -> int:
    """Insert an order of the given age directly, as if created then."""
    items = [
        OrderLineItem(pid, f"Product {pid}", Money.of("10.00"), Quantity(qty))
        for pid, qty in lines
    ]
    order = Order.create(number, "user-1", items, method, NOW - timedelta(minutes=age_minutes))
    with store.uow_factory() as uow:
        uow.orders.add(order)
        uow.commit()
    return order.id


class TestReleaseExpiredReservations:

    def test_expires_stale_card_order(self):
        svc, store = _setup(reserved=3)
        order_id = _place(store, "ORD-20250115-0001", 10, [("1", 3)])

        report = svc.release_expired_reservations(timeout_minutes=5)

        assert report.cancelled_orders == ["ORD-20250115-0001"]
        assert report.released_count == 1
        assert report.released[0].quantity == 3
        assert report.released[0].product_name == "Widget"
        assert store.product("1").reserved_stock == 0
        order = store.order(order_id)
        assert order.order_status == OrderStatus.CANCELLED
        assert order.status_history[-1].note == EXPIRY_NOTE
        assert order.status_history[-1].timestamp == NOW

    def test_fresh_order_untouched(self):
        svc, store = _setup(reserved=3)
        order_id = _place(store, "ORD-20250115-0001", 2, [("1", 3)])

        report = svc.release_expired_reservations(timeout_minutes=5)

        assert report.cancelled_orders == []
        assert store.order(order_id).order_status == OrderStatus.PENDING
        assert store.product("1").reserved_stock == 3

    def test_cod_orders_never_expire(self):
        svc, store = _setup(reserved=3)
        order_id = _place(store, "ORD-20250115-0001", 600, [("1", 3)], PaymentMethod.COD)

        svc.release_expired_reservations(timeout_minutes=5)

        assert store.order(order_id).order_status == OrderStatus.PENDING
        assert store.product("1").reserved_stock == 3

    def test_rerun_is_harmless(self):
        svc, store = _setup(reserved=3)
        _place(store, "ORD-20250115-0001", 10, [("1", 3)])

        svc.release_expired_reservations(timeout_minutes=5)
        second = svc.release_expired_reservations(timeout_minutes=5)

        assert second.cancelled_orders == []
        assert store.product("1").reserved_stock == 0

    def test_one_bad_order_does_not_block_others(self):
        svc, store = _setup(reserved=2)
        bad = _place(store, "ORD-20250115-0001", 20, [("2", 1), ("99", 1)])
        good = _place(store, "ORD-20250115-0002", 10, [("1", 2)])

        report = svc.release_expired_reservations(timeout_minutes=5)

        assert report.cancelled_orders == ["ORD-20250115-0002"]
        assert [f.order_number for f in report.failures] == ["ORD-20250115-0001"]
        assert "not found" in report.failures[0].reason
        assert store.order(good).order_status == OrderStatus.CANCELLED
        assert store.order(bad).order_status == OrderStatus.PENDING
        # the partial release of the bad order was undone
        assert store.product("2").reserved_stock == 2
        assert store.product("1").reserved_stock == 0

    def test_drifted_reservation_reports_actual_release(self):
        svc, store = _setup(reserved=0)
        _place(store, "ORD-20250115-0001", 10, [("1", 3)])

        report = svc.release_expired_reservations(timeout_minutes=5)

        assert report.cancelled_orders == ["ORD-20250115-0001"]
        assert report.released == []
        assert store.product("1").reserved_stock == 0


class TestTimeoutValidation:

    def test_non_positive_timeout_rejected(self):
        svc, store = _setup(reserved=2)
        order_id = _place(store, "ORD-20250115-0001", 0, [("1", 2)])

        for timeout in (0, -5):
            with pytest.raises(ValidationError, match="must be positive"):
                svc.release_expired_reservations(timeout_minutes=timeout)

        assert store.order(order_id).order_status == OrderStatus.PENDING
        assert store.product("1").reserved_stock == 2
