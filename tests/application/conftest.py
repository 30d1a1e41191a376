"""Shared wiring for the use-case tests: one in-memory store per test."""

from datetime import datetime, timezone

import pytest

from shopstock.application.create_order import CreateOrderHandler
from shopstock.application.dto import OrderItemSpec
from shopstock.domain.model.product import Product
from shopstock.domain.model.value_objects import Money
from shopstock.domain.service.inventory_service import InventoryService
from tests.fakes import InMemoryStore

NOW = datetime(2025, 1, 15, 10, 30, tzinfo=timezone.utc)


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore([
        Product(id="1", name="Widget", price=Money.of("15.00"), stock=20, low_stock_threshold=5),
        Product(id="2", name="Gadget", price=Money.of("25.00"), stock=8, low_stock_threshold=5),
    ])


@pytest.fixture
def inventory(store, clock) -> InventoryService:
    return InventoryService(store.uow_factory, clock=clock)


@pytest.fixture
def place_order(store, inventory, clock):
    """Create an order through the real checkout use case."""
    handler = CreateOrderHandler(store.uow_factory, inventory, clock=clock)

    def place(*lines: tuple[str, int], **kwargs):
        return handler.handle("user-1", [OrderItemSpec(pid, qty) for pid, qty in lines], **kwargs)

    return place
