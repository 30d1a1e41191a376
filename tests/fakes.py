"""In-memory fake unit of work for testing.

Implements the same abstract interfaces as the SQLAlchemy repositories
but keeps everything in dicts. Writes are staged per unit of work and
only become visible to others on commit, and both ``save`` and
``commit`` check versions the way the database does, so concurrency
tests exercise the real conflict paths.
"""

from __future__ import annotations

import copy
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime

from shopstock.application.notifications import StockAlertNotifier
from shopstock.domain.exceptions import OptimisticConflict
from shopstock.domain.model.order import (
    Order,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)
from shopstock.domain.model.product import Product
from shopstock.domain.repository.order_repository import OrderRepository
from shopstock.domain.repository.product_repository import ProductRepository
from shopstock.domain.repository.unit_of_work import UnitOfWork
from shopstock.domain.service.inventory_service import LowStockAlert


class InMemoryStore:
    """The committed state shared by every FakeUnitOfWork."""

    def __init__(self, products: list[Product] | None = None) -> None:
        self.products: dict[str, Product] = {}
        self.orders: dict[int, Order] = {}
        self.lock = threading.Lock()
        self.commits = 0
        self._next_order_id = 1
        for p in products or []:
            self.products[p.id] = copy.deepcopy(p)

    def allocate_order_id(self) -> int:
        with self.lock:
            order_id = self._next_order_id
            self._next_order_id += 1
            return order_id

    # test helpers: direct reads of committed state

    def product(self, product_id: str) -> Product:
        return self.products[product_id]

    def order(self, order_id: int) -> Order:
        return self.orders[order_id]

    def uow_factory(self) -> FakeUnitOfWork:
        return FakeUnitOfWork(self)


class _Staged:
    """Pending writes of one unit of work, keyed like the store."""

    def __init__(self) -> None:
        self.products: dict[str, Product] = {}
        self.product_base: dict[str, int | None] = {}
        self.orders: dict[int, Order] = {}
        self.order_base: dict[int, int | None] = {}


class FakeProductRepository(ProductRepository):

    def __init__(self, store: InMemoryStore, staged: _Staged) -> None:
        self._store = store
        self._staged = staged

    def _visible(self) -> dict[str, Product]:
        view = dict(self._store.products)
        view.update(self._staged.products)
        return view

    def get_by_id(self, product_id: str) -> Product | None:
        product = self._visible().get(product_id)
        return copy.deepcopy(product) if product is not None else None

    def get_by_name(self, name: str) -> Product | None:
        for p in self._visible().values():
            if p.name.lower() == name.strip().lower():
                return copy.deepcopy(p)
        return None

    def list_all(self) -> list[Product]:
        products = sorted(self._visible().values(), key=lambda p: p.name)
        return [copy.deepcopy(p) for p in products]

    def add(self, product: Product) -> None:
        if product.id in self._visible():
            raise OptimisticConflict(f"Product {product.id} already exists")
        self._staged.product_base[product.id] = None
        self._staged.products[product.id] = copy.deepcopy(product)

    def save(self, product: Product) -> None:
        current = self._visible().get(product.id)
        if current is None:
            raise KeyError(product.id)
        if current.version != product.version:
            raise OptimisticConflict(f"Product {product.name} was modified concurrently")
        self._staged.product_base.setdefault(product.id, current.version)
        product.version += 1
        self._staged.products[product.id] = copy.deepcopy(product)


class FakeOrderRepository(OrderRepository):

    def __init__(self, store: InMemoryStore, staged: _Staged) -> None:
        self._store = store
        self._staged = staged

    def _visible(self) -> dict[int, Order]:
        view = dict(self._store.orders)
        view.update(self._staged.orders)
        return view

    def get_by_id(self, order_id: int) -> Order | None:
        order = self._visible().get(order_id)
        return copy.deepcopy(order) if order is not None else None

    def get_by_number(self, order_number: str) -> Order | None:
        for o in self._visible().values():
            if o.order_number == order_number:
                return copy.deepcopy(o)
        return None

    def last_order_number(self, prefix: str) -> str | None:
        numbers = [
            o.order_number for o in self._visible().values()
            if o.order_number.startswith(prefix)
        ]
        return max(numbers, default=None)

    def find_expired_card_orders(self, created_before: datetime) -> list[Order]:
        orders = [
            o for o in self._visible().values()
            if o.order_status == OrderStatus.PENDING
            and o.payment_status == PaymentStatus.PENDING
            and o.payment_method == PaymentMethod.CARD
            and o.created_at < created_before
        ]
        return [copy.deepcopy(o) for o in sorted(orders, key=lambda o: o.created_at)]

    def find_reserving_orders(self, product_id: str) -> list[Order]:
        orders = [
            o for o in self._visible().values()
            if o.holds_reservation and o.quantity_of(product_id) > 0
        ]
        return [copy.deepcopy(o) for o in sorted(orders, key=lambda o: o.id)]

    def add(self, order: Order) -> None:
        if self.get_by_number(order.order_number) is not None:
            raise OptimisticConflict(
                f"Order number {order.order_number} was taken concurrently"
            )
        order.id = self._store.allocate_order_id()
        order.version = 1
        self._staged.order_base[order.id] = None
        self._staged.orders[order.id] = copy.deepcopy(order)

    def save(self, order: Order) -> None:
        current = self._visible().get(order.id)
        if current is None:
            raise KeyError(order.id)
        if current.version != order.version:
            raise OptimisticConflict(
                f"Order {order.order_number} was modified concurrently"
            )
        self._staged.order_base.setdefault(order.id, current.version)
        order.version += 1
        self._staged.orders[order.id] = copy.deepcopy(order)


class FakeUnitOfWork(UnitOfWork):

    def __init__(self, store: InMemoryStore) -> None:
        self._store = store
        self._staged = _Staged()
        self.products = FakeProductRepository(store, self._staged)
        self.orders = FakeOrderRepository(store, self._staged)
        self.committed = False

    def commit(self) -> None:
        staged = self._staged
        with self._store.lock:
            for pid, base in staged.product_base.items():
                if _version(self._store.products.get(pid)) != base:
                    raise OptimisticConflict(f"Product {pid} was modified concurrently")
            for oid, base in staged.order_base.items():
                if _version(self._store.orders.get(oid)) != base:
                    raise OptimisticConflict(f"Order #{oid} was modified concurrently")
            taken = {
                o.order_number for oid, o in self._store.orders.items()
                if oid not in staged.orders
            }
            for order in staged.orders.values():
                if order.order_number in taken:
                    raise OptimisticConflict(
                        f"Order number {order.order_number} was taken concurrently"
                    )
            self._store.products.update(staged.products)
            self._store.orders.update(staged.orders)
            self._store.commits += 1
        self._clear()
        self.committed = True

    def rollback(self) -> None:
        self._clear()

    @contextmanager
    def savepoint(self) -> Iterator[None]:
        snapshot = copy.deepcopy(self._staged.__dict__)
        try:
            yield
        except Exception:
            self._staged.__dict__.clear()
            self._staged.__dict__.update(snapshot)
            raise

    def _clear(self) -> None:
        self._staged.products.clear()
        self._staged.product_base.clear()
        self._staged.orders.clear()
        self._staged.order_base.clear()


def _version(entity: Product | Order | None) -> int | None:
    return entity.version if entity is not None else None


class RecordingNotifier(StockAlertNotifier):

    def __init__(self) -> None:
        self.alerts: list[LowStockAlert] = []

    def notify_low_stock(self, alert: LowStockAlert) -> None:
        self.alerts.append(alert)
