"""Abstract Unit of Work — the transaction boundary.

Every order-level inventory operation runs inside exactly one unit of
work: all product and order writes made through ``products`` and
``orders`` land together on ``commit()`` or not at all.  Leaving the
``with`` block without committing rolls back.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager

from shopstock.domain.repository.order_repository import OrderRepository
from shopstock.domain.repository.product_repository import ProductRepository


class UnitOfWork(ABC):

    products: ProductRepository
    orders: OrderRepository

    def __enter__(self) -> UnitOfWork:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.rollback()

    @abstractmethod
    def commit(self) -> None:
        """Make every write of this unit durable and visible."""

    @abstractmethod
    def rollback(self) -> None:
        """Discard every uncommitted write. Safe to call after commit."""

    @abstractmethod
    def savepoint(self) -> AbstractContextManager[None]:
        """Nested scope: writes inside it are undone if the block raises."""
