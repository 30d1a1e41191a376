"""Abstract repository for the Order aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from shopstock.domain.model.order import Order


class OrderRepository(ABC):

    @abstractmethod
    def get_by_id(self, order_id: int) -> Order | None:
        """Return an order by its ID, or None if not found."""

    @abstractmethod
    def get_by_number(self, order_number: str) -> Order | None:
        """Return an order by its ``ORD-...`` number, or None."""

    @abstractmethod
    def last_order_number(self, prefix: str) -> str | None:
        """Return the highest order number starting with *prefix*."""

    @abstractmethod
    def find_expired_card_orders(self, created_before: datetime) -> list[Order]:
        """Pending, unpaid card orders created before the cutoff."""

    @abstractmethod
    def find_reserving_orders(self, product_id: str) -> list[Order]:
        """Orders that still hold a reservation on *product_id*.

        That is: order status pending/processing and payment status
        neither paid nor refunded.
        """

    @abstractmethod
    def add(self, order: Order) -> None:
        """Persist a new order and assign its ID.

        Raises ``OptimisticConflict`` if the order number is already taken.
        """

    @abstractmethod
    def save(self, order: Order) -> None:
        """Persist changes to an existing order (version-checked)."""
