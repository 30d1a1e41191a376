"""Abstract repository for the Product aggregate.

Defined in the domain layer so the domain never depends on
infrastructure. Concrete implementations live in the infrastructure
layer; every implementation must honour the version check in ``save``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from shopstock.domain.model.product import Product


class ProductRepository(ABC):

    @abstractmethod
    def get_by_id(self, product_id: str) -> Product | None:
        """Return a product by its ID, or None if not found."""

    @abstractmethod
    def get_by_name(self, name: str) -> Product | None:
        """Return a product by its name (case-insensitive), or None."""

    @abstractmethod
    def list_all(self) -> list[Product]:
        """Return every product in the catalog."""

    @abstractmethod
    def add(self, product: Product) -> None:
        """Persist a brand-new product."""

    @abstractmethod
    def save(self, product: Product) -> None:
        """Persist changes to an existing product.

        Writes only if the stored version still equals ``product.version``,
        then bumps ``product.version``.  Raises ``OptimisticConflict``
        otherwise.
        """
