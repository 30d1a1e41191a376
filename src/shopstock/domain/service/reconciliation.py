"""Domain service: recompute ``reserved_stock`` from the open orders.

The incremental stock operations can drift from reality after a bug or a
lost race.  Reconciliation ignores the stored counter and sums the
quantities of every order that still holds a reservation on the product.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from shopstock.domain.exceptions import DomainException, ProductNotFound
from shopstock.domain.repository.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SyncResult:
    synced: bool
    product_id: str
    product_name: str
    old_reserved_stock: int
    new_reserved_stock: int

    @property
    def difference(self) -> int:
        return self.new_reserved_stock - self.old_reserved_stock

    @property
    def message(self) -> str:
        if not self.synced:
            return "Reserved stock already in sync"
        return (
            f"Reserved stock corrected from {self.old_reserved_stock} "
            f"to {self.new_reserved_stock} ({self.difference:+d})"
        )


@dataclass(frozen=True)
class SyncFailure:
    product_id: str
    reason: str


class InventoryReconciliationService:

    def __init__(self, uow_factory: Callable[[], UnitOfWork]) -> None:
        self._uow_factory = uow_factory

    def sync_inventory(self, product_id: str) -> SyncResult:
        with self._uow_factory() as uow:
            product = uow.products.get_by_id(product_id)
            if product is None:
                raise ProductNotFound(f"Product {product_id} not found")

            expected = sum(
                order.quantity_of(product_id)
                for order in uow.orders.find_reserving_orders(product_id)
                if order.holds_reservation
            )
            if expected > product.stock:
                logger.warning(
                    "Open orders hold %d of %s but only %d in stock; clamping",
                    expected, product.name, product.stock,
                )
                expected = product.stock
            if expected == product.reserved_stock:
                return SyncResult(
                    synced=False,
                    product_id=product.id,
                    product_name=product.name,
                    old_reserved_stock=product.reserved_stock,
                    new_reserved_stock=product.reserved_stock,
                )

            old = product.reconcile_reserved_stock(expected)
            uow.products.save(product)
            uow.commit()

        logger.info(
            "Synced %s: reserved stock %d -> %d", product.name, old, product.reserved_stock
        )
        return SyncResult(
            synced=True,
            product_id=product.id,
            product_name=product.name,
            old_reserved_stock=old,
            new_reserved_stock=product.reserved_stock,
        )

    def sync_all(self) -> tuple[list[SyncResult], list[SyncFailure]]:
        """Sync every product; one product's failure never stops the rest."""
        with self._uow_factory() as uow:
            product_ids = [p.id for p in uow.products.list_all()]

        results: list[SyncResult] = []
        failures: list[SyncFailure] = []
        for product_id in product_ids:
            try:
                results.append(self.sync_inventory(product_id))
            except DomainException as exc:
                logger.warning("Could not sync product %s: %s", product_id, exc)
                failures.append(SyncFailure(product_id, str(exc)))
        return results, failures
