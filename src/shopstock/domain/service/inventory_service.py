"""Domain service: order-level inventory operations.

Each operation fans out to one Product mutation per line item and runs as
a single unit of work, so the order as a whole is the atomicity boundary:
either every line's stock change lands or none does.

Operations either open their own unit of work or, when the caller passes
``uow``, join the caller's transaction so the order document can be
written alongside the product counters.  Nothing here retries: an
``OptimisticConflict`` is surfaced for the caller to re-run the whole
operation from fresh reads.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime

from shopstock.domain.exceptions import (
    DomainException,
    ProductNotFound,
    StockReservationFailed,
)
from shopstock.domain.model.order import utc_now
from shopstock.domain.model.product import Product
from shopstock.domain.model.value_objects import StockLine
from shopstock.domain.repository.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StockReceipt:
    """Record of one line item's stock change."""

    product_id: str
    product_name: str
    quantity: int
    recorded_at: datetime


@dataclass(frozen=True)
class LowStockAlert:
    product_id: str
    product_name: str
    available_stock: int
    threshold: int


@dataclass(frozen=True)
class AvailabilityResult:
    product_id: str
    product_name: str
    requested_quantity: int
    available_stock: int
    available: bool
    reason: str


@dataclass(frozen=True)
class AvailabilityReport:
    all_available: bool
    results: list[AvailabilityResult]


class InventoryService:

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._uow_factory = uow_factory
        self._clock = clock

    # --- Order-level operations -----------------------------------------------

    def reserve_stock_for_order(
        self,
        items: Sequence[StockLine],
        uow: UnitOfWork | None = None,
    ) -> list[StockReceipt]:
        """Hold stock for every line item, all or nothing.

        Any failure (missing product, not enough available stock, a
        concurrent writer) aborts the transaction and is re-raised as
        ``StockReservationFailed`` with the original error as ``cause``.
        """
        try:
            with self._transaction(uow) as tx:
                receipts = []
                for line in items:
                    product = self._load(tx, line)
                    product.reserve_stock(line.quantity)
                    tx.products.save(product)
                    receipts.append(self._receipt(product, line.quantity))
        except DomainException as exc:
            logger.warning("Stock reservation aborted: %s", exc)
            raise StockReservationFailed(str(exc), cause=exc) from exc

        logger.info("Reserved stock for %d line item(s)", len(receipts))
        return receipts

    def release_stock_for_order(
        self,
        items: Sequence[StockLine],
        uow: UnitOfWork | None = None,
    ) -> list[StockReceipt]:
        """Give back the reservation of an unpaid order.

        Idempotent: releasing an already-released reservation clamps at
        zero.  Receipts report what was actually released.
        """
        with self._transaction(uow) as tx:
            receipts = []
            for line in items:
                product = self._load(tx, line)
                released = product.release_reserved_stock(line.quantity)
                if released < line.quantity:
                    logger.warning(
                        "Release of %d x %s clamped to %d (reservation already gone)",
                        line.quantity, product.name, released,
                    )
                tx.products.save(product)
                receipts.append(self._receipt(product, released))

        logger.info("Released stock for %d line item(s)", len(receipts))
        return receipts

    def deduct_stock_for_order(
        self,
        items: Sequence[StockLine],
        uow: UnitOfWork | None = None,
    ) -> list[LowStockAlert]:
        """Consume the reservation of a paid order.

        Returns the products that are now low on stock so the caller can
        notify operators.
        """
        with self._transaction(uow) as tx:
            alerts = []
            for line in items:
                product = self._load(tx, line)
                product.deduct_stock(line.quantity)
                tx.products.save(product)
                if product.is_low_stock:
                    alerts.append(self._low_stock_alert(product))

        logger.info(
            "Deducted stock for %d line item(s), %d now low", len(items), len(alerts)
        )
        return alerts

    def restore_stock_for_order(
        self,
        items: Sequence[StockLine],
        uow: UnitOfWork | None = None,
    ) -> list[StockReceipt]:
        """Put the units of a paid-then-cancelled order back on the shelf."""
        with self._transaction(uow) as tx:
            receipts = []
            for line in items:
                product = self._load(tx, line)
                product.restore_stock(line.quantity)
                tx.products.save(product)
                receipts.append(self._receipt(product, line.quantity))

        logger.info("Restored stock for %d line item(s)", len(receipts))
        return receipts

    # --- Read-only queries ----------------------------------------------------

    def check_stock_availability(self, items: Sequence[StockLine]) -> AvailabilityReport:
        """Fast precheck before reserving; never writes, never raises."""
        results = []
        with self._uow_factory() as uow:
            for line in items:
                product = uow.products.get_by_id(line.product_id)
                if product is None:
                    results.append(
                        AvailabilityResult(
                            product_id=line.product_id,
                            product_name=line.name,
                            requested_quantity=line.quantity,
                            available_stock=0,
                            available=False,
                            reason="Product not found",
                        )
                    )
                    continue

                available = product.is_quantity_available(line.quantity)
                results.append(
                    AvailabilityResult(
                        product_id=product.id,
                        product_name=product.name,
                        requested_quantity=line.quantity,
                        available_stock=product.available_stock,
                        available=available,
                        reason=(
                            "Available"
                            if available
                            else f"Only {product.available_stock} available"
                        ),
                    )
                )

        return AvailabilityReport(
            all_available=all(r.available for r in results),
            results=results,
        )

    def get_low_stock_products(self) -> list[Product]:
        with self._uow_factory() as uow:
            return [p for p in uow.products.list_all() if p.is_low_stock]

    def get_out_of_stock_products(self) -> list[Product]:
        with self._uow_factory() as uow:
            return [p for p in uow.products.list_all() if not p.in_stock]

    # --- Internal helpers -----------------------------------------------------

    @contextmanager
    def _transaction(self, uow: UnitOfWork | None) -> Iterator[UnitOfWork]:
        if uow is not None:
            yield uow
            return
        with self._uow_factory() as own:
            yield own
            own.commit()

    @staticmethod
    def _load(uow: UnitOfWork, line: StockLine) -> Product:
        product = uow.products.get_by_id(line.product_id)
        if product is None:
            raise ProductNotFound(f"Product {line.label} not found")
        return product

    def _receipt(self, product: Product, quantity: int) -> StockReceipt:
        return StockReceipt(
            product_id=product.id,
            product_name=product.name,
            quantity=quantity,
            recorded_at=self._clock(),
        )

    @staticmethod
    def _low_stock_alert(product: Product) -> LowStockAlert:
        return LowStockAlert(
            product_id=product.id,
            product_name=product.name,
            available_stock=product.available_stock,
            threshold=product.low_stock_threshold,
        )
