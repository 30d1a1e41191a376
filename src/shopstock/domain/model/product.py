"""Product aggregate — the stock ledger.

A product owns two counters: ``stock`` (units physically owned) and
``reserved_stock`` (units held against open orders).  Everything offered
to new orders is derived from the difference.

The five stock mutators below are the only code allowed to touch those
counters.  Persistence is guarded by ``version``: the repository compares
it at write time and raises ``OptimisticConflict`` if another writer got
there first.
"""

from __future__ import annotations

from dataclasses import dataclass

from shopstock.domain.exceptions import InsufficientStock, ValidationError
from shopstock.domain.model.value_objects import Money

DEFAULT_LOW_STOCK_THRESHOLD = 10


@dataclass
class Product:
    """Aggregate root for a catalog product and its stock counters.

    Invariants:
    - ``0 <= reserved_stock <= stock``
    - ``available_stock`` is never negative
    """

    id: str
    name: str
    price: Money
    stock: int = 0
    reserved_stock: int = 0
    low_stock_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD
    image: str = ""
    version: int = 0

    # --- Factory (used for NEW products only) ---------------------------------

    @staticmethod
    def create(
        id: str,
        name: str,
        price: Money,
        stock: int = 0,
        low_stock_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD,
        image: str = "",
    ) -> Product:
        if not name or not name.strip():
            raise ValidationError("Product name is required")
        if stock < 0:
            raise ValidationError("Initial stock cannot be negative")
        if low_stock_threshold < 0:
            raise ValidationError("Low stock threshold cannot be negative")
        return Product(
            id=id,
            name=name.strip(),
            price=price,
            stock=stock,
            low_stock_threshold=low_stock_threshold,
            image=image,
        )

    # --- Derived values -------------------------------------------------------

    @property
    def available_stock(self) -> int:
        return max(0, self.stock - self.reserved_stock)

    @property
    def in_stock(self) -> bool:
        return self.available_stock > 0

    @property
    def is_low_stock(self) -> bool:
        return 0 < self.available_stock <= self.low_stock_threshold

    # --- Stock operations -----------------------------------------------------

    def is_quantity_available(self, quantity: int) -> bool:
        return self.available_stock >= quantity

    def reserve_stock(self, quantity: int) -> None:
        """Hold *quantity* units against an unpaid order."""
        _require_positive(quantity, "Reservation")
        if not self.is_quantity_available(quantity):
            raise InsufficientStock(self.name, quantity, self.available_stock)
        self.reserved_stock += quantity

    def release_reserved_stock(self, quantity: int) -> int:
        """Give back held units; clamps at zero instead of failing.

        Returns the number of units actually released, which is less than
        *quantity* when the reservation was already (partly) released.
        """
        _require_positive(quantity, "Release")
        released = min(quantity, self.reserved_stock)
        self.reserved_stock -= released
        return released

    def deduct_stock(self, quantity: int) -> None:
        """Consume units for a paid order.

        The matching reservation is expected but not required: a drifted
        ``reserved_stock`` is clamped at zero rather than rejected.
        """
        _require_positive(quantity, "Deduction")
        if self.stock < quantity:
            raise InsufficientStock(self.name, quantity, self.stock)
        self.stock -= quantity
        self.reserved_stock = max(0, self.reserved_stock - quantity)

    def restore_stock(self, quantity: int) -> None:
        """Return units of a paid-then-cancelled order to the shelf."""
        _require_positive(quantity, "Restore")
        self.stock += quantity

    def reconcile_reserved_stock(self, expected: int) -> int:
        """Overwrite ``reserved_stock`` with a recomputed value.

        The value is clamped into ``[0, stock]``.  Returns the previous
        reservation so the caller can report the delta.
        """
        previous = self.reserved_stock
        self.reserved_stock = min(max(0, expected), self.stock)
        return previous


def _require_positive(quantity: int, operation: str) -> None:
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValidationError(f"{operation} quantity must be an integer")
    if quantity <= 0:
        raise ValidationError(f"{operation} quantity must be positive")
