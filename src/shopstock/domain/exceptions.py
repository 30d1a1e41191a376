"""Domain-level exceptions.

All business rule violations are expressed as subclasses of DomainException
so callers (CLI, HTTP handlers, the scheduler) can catch them uniformly and
display user-friendly messages.
"""

from __future__ import annotations


class DomainException(Exception):
    """Base class for all domain errors."""

    retryable = False


class ValidationError(DomainException):
    """A business rule or invariant was violated."""


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""


class ProductNotFound(EntityNotFoundError):
    """A referenced product no longer exists."""


class OrderNotFound(EntityNotFoundError):
    """A referenced order does not exist."""


class InsufficientStock(ValidationError):
    """Requested quantity exceeds what the product can supply."""

    def __init__(self, product_name: str, requested: int, available: int) -> None:
        super().__init__(
            f"Insufficient stock for {product_name}. "
            f"Only {available} available, requested {requested}"
        )
        self.product_name = product_name
        self.requested = requested
        self.available = available


class InvalidStatusTransition(ValidationError):
    """An order status change not allowed by the transition table."""


class OptimisticConflict(DomainException):
    """Another writer changed the record since it was read.

    The whole order-level operation may be re-run from fresh reads.
    """

    retryable = True


class TransactionAborted(DomainException):
    """An order-level operation was rolled back; nothing was persisted."""


class StockReservationFailed(TransactionAborted):
    """Reserving stock for an order failed for at least one line item."""

    def __init__(self, reason: str, cause: DomainException | None = None) -> None:
        super().__init__(f"Stock reservation failed: {reason}")
        self.reason = reason
        self.cause = cause

    @property
    def retryable(self) -> bool:  # type: ignore[override]
        return self.cause is not None and self.cause.retryable
