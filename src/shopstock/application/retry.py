"""Caller-side retry for optimistic conflicts.

The inventory operations never loop on their own; a use case that wants
to absorb a lost race re-runs its whole unit of work through here.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TypeVar

from shopstock.domain.exceptions import DomainException

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_ATTEMPTS = 3


def retry_on_conflict(operation: Callable[[], T], attempts: int = DEFAULT_ATTEMPTS) -> T:
    """Run *operation*, re-running it while it fails with a retryable error."""
    if attempts < 1:
        raise ValueError("attempts must be at least 1")
    for attempt in range(1, attempts + 1):
        try:
            return operation()
        except DomainException as exc:
            if not exc.retryable or attempt == attempts:
                raise
            logger.info("Concurrent update detected, retrying (%d/%d)", attempt, attempts)
    raise AssertionError("unreachable")
