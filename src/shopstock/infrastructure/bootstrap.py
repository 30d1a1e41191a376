"""Composition root — wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, sessionmaker

from shopstock.domain.service.inventory_service import InventoryService
from shopstock.domain.service.reconciliation import InventoryReconciliationService
from shopstock.domain.service.reservation_expiry import ReservationExpiryService
from shopstock.infrastructure.config import Settings
from shopstock.infrastructure.notifications import LoggingStockAlertNotifier
from shopstock.infrastructure.persistence.database import (
    build_engine,
    build_session_factory,
    create_schema,
)
from shopstock.infrastructure.persistence.sqlalchemy_unit_of_work import (
    SqlAlchemyUnitOfWork,
)
from shopstock.infrastructure.scheduler import ExpirationScheduler

# Resolve data directory relative to the project root.
# When installed in editable mode the project root is the repo root.
_DATA_DIR = Path(__file__).resolve().parents[3] / "data"


@lru_cache(maxsize=None)
def settings() -> Settings:
    return Settings.from_env(default_database_url=f"sqlite:///{_DATA_DIR / 'shopstock.db'}")


@lru_cache(maxsize=None)
def session_factory() -> sessionmaker[Session]:
    cfg = settings()
    _ensure_sqlite_directory(cfg.database_url)
    engine = build_engine(cfg.database_url, cfg.isolation_level)
    create_schema(engine)
    return build_session_factory(engine)


def reset() -> None:
    """Forget cached settings and engine (used when the environment changes)."""
    settings.cache_clear()
    session_factory.cache_clear()


def unit_of_work() -> SqlAlchemyUnitOfWork:
    return SqlAlchemyUnitOfWork(session_factory())


def inventory_service() -> InventoryService:
    return InventoryService(unit_of_work)


def reservation_expiry_service() -> ReservationExpiryService:
    return ReservationExpiryService(unit_of_work, inventory_service())


def reconciliation_service() -> InventoryReconciliationService:
    return InventoryReconciliationService(unit_of_work)


def stock_alert_notifier() -> LoggingStockAlertNotifier:
    return LoggingStockAlertNotifier()


def expiration_scheduler(
    timeout_minutes: int | None = None,
    interval_seconds: float | None = None,
) -> ExpirationScheduler:
    cfg = settings()
    timeout = (
        timeout_minutes if timeout_minutes is not None else cfg.reservation_timeout_minutes
    )
    interval = (
        interval_seconds if interval_seconds is not None else cfg.sweep_interval_seconds
    )
    expiry = reservation_expiry_service()
    return ExpirationScheduler(
        job=lambda: expiry.release_expired_reservations(timeout),
        interval_seconds=interval,
    )


def _ensure_sqlite_directory(url: str) -> None:
    parsed = make_url(url)
    if parsed.get_backend_name() == "sqlite" and parsed.database not in (None, "", ":memory:"):
        Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)
