"""Runtime configuration, read from ``SHOPSTOCK_*`` environment variables."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

ENV_PREFIX = "SHOPSTOCK_"


@dataclass(frozen=True)
class Settings:
    database_url: str
    isolation_level: str | None = None
    reservation_timeout_minutes: int = 5
    sweep_interval_seconds: float = 60.0
    order_attempts: int = 3
    log_level: str = "INFO"

    @staticmethod
    def from_env(
        default_database_url: str,
        environ: Mapping[str, str] | None = None,
    ) -> Settings:
        env = os.environ if environ is None else environ

        def get(name: str, default: str) -> str:
            return env.get(ENV_PREFIX + name, default).strip() or default

        return Settings(
            database_url=get("DATABASE_URL", default_database_url),
            isolation_level=env.get(ENV_PREFIX + "ISOLATION_LEVEL") or None,
            reservation_timeout_minutes=_positive_int(
                "RESERVATION_TIMEOUT_MINUTES", get("RESERVATION_TIMEOUT_MINUTES", "5")
            ),
            sweep_interval_seconds=_positive_float(
                "SWEEP_INTERVAL_SECONDS", get("SWEEP_INTERVAL_SECONDS", "60")
            ),
            order_attempts=_positive_int("ORDER_RETRIES", get("ORDER_RETRIES", "3")),
            log_level=get("LOG_LEVEL", "INFO").upper(),
        )


def _positive_int(name: str, raw: str) -> int:
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{ENV_PREFIX}{name} must be an integer, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"{ENV_PREFIX}{name} must be positive, got {value}")
    return value


def _positive_float(name: str, raw: str) -> float:
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{ENV_PREFIX}{name} must be a number, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"{ENV_PREFIX}{name} must be positive, got {value}")
    return value
