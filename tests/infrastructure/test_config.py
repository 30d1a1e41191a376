"""Tests for environment-driven settings."""

import pytest

from shopstock.infrastructure.config import Settings

DEFAULT_URL = "sqlite:///default.db"


def test_defaults():
    settings = Settings.from_env(DEFAULT_URL, environ={})
    assert settings.database_url == DEFAULT_URL
    assert settings.isolation_level is None
    assert settings.reservation_timeout_minutes == 5
    assert settings.sweep_interval_seconds == 60.0
    assert settings.order_attempts == 3
    assert settings.log_level == "INFO"


def test_overrides():
    settings = Settings.from_env(DEFAULT_URL, environ={
        "SHOPSTOCK_DATABASE_URL": "postgresql://shop@db/shop",
        "SHOPSTOCK_ISOLATION_LEVEL": "SERIALIZABLE",
        "SHOPSTOCK_RESERVATION_TIMEOUT_MINUTES": "15",
        "SHOPSTOCK_SWEEP_INTERVAL_SECONDS": "2.5",
        "SHOPSTOCK_ORDER_RETRIES": "5",
        "SHOPSTOCK_LOG_LEVEL": "debug",
    })
    assert settings.database_url == "postgresql://shop@db/shop"
    assert settings.isolation_level == "SERIALIZABLE"
    assert settings.reservation_timeout_minutes == 15
    assert settings.sweep_interval_seconds == 2.5
    assert settings.order_attempts == 5
    assert settings.log_level == "DEBUG"


@pytest.mark.parametrize(
    "name, value",
    [
        ("SHOPSTOCK_RESERVATION_TIMEOUT_MINUTES", "soon"),
        ("SHOPSTOCK_RESERVATION_TIMEOUT_MINUTES", "0"),
        ("SHOPSTOCK_SWEEP_INTERVAL_SECONDS", "-1"),
        ("SHOPSTOCK_ORDER_RETRIES", "1.5"),
    ],
)
def test_invalid_values_rejected(name, value):
    with pytest.raises(ValueError, match=name):
        Settings.from_env(DEFAULT_URL, environ={name: value})
