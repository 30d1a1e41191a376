"""Process-wide logging setup, called once by entry points."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)
    # SQL echo is opt-in via the engine, keep the library quiet otherwise
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)
