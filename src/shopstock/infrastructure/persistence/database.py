"""Engine and session construction.

pysqlite opens transactions lazily and mishandles SAVEPOINT, so SQLite
engines take over ``BEGIN`` themselves.  They begin with ``BEGIN
IMMEDIATE``: writers queue on the database lock up front and read only
committed data once they hold it.  Every other backend runs at the
configured isolation level (READ COMMITTED unless told otherwise).

On every backend a lock timeout, deadlock or serialization failure is
raised as ``OptimisticConflict`` so callers retry it like a version
mismatch.
"""

from __future__ import annotations

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.engine import ExceptionContext
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from shopstock.domain.exceptions import OptimisticConflict
from shopstock.infrastructure.persistence.orm import Base

DEFAULT_ISOLATION_LEVEL = "READ COMMITTED"
SQLITE_BUSY_TIMEOUT_SECONDS = 15.0

_CONTENTION_MARKERS = (
    "database is locked",
    "database table is locked",
    "could not serialize access",
    "deadlock detected",
    "lock wait timeout exceeded",
)


def build_engine(
    url: str,
    isolation_level: str | None = None,
    echo: bool = False,
    sqlite_timeout: float = SQLITE_BUSY_TIMEOUT_SECONDS,
) -> Engine:
    if url.startswith("sqlite"):
        engine = _sqlite_engine(url, echo, sqlite_timeout)
    else:
        engine = create_engine(
            url,
            echo=echo,
            isolation_level=isolation_level or DEFAULT_ISOLATION_LEVEL,
            pool_pre_ping=True,
        )
    event.listen(engine, "handle_error", _contention_as_conflict)
    return engine


def create_schema(engine: Engine) -> None:
    Base.metadata.create_all(engine)


def build_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, expire_on_commit=False)


def is_lock_contention(error: BaseException) -> bool:
    message = str(error).lower()
    return any(marker in message for marker in _CONTENTION_MARKERS)


def _contention_as_conflict(context: ExceptionContext) -> None:
    if not isinstance(context.sqlalchemy_exception, OperationalError):
        return
    if is_lock_contention(context.original_exception):
        raise OptimisticConflict(
            f"Concurrent write in progress: {context.original_exception}"
        ) from context.sqlalchemy_exception


def _sqlite_engine(url: str, echo: bool, timeout: float) -> Engine:
    kwargs = {
        "echo": echo,
        "connect_args": {"check_same_thread": False, "timeout": timeout},
    }
    if url in ("sqlite://", "sqlite:///:memory:"):
        # one shared connection, otherwise every session sees an empty database
        kwargs["poolclass"] = StaticPool
    engine = create_engine(url, **kwargs)

    @event.listens_for(engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return engine
