"""SQLAlchemy implementation of the UnitOfWork port.

One unit of work is one Session and one database transaction.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from shopstock.domain.exceptions import OptimisticConflict
from shopstock.domain.repository.unit_of_work import UnitOfWork
from shopstock.infrastructure.persistence.sqlalchemy_order_repository import (
    SqlAlchemyOrderRepository,
)
from shopstock.infrastructure.persistence.sqlalchemy_product_repository import (
    SqlAlchemyProductRepository,
)


class SqlAlchemyUnitOfWork(UnitOfWork):

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def __enter__(self) -> SqlAlchemyUnitOfWork:
        self._session = self._session_factory()
        self.products = SqlAlchemyProductRepository(self._session)
        self.orders = SqlAlchemyOrderRepository(self._session)
        super().__enter__()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            super().__exit__(exc_type, exc, tb)
        finally:
            self._session.close()

    def commit(self) -> None:
        try:
            self._session.commit()
        except StaleDataError as exc:
            raise OptimisticConflict(str(exc)) from exc

    def rollback(self) -> None:
        self._session.rollback()

    @contextmanager
    def savepoint(self) -> Iterator[None]:
        with self._session.begin_nested():
            yield
