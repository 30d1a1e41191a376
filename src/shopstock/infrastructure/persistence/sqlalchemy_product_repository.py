"""SQLAlchemy-backed implementation of ProductRepository."""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from shopstock.domain.exceptions import OptimisticConflict, ProductNotFound
from shopstock.domain.model.product import Product
from shopstock.domain.model.value_objects import Money
from shopstock.domain.repository.product_repository import ProductRepository
from shopstock.infrastructure.persistence.orm import ProductRow


class SqlAlchemyProductRepository(ProductRepository):

    def __init__(self, session: Session) -> None:
        self._session = session

    # --- ProductRepository interface ------------------------------------------

    def get_by_id(self, product_id: str) -> Product | None:
        row = self._session.get(ProductRow, product_id)
        return self._to_domain(row) if row is not None else None

    def get_by_name(self, name: str) -> Product | None:
        row = self._session.scalars(
            select(ProductRow).where(func.lower(ProductRow.name) == name.strip().lower())
        ).first()
        return self._to_domain(row) if row is not None else None

    def list_all(self) -> list[Product]:
        rows = self._session.scalars(select(ProductRow).order_by(ProductRow.name))
        return [self._to_domain(row) for row in rows]

    def add(self, product: Product) -> None:
        row = ProductRow(
            id=product.id,
            name=product.name,
            price=str(product.price.amount),
            currency=product.price.currency,
            stock=product.stock,
            reserved_stock=product.reserved_stock,
            low_stock_threshold=product.low_stock_threshold,
            image=product.image,
        )
        self._session.add(row)
        self._session.flush()
        product.version = row.version

    def save(self, product: Product) -> None:
        row = self._session.get(ProductRow, product.id)
        if row is None:
            raise ProductNotFound(f"Product {product.id} not found")
        if row.version != product.version:
            raise OptimisticConflict(
                f"Product {product.name} was modified concurrently "
                f"(expected version {product.version}, found {row.version})"
            )

        row.name = product.name
        row.price = str(product.price.amount)
        row.currency = product.price.currency
        row.stock = product.stock
        row.reserved_stock = product.reserved_stock
        row.low_stock_threshold = product.low_stock_threshold
        row.image = product.image

        try:
            self._session.flush()
        except StaleDataError as exc:
            raise OptimisticConflict(
                f"Product {product.name} was modified concurrently"
            ) from exc
        product.version = row.version

    # --- Mapping --------------------------------------------------------------

    @staticmethod
    def _to_domain(row: ProductRow) -> Product:
        return Product(
            id=row.id,
            name=row.name,
            price=Money(Decimal(row.price), row.currency),
            stock=row.stock,
            reserved_stock=row.reserved_stock,
            low_stock_threshold=row.low_stock_threshold,
            image=row.image,
            version=row.version,
        )
