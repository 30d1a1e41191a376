"""Application service: Add Product use case (catalog seeding).

Only creates the product with its opening stock; every later change to
the stock counters goes through the inventory operations.
"""

from __future__ import annotations

from collections.abc import Callable

from shopstock.domain.exceptions import ValidationError
from shopstock.domain.model.product import DEFAULT_LOW_STOCK_THRESHOLD, Product
from shopstock.domain.model.value_objects import Money
from shopstock.domain.repository.unit_of_work import UnitOfWork


class AddProductHandler:

    def __init__(self, uow_factory: Callable[[], UnitOfWork]) -> None:
        self._uow_factory = uow_factory

    def handle(
        self,
        name: str,
        price: str,
        stock: int = 0,
        low_stock_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD,
        image: str = "",
    ) -> Product:
        with self._uow_factory() as uow:
            if uow.products.get_by_name(name) is not None:
                raise ValidationError(f"Product '{name}' already exists")

            # Auto-assign ID based on existing products
            existing = uow.products.list_all()
            next_id = str(max((int(p.id) for p in existing), default=0) + 1)

            product = Product.create(
                id=next_id,
                name=name,
                price=Money.of(price),
                stock=stock,
                low_stock_threshold=low_stock_threshold,
                image=image,
            )
            uow.products.add(product)
            uow.commit()
        return product
