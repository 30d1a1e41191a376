"""Application service: Show Inventory use case (query)."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from shopstock.domain.model.product import Product
from shopstock.domain.repository.unit_of_work import UnitOfWork


@dataclass(frozen=True)
class InventoryLineDTO:
    product_id: str
    name: str
    stock: int
    reserved: int
    available: int
    threshold: int
    low_stock: bool
    in_stock: bool


def to_inventory_line(product: Product) -> InventoryLineDTO:
    return InventoryLineDTO(
        product_id=product.id,
        name=product.name,
        stock=product.stock,
        reserved=product.reserved_stock,
        available=product.available_stock,
        threshold=product.low_stock_threshold,
        low_stock=product.is_low_stock,
        in_stock=product.in_stock,
    )


class ShowInventoryHandler:

    def __init__(self, uow_factory: Callable[[], UnitOfWork]) -> None:
        self._uow_factory = uow_factory

    def handle(self) -> list[InventoryLineDTO]:
        with self._uow_factory() as uow:
            products = uow.products.list_all()
        return [to_inventory_line(p) for p in products]
