"""Parsing helpers shared by CLI commands."""

from __future__ import annotations

import click

from shopstock.application.dto import OrderItemSpec
from shopstock.domain.exceptions import ValidationError
from shopstock.domain.model.value_objects import StockLine


def parse_item_specs(raw: str) -> list[OrderItemSpec]:
    """Parse '1:3,2:5' (product ID : quantity) into OrderItemSpec list."""
    specs: list[OrderItemSpec] = []
    for pair in raw.split(","):
        pair = pair.strip()
        if ":" not in pair:
            raise click.BadParameter(
                f"Invalid item format '{pair}'. Expected 'ProductID:Quantity'."
            )
        product_id, qty_str = pair.rsplit(":", 1)
        try:
            qty = int(qty_str)
        except ValueError:
            raise click.BadParameter(
                f"Invalid quantity '{qty_str}' for product '{product_id}'."
            )
        specs.append(OrderItemSpec(product_id=product_id.strip(), quantity=qty))
    return specs


def parse_stock_lines(raw: str) -> list[StockLine]:
    try:
        return [StockLine(spec.product_id, spec.quantity) for spec in parse_item_specs(raw)]
    except ValidationError as exc:
        raise click.BadParameter(str(exc))
