"""Shared helpers for cart totals and quantities."""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable

CENT = Decimal("0.01")


def to_money(value: Any) -> Decimal:
    """Coerce a price-like value into a cent-quantized Decimal."""
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, float):
        # str() keeps 5.99 as 5.99 instead of its binary expansion
        amount = Decimal(str(value))
    else:
        try:
            amount = Decimal(str(value or 0))
        except InvalidOperation:
            amount = Decimal(0)
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def calc_line_total(unit_price: Any, quantity: int) -> Decimal:
    return to_money(to_money(unit_price) * int(quantity))


def calc_items_total(lines: Iterable[Any]) -> Decimal:
    total = Decimal(0)
    for line in lines:
        total += calc_line_total(line.unit_price, line.quantity)
    return to_money(total)


def calc_quantity(lines: Iterable[Any]) -> int:
    return sum(int(line.quantity) for line in lines)


def calc_total_price(items_total: Any, delivery_fee: Any) -> Decimal:
    return to_money(to_money(items_total) + to_money(delivery_fee))


def format_money(amount: Any) -> str:
    return f"{to_money(amount):.2f}"
