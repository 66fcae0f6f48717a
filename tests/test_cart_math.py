from decimal import Decimal
from types import SimpleNamespace

from kamu.core.cart_math import (
    calc_items_total,
    calc_line_total,
    calc_quantity,
    calc_total_price,
    format_money,
    to_money,
)


def test_to_money_keeps_float_prices_exact() -> None:
    assert to_money(5.99) == Decimal("5.99")
    assert to_money("12.345") == Decimal("12.35")
    assert to_money(None) == Decimal("0.00")
    assert to_money("not-a-price") == Decimal("0.00")


def test_calc_items_total_multiplies_price_by_quantity() -> None:
    lines = [
        SimpleNamespace(unit_price=Decimal("5.99"), quantity=2),
        SimpleNamespace(unit_price=Decimal("3.50"), quantity=1),
    ]
    assert calc_items_total(lines) == Decimal("15.48")
    assert calc_quantity(lines) == 3


def test_calc_line_total_has_no_float_drift() -> None:
    assert calc_line_total(0.1, 3) == Decimal("0.30")


def test_calc_total_price_adds_delivery_fee() -> None:
    assert calc_total_price(Decimal("11.98"), Decimal("2.99")) == Decimal("14.97")
    assert format_money(Decimal("14.9")) == "14.90"
