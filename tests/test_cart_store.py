from __future__ import annotations

from decimal import Decimal

import pytest

from kamu.core.cart_math import calc_items_total, calc_quantity
from kamu.domain.cart import CartLine, CartStore
from kamu.domain.entities.dish import Dish


def _dish(dish_id: str, price: str = "5.99") -> Dish:
    return Dish(id=dish_id, name=f"Dish {dish_id}", price=Decimal(price))


def _assert_totals_consistent(store: CartStore) -> None:
    lines = store.lines
    assert store.total_items == calc_quantity(lines)
    assert store.total_price == calc_items_total(lines)
    assert all(line.quantity >= 1 for line in lines)
    assert len({line.restaurant_id for line in lines}) <= 1


def test_totals_follow_every_mutation() -> None:
    store = CartStore()
    store.add_item(_dish("d1"), "r1")
    _assert_totals_consistent(store)
    store.add_item(_dish("d1"), "r1")
    store.add_item(_dish("d2", "3.50"), "r1")
    _assert_totals_consistent(store)
    assert store.total_items == 3
    assert store.total_price == Decimal("15.48")

    store.remove_item("d1")
    _assert_totals_consistent(store)
    assert store.get_quantity("d1") == 1

    store.clear()
    _assert_totals_consistent(store)
    assert store.total_items == 0
    assert store.total_price == Decimal("0.00")
    assert store.restaurant_id is None


def test_add_same_dish_increments_quantity() -> None:
    store = CartStore()
    store.add_item(_dish("d1"), "r1")
    line = store.add_item(_dish("d1"), "r1")

    assert line is not None
    assert line.quantity == 2
    assert len(store.lines) == 1


def test_add_from_other_restaurant_is_refused() -> None:
    store = CartStore()
    store.add_item(_dish("d1"), "r1")

    assert store.add_item(_dish("d9"), "r2") is None
    assert store.restaurant_id == "r1"
    assert store.get_quantity("d9") == 0


def test_remove_last_unit_drops_line() -> None:
    store = CartStore()
    store.add_item(_dish("d1"), "r1")

    assert store.remove_item("d1") is True
    assert store.is_empty
    assert store.restaurant_id is None


def test_add_then_remove_new_item_restores_cart() -> None:
    store = CartStore()
    store.add_item(_dish("d1"), "r1")
    before = [(line.item_id, line.quantity) for line in store.lines]

    store.add_item(_dish("d2"), "r1")
    store.remove_item("d2")

    assert [(line.item_id, line.quantity) for line in store.lines] == before
    assert store.total_price == Decimal("5.99")


def test_remove_missing_item_is_noop() -> None:
    store = CartStore()
    store.add_item(_dish("d1"), "r1")

    assert store.remove_item("nope") is False
    assert store.total_items == 1


def test_lines_are_copies() -> None:
    store = CartStore()
    store.add_item(_dish("d1"), "r1")

    store.lines[0].quantity = 99

    assert store.get_quantity("d1") == 1


def test_snapshot_round_trip_recomputes_totals() -> None:
    store = CartStore()
    store.add_item(_dish("d1"), "r1")
    store.add_item(_dish("d1"), "r1")
    payload = store.snapshot().to_dict()
    assert payload["totalItems"] == 2
    assert payload["totalPrice"] == "11.98"

    payload["totalItems"] = 40
    payload["totalPrice"] = "0.01"
    restored = CartStore.from_snapshot(payload)

    assert restored.total_items == 2
    assert restored.total_price == Decimal("11.98")
    assert restored.restaurant_id == "r1"


def test_from_snapshot_drops_mixed_and_invalid_lines() -> None:
    payload = {
        "lines": [
            {"itemId": "d1", "name": "A", "unitPrice": "2.00", "restaurantId": "r1", "quantity": 1},
            {"itemId": "d2", "name": "B", "unitPrice": "3.00", "restaurantId": "r2", "quantity": 1},
            {"itemId": "d3", "name": "C", "unitPrice": "4.00", "restaurantId": "r1", "quantity": 0},
            {"itemId": "d4", "name": "D", "unitPrice": "1.00", "restaurantId": "r1", "quantity": "x"},
            "garbage",
        ]
    }

    store = CartStore.from_snapshot(payload)

    assert [line.item_id for line in store.lines] == ["d1"]
    assert store.total_price == Decimal("2.00")


@pytest.mark.parametrize("price", ["Infinity", "-Infinity", "NaN", float("inf"), "-5"])
def test_from_snapshot_drops_lines_with_unusable_price(price) -> None:
    payload = {
        "lines": [
            {"itemId": "d1", "name": "A", "unitPrice": "2.00", "restaurantId": "r1", "quantity": 1},
            {"itemId": "d2", "name": "B", "unitPrice": price, "restaurantId": "r1", "quantity": 1},
        ]
    }

    store = CartStore.from_snapshot(payload)

    assert [line.item_id for line in store.lines] == ["d1"]
    assert store.total_price == Decimal("2.00")


def test_negative_price_line_is_not_restored() -> None:
    line = CartLine(item_id="d1", name="A", unit_price=Decimal("-1.00"), restaurant_id="r1")

    store = CartStore([line])

    assert store.is_empty
    assert store.total_price == Decimal("0.00")


def test_discard_takes_units_and_drops_empty_line() -> None:
    store = CartStore()
    for _ in range(3):
        store.add_item(_dish("d1"), "r1")
    store.add_item(_dish("d2"), "r1")

    assert store.discard("d1", 2) is True
    assert store.get_quantity("d1") == 1
    assert store.discard("d2", 5) is True
    assert store.get_quantity("d2") == 0
    assert store.discard("missing", 1) is False


def test_from_snapshot_tolerates_missing_payload() -> None:
    assert CartStore.from_snapshot(None).is_empty
    assert CartStore.from_snapshot({"lines": "oops"}).is_empty


def test_cart_line_to_dict_uses_wire_keys() -> None:
    line = CartLine(item_id="d1", name="Soup", unit_price=Decimal("4.5"), restaurant_id="r1", added_at=1.0)

    assert line.to_dict() == {
        "itemId": "d1",
        "name": "Soup",
        "unitPrice": "4.50",
        "restaurantId": "r1",
        "quantity": 1,
        "addedAt": 1.0,
    }
