"""In-memory cart state with derived totals and a single-restaurant guard."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Any

from kamu.core.cart_math import calc_items_total, calc_line_total, calc_quantity, format_money, to_money
from kamu.domain.entities.dish import Dish

logger = logging.getLogger(__name__)


@dataclass
class CartLine:
    """Single dish in the cart."""

    item_id: str
    name: str
    unit_price: Decimal
    restaurant_id: str
    quantity: int = 1
    added_at: float = field(default_factory=time.time)

    @property
    def line_total(self) -> Decimal:
        return calc_line_total(self.unit_price, self.quantity)

    def to_dict(self) -> dict[str, Any]:
        return {
            "itemId": str(self.item_id),
            "name": self.name,
            "unitPrice": format_money(self.unit_price),
            "restaurantId": str(self.restaurant_id),
            "quantity": int(self.quantity),
            "addedAt": float(self.added_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CartLine:
        return cls(
            item_id=str(data.get("itemId", data.get("id", ""))),
            name=str(data.get("name", "")),
            unit_price=to_money(data.get("unitPrice", data.get("price", 0))),
            restaurant_id=str(data.get("restaurantId", "")),
            quantity=int(data.get("quantity", 1)),
            added_at=float(data.get("addedAt", time.time())),
        )


@dataclass(frozen=True)
class CartSnapshot:
    """Read-consistent view of the cart at one point in time."""

    lines: tuple[CartLine, ...]
    total_items: int
    total_price: Decimal
    restaurant_id: str | None

    @property
    def is_empty(self) -> bool:
        return not self.lines

    def quantity_of(self, item_id: str) -> int:
        for line in self.lines:
            if line.item_id == str(item_id):
                return line.quantity
        return 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "lines": [line.to_dict() for line in self.lines],
            "totalItems": self.total_items,
            "totalPrice": format_money(self.total_price),
        }


class CartStore:
    """Authoritative set of cart lines keyed by item id.

    Totals are recomputed from the lines on every read. The store never holds
    lines of more than one restaurant: an add for a different restaurant is
    refused and the caller decides whether to clear first.
    """

    def __init__(self, lines: list[CartLine] | None = None):
        self._lines: dict[str, CartLine] = {}
        for line in lines or []:
            self._restore_line(line)

    def _restore_line(self, line: CartLine) -> None:
        if line.quantity < 1 or not line.item_id:
            logger.warning("Dropping invalid cart line on restore: %s", line)
            return
        if not line.unit_price.is_finite() or line.unit_price < 0:
            logger.warning("Dropping cart line %s with invalid price %s", line.item_id, line.unit_price)
            return
        current = self.restaurant_id
        if current is not None and current != line.restaurant_id:
            logger.warning(
                "Dropping cart line %s of restaurant %s; cart belongs to %s",
                line.item_id,
                line.restaurant_id,
                current,
            )
            return
        self._lines[line.item_id] = replace(line)

    @classmethod
    def from_snapshot(cls, data: dict[str, Any] | None) -> CartStore:
        """Rebuild from a persisted payload; stored totals are ignored."""
        if not isinstance(data, dict):
            return cls()
        raw_lines = data.get("lines")
        if not isinstance(raw_lines, list):
            return cls()
        lines = []
        for raw in raw_lines:
            if not isinstance(raw, dict):
                continue
            try:
                lines.append(CartLine.from_dict(raw))
            except (TypeError, ValueError, ArithmeticError) as exc:
                logger.warning("Skipping malformed cart line %r: %s", raw, exc)
        return cls(lines)

    @property
    def restaurant_id(self) -> str | None:
        for line in self._lines.values():
            return line.restaurant_id
        return None

    @property
    def is_empty(self) -> bool:
        return not self._lines

    @property
    def lines(self) -> list[CartLine]:
        return [replace(line) for line in self._lines.values()]

    @property
    def total_items(self) -> int:
        return calc_quantity(self._lines.values())

    @property
    def total_price(self) -> Decimal:
        return calc_items_total(self._lines.values())

    def add_item(self, dish: Dish, restaurant_id: str) -> CartLine | None:
        restaurant_id = str(restaurant_id)
        current = self.restaurant_id
        if current is not None and current != restaurant_id:
            logger.info(
                "Rejected add_item: mixed restaurants not allowed (existing=%s, new=%s)",
                current,
                restaurant_id,
            )
            return None

        line = self._lines.get(dish.id)
        if line is not None:
            line.quantity += 1
            return replace(line)

        line = CartLine(
            item_id=dish.id,
            name=dish.name,
            unit_price=to_money(dish.price),
            restaurant_id=restaurant_id,
        )
        self._lines[line.item_id] = line
        return replace(line)

    def remove_item(self, item_id: str) -> bool:
        line = self._lines.get(str(item_id))
        if line is None:
            return False
        if line.quantity > 1:
            line.quantity -= 1
        else:
            del self._lines[line.item_id]
        return True

    def discard(self, item_id: str, quantity: int) -> bool:
        """Take up to ``quantity`` units of an item out; the line goes at zero."""
        line = self._lines.get(str(item_id))
        if line is None or quantity < 1:
            return False
        if line.quantity > quantity:
            line.quantity -= quantity
        else:
            del self._lines[line.item_id]
        return True

    def clear(self) -> None:
        self._lines.clear()

    def get_quantity(self, item_id: str) -> int:
        line = self._lines.get(str(item_id))
        return line.quantity if line else 0

    def snapshot(self) -> CartSnapshot:
        lines = tuple(self.lines)
        return CartSnapshot(
            lines=lines,
            total_items=calc_quantity(lines),
            total_price=calc_items_total(lines),
            restaurant_id=lines[0].restaurant_id if lines else None,
        )
