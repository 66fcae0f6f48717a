"""
Cart facade used by screens and the checkout flow.

Wraps one CartStore and adds:
- input validation before anything reaches the store
- the keep/replace choice when a dish comes from another restaurant
- change notifications to subscribers
- optional snapshot persistence per customer
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Iterable

from pydantic import ValidationError as PydanticValidationError

from kamu.core.exceptions import StoreInvariantWarning, ValidationError
from kamu.core.metrics import MetricsRegistry
from kamu.core.metrics import metrics as default_metrics
from kamu.domain.cart import CartLine, CartSnapshot, CartStore
from kamu.domain.entities.dish import Dish
from kamu.integrations.redis_cart import CartSnapshotStorage

logger = logging.getLogger(__name__)

Subscriber = Callable[[CartSnapshot], None]


class ConflictChoice(str, Enum):
    KEEP = "keep"
    REPLACE = "replace"


ConflictResolver = Callable[[StoreInvariantWarning], ConflictChoice]


@dataclass
class AddItemResult:
    added: bool
    line: CartLine | None = None
    warning: StoreInvariantWarning | None = None
    replaced: bool = False


def _to_dish(dish: Dish | dict[str, Any]) -> Dish:
    if isinstance(dish, Dish):
        return dish
    try:
        return Dish.model_validate(dish)
    except PydanticValidationError as exc:
        error = exc.errors()[0]
        field_name = ".".join(str(part) for part in error.get("loc", ())) or "dish"
        raise ValidationError(f"Invalid dish {field_name}: {error['msg']}") from exc


class CartService:
    """Single-session cart with read-your-writes semantics."""

    def __init__(
        self,
        store: CartStore | None = None,
        *,
        customer_id: str | None = None,
        persistence: CartSnapshotStorage | None = None,
        metrics: MetricsRegistry | None = None,
    ):
        self._store = store or CartStore()
        self._customer_id = customer_id
        self._persistence = persistence
        self._metrics = metrics or default_metrics
        self._subscribers: list[Subscriber] = []

    @classmethod
    def restore(
        cls,
        customer_id: str,
        persistence: CartSnapshotStorage,
        *,
        metrics: MetricsRegistry | None = None,
    ) -> CartService:
        store = persistence.load(customer_id)
        return cls(store, customer_id=customer_id, persistence=persistence, metrics=metrics)

    # --- subscriptions -------------------------------------------------

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def close(self) -> None:
        self._subscribers.clear()

    def _changed(self, op: str) -> None:
        self._metrics.cart_mutations_total.inc(op=op)
        snapshot = self._store.snapshot()

        if self._persistence and self._customer_id:
            try:
                self._persistence.save(self._customer_id, snapshot)
            except Exception as exc:
                # The in-memory cart stays authoritative for this session
                logger.error("Failed to persist cart for %s: %s", self._customer_id, exc)

        for callback in list(self._subscribers):
            try:
                callback(snapshot)
            except Exception:
                logger.exception("Cart subscriber %r failed", callback)

    # --- reads ---------------------------------------------------------

    def snapshot(self) -> CartSnapshot:
        return self._store.snapshot()

    @property
    def lines(self) -> list[CartLine]:
        return self._store.lines

    @property
    def total_items(self) -> int:
        return self._store.total_items

    @property
    def total_price(self) -> Decimal:
        return self._store.total_price

    @property
    def restaurant_id(self) -> str | None:
        return self._store.restaurant_id

    @property
    def is_empty(self) -> bool:
        return self._store.is_empty

    def get_quantity(self, item_id: str) -> int:
        return self._store.get_quantity(item_id)

    def check_conflict(self, restaurant_id: str) -> StoreInvariantWarning | None:
        current = self._store.restaurant_id
        if current is None or current == str(restaurant_id):
            return None
        return StoreInvariantWarning(
            current_restaurant_id=current,
            requested_restaurant_id=str(restaurant_id),
            lines_count=len(self._store.lines),
        )

    # --- mutations -----------------------------------------------------

    def add_item(
        self,
        dish: Dish | dict[str, Any],
        restaurant_id: str,
        *,
        resolve_conflict: ConflictResolver | None = None,
    ) -> AddItemResult:
        """Add one unit of a dish.

        When the cart belongs to another restaurant, ``resolve_conflict`` is
        asked to keep the cart (the add is aborted) or replace it (cleared,
        then added). Without a resolver the cart is kept.
        """
        dish = _to_dish(dish)
        if not restaurant_id or not str(restaurant_id).strip():
            raise ValidationError("Restaurant id is required")
        restaurant_id = str(restaurant_id).strip()

        replaced = False
        warning = self.check_conflict(restaurant_id)
        if warning is not None:
            choice = resolve_conflict(warning) if resolve_conflict else ConflictChoice.KEEP
            if ConflictChoice(choice) is not ConflictChoice.REPLACE:
                logger.info(
                    "Kept cart of restaurant %s; dish %s of %s not added",
                    warning.current_restaurant_id,
                    dish.id,
                    restaurant_id,
                )
                return AddItemResult(added=False, warning=warning)
            self._store.clear()
            replaced = True
            logger.info("Replaced cart of restaurant %s with %s", warning.current_restaurant_id, restaurant_id)

        line = self._store.add_item(dish, restaurant_id)
        self._changed("replace_add" if replaced else "add")
        return AddItemResult(added=line is not None, line=line, warning=warning, replaced=replaced)

    def remove_item(self, item_id: str) -> bool:
        removed = self._store.remove_item(item_id)
        if removed:
            self._changed("remove")
        return removed

    def clear(self) -> None:
        was_empty = self._store.is_empty
        self._store.clear()
        if not was_empty:
            self._changed("clear")

    def remove_ordered(self, lines: Iterable[CartLine]) -> None:
        """Drop what was just ordered, keeping anything added meanwhile."""
        lines = list(lines)
        ordered = {line.item_id: line.quantity for line in lines}
        current = {line.item_id: line.quantity for line in self._store.lines}
        if current == ordered:
            self.clear()
            return
        if lines and self._store.restaurant_id != lines[0].restaurant_id:
            # Cart was replaced with another restaurant's dishes meanwhile
            return

        changed = False
        for item_id, quantity in ordered.items():
            changed = self._store.discard(item_id, quantity) or changed
        if changed:
            logger.info("Cart changed during checkout; kept %s item(s) not in the order", self._store.total_items)
            self._changed("checkout")
