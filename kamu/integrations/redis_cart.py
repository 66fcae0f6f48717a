"""Persisted cart snapshots."""
from __future__ import annotations

import logging
from typing import Any

from kamu.domain.cart import CartSnapshot, CartStore
from kamu.integrations.redis_store import RedisJsonStorage

logger = logging.getLogger(__name__)

CART_STORAGE_KEY = "kamu-cart-store"


class CartSnapshotStorage:
    """Cart snapshot under a single named key, one document per customer.

    The document holds ``{lines, totalItems, totalPrice}``; totals are kept
    for readers of the raw key only and are recomputed on load.
    """

    CART_EXPIRY_SECONDS = 24 * 60 * 60

    def __init__(self, redis_url: str | None = None, *, storage: RedisJsonStorage | None = None):
        self._storage = storage or RedisJsonStorage(
            redis_url,
            namespace=CART_STORAGE_KEY,
            ttl_seconds=self.CART_EXPIRY_SECONDS,
        )

    @staticmethod
    def _name(customer_id: str) -> str:
        return str(customer_id)

    def load(self, customer_id: str) -> CartStore:
        payload = self._storage.get_json(self._name(customer_id))
        store = CartStore.from_snapshot(payload)
        if not store.is_empty:
            logger.info("Restored cart for customer %s (%s lines)", customer_id, len(store.lines))
        return store

    def save(self, customer_id: str, snapshot: CartSnapshot) -> None:
        if snapshot.is_empty:
            self._storage.delete(self._name(customer_id))
            return
        self._storage.set_json(self._name(customer_id), snapshot.to_dict())

    def load_raw(self, customer_id: str) -> dict[str, Any] | None:
        payload = self._storage.get_json(self._name(customer_id))
        return payload if isinstance(payload, dict) else None

    def forget(self, customer_id: str) -> None:
        self._storage.delete(self._name(customer_id))
