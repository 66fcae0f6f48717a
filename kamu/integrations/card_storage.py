"""Saved payment cards and the preferred payment method."""
from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from kamu.core.exceptions import ValidationError
from kamu.domain.entities.card import CardDetails
from kamu.domain.order import PaymentMethod
from kamu.integrations.redis_store import RedisJsonStorage

logger = logging.getLogger(__name__)


class SavedCardStorage:
    """Saved-card provider for one customer.

    Cards never expire from storage; the customer removes them explicitly.
    """

    def __init__(
        self,
        customer_id: str,
        redis_url: str | None = None,
        *,
        storage: RedisJsonStorage | None = None,
    ):
        self.customer_id = str(customer_id)
        self._storage = storage or RedisJsonStorage(
            redis_url, namespace="kamu-payment-store", ttl_seconds=None
        )

    @property
    def _cards_key(self) -> str:
        return f"{self.customer_id}:cards"

    @property
    def _preferred_key(self) -> str:
        return f"{self.customer_id}:preferred"

    def _load_cards(self) -> list[CardDetails]:
        raw = self._storage.get_json(self._cards_key)
        if not isinstance(raw, list):
            return []
        cards = []
        for item in raw:
            try:
                cards.append(CardDetails.model_validate(item))
            except PydanticValidationError as exc:
                logger.warning("Skipping unreadable saved card for %s: %s", self.customer_id, exc)
        return cards

    def _save_cards(self, cards: list[CardDetails]) -> None:
        self._storage.set_json(self._cards_key, [card.to_dict() for card in cards])

    async def list_saved_cards(self) -> list[CardDetails]:
        return self._load_cards()

    async def get_card(self, card_id: str) -> CardDetails | None:
        for card in self._load_cards():
            if card.id == str(card_id):
                return card
        return None

    async def add_card(self, details: CardDetails | dict[str, Any]) -> CardDetails:
        if not isinstance(details, CardDetails):
            try:
                details = CardDetails.model_validate(details)
            except PydanticValidationError as exc:
                raise ValidationError(f"Invalid card details: {exc.errors()[0]['msg']}") from exc
        if details.is_expired():
            raise ValidationError("Card has expired")

        cards = [card for card in self._load_cards() if card.id != details.id]
        cards.append(details)
        self._save_cards(cards)
        logger.info("Saved card %s for customer %s", details.label, self.customer_id)
        return details

    async def delete_card(self, card_id: str) -> None:
        cards = self._load_cards()
        remaining = [card for card in cards if card.id != str(card_id)]
        if len(remaining) == len(cards):
            return
        self._save_cards(remaining)
        logger.info("Removed card %s for customer %s", card_id, self.customer_id)

    async def get_preferred_method(self) -> str | None:
        method = self._storage.get_json(self._preferred_key)
        return method if method in PaymentMethod.all() else None

    async def save_preferred_method(self, method: str) -> None:
        normalized = PaymentMethod.normalize(method)
        if normalized not in PaymentMethod.all():
            raise ValidationError(f"Unsupported payment method: {method}")
        self._storage.set_json(self._preferred_key, normalized)

    def forget(self) -> None:
        self._storage.delete(self._cards_key)
        self._storage.delete(self._preferred_key)
