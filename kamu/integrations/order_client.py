"""Order service client."""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Iterable

from pydantic import ValidationError as PydanticValidationError

from kamu.core.exceptions import ApiError, OrderCreationError
from kamu.domain.entities.order import Order, OrderItem
from kamu.domain.order import OrderStatus
from kamu.integrations.api_client import ApiClient

logger = logging.getLogger(__name__)


def _unwrap_order(body: Any) -> dict[str, Any]:
    # Mutations answer {"message": ..., "order": {...}}, reads answer the order itself
    if isinstance(body, dict) and isinstance(body.get("order"), dict):
        return body["order"]
    if isinstance(body, dict):
        return body
    raise ApiError("Unexpected order payload")


def _parse_order(body: Any) -> Order:
    try:
        return Order.from_api(_unwrap_order(body))
    except PydanticValidationError as exc:
        raise ApiError(f"Malformed order payload: {exc.errors()[0]['msg']}") from exc


class OrderServiceClient:
    """Thin façade over the remote order API."""

    def __init__(self, api: ApiClient, endpoint: str = "/api/orders"):
        self.api = api
        self.endpoint = endpoint.rstrip("/")

    async def create_order(
        self,
        customer_id: str,
        restaurant_id: str,
        items: Iterable[OrderItem],
        total_bill: Decimal,
        delivery_fee: Decimal,
        status: str = OrderStatus.PENDING,
    ) -> Order:
        """Create an order; every failure surfaces as OrderCreationError."""
        payload = {
            "customerId": str(customer_id),
            "restaurantId": str(restaurant_id),
            "items": [item.to_payload() for item in items],
            "totalBill": float(total_bill),
            "deliveryFee": float(delivery_fee),
            "status": status,
        }
        try:
            body = await self.api.post(self.endpoint, json=payload)
            order = _parse_order(body)
        except ApiError as exc:
            logger.warning("Order creation failed for restaurant %s: %s", restaurant_id, exc.message)
            raise OrderCreationError(exc.message, status=exc.status) from exc

        if not order.id:
            raise OrderCreationError("Order service did not return an order id")
        logger.info("Created order %s (%s) for customer %s", order.id, order.status, customer_id)
        return order

    async def get_order(self, order_id: str) -> Order:
        body = await self.api.get(f"{self.endpoint}/{order_id}")
        return _parse_order(body)

    async def get_latest_order(self) -> Order | None:
        try:
            body = await self.api.get(f"{self.endpoint}/latest")
        except ApiError as exc:
            if exc.status == 404:
                return None
            raise
        if not body:
            return None
        return _parse_order(body)

    async def update_order(self, order_id: str, **changes: Any) -> Order:
        payload = {}
        for key, value in changes.items():
            if isinstance(value, Decimal):
                value = float(value)
            payload[key] = value
        body = await self.api.put(f"{self.endpoint}/{order_id}", json=payload)
        return _parse_order(body)

    async def cancel_order(self, order_id: str) -> Order:
        return await self.update_order(order_id, status=OrderStatus.CANCELLED)
