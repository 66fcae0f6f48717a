"""
Payment service client.

Declined payments come back as ``PaymentResult(success=False)``; only
transport failures raise ``PaymentError``.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from kamu.core.cart_math import to_money
from kamu.core.exceptions import ApiError, PaymentError
from kamu.domain.entities.payment import PaymentResult
from kamu.integrations.api_client import ApiClient

logger = logging.getLogger(__name__)

# Statuses the service uses for a declined capture
DECLINE_STATUSES = frozenset({400, 402, 422})


class PaymentServiceClient:
    """Service for capturing card payments against an order."""

    def __init__(self, api: ApiClient, endpoint: str = "/api/payments"):
        self.api = api
        self.endpoint = endpoint.rstrip("/")

    async def process_payment(
        self,
        amount: Decimal,
        payment_method_id: str,
        order_id: str,
    ) -> PaymentResult:
        amount = to_money(amount)
        if amount <= 0:
            return PaymentResult.declined("Invalid payment amount")
        if not payment_method_id:
            return PaymentResult.declined("Payment method not selected")
        if not order_id:
            return PaymentResult.declined("Invalid order reference")

        payload = {
            "amount": float(amount),
            "paymentMethodId": str(payment_method_id),
            "orderId": str(order_id),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        logger.info("Processing payment of %s for order %s", amount, order_id)

        try:
            body = await self.api.post(f"{self.endpoint}/process", json=payload)
        except ApiError as exc:
            if exc.status in DECLINE_STATUSES:
                logger.info("Payment for order %s declined: %s", order_id, exc.message)
                return PaymentResult.declined(exc.message)
            raise PaymentError(exc.message, order_id=str(order_id)) from exc

        result = self._parse_result(body, order_id)
        if result.success:
            logger.info("Payment for order %s captured (txn %s)", order_id, result.transaction_id)
        else:
            logger.info("Payment for order %s declined: %s", order_id, result.error)
        return result

    @staticmethod
    def _parse_result(body: Any, order_id: str) -> PaymentResult:
        if not isinstance(body, dict):
            raise PaymentError("Unexpected payment response", order_id=str(order_id))
        try:
            result = PaymentResult.model_validate(body)
        except PydanticValidationError as exc:
            raise PaymentError("Unexpected payment response", order_id=str(order_id)) from exc
        if not result.success and not result.error:
            result.error = "Payment failed"
        return result

    async def get_payment_by_order(self, order_id: str) -> dict[str, Any] | None:
        try:
            body = await self.api.get(f"{self.endpoint}/order/{order_id}")
        except ApiError as exc:
            if exc.status == 404:
                return None
            raise
        return body if isinstance(body, dict) else None
