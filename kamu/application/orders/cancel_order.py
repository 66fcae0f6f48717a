"""Use case: cancel an order before the kitchen starts on it."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from kamu.core.exceptions import ApiError
from kamu.domain.entities.order import Order
from kamu.domain.order import OrderStatus
from kamu.domain.order_fsm import can_cancel, validate_order_transition

logger = logging.getLogger(__name__)


@dataclass
class OrderActionResult:
    ok: bool
    error_key: str | None = None
    order: Order | None = None
    message: str | None = None


async def cancel_order(order_id: str, *, order_client: Any) -> OrderActionResult:
    if not order_client:
        return OrderActionResult(False, "service_unavailable")

    try:
        order = await order_client.get_order(order_id)
    except ApiError as exc:
        if exc.status == 404:
            return OrderActionResult(False, "not_found")
        logger.warning("Could not load order %s for cancellation: %s", order_id, exc.message)
        return OrderActionResult(False, "service_unavailable", message=exc.message)

    if order.status == OrderStatus.CANCELLED:
        return OrderActionResult(False, "already_cancelled", order=order)

    check = validate_order_transition(current_status=order.status, target_status=OrderStatus.CANCELLED)
    if not can_cancel(order.status) or not check.allowed:
        return OrderActionResult(False, "not_cancellable", order=order, message=check.reason)

    try:
        updated = await order_client.cancel_order(order_id)
    except ApiError as exc:
        logger.warning("Cancellation of order %s failed: %s", order_id, exc.message)
        return OrderActionResult(False, "processing_error", order=order, message=exc.message)

    logger.info("Order %s cancelled", order_id)
    return OrderActionResult(True, order=updated)
