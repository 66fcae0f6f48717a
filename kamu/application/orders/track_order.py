"""Use cases: order tracking snapshot and status polling."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, AsyncIterator

from kamu.core.exceptions import ApiError
from kamu.domain.entities.order import Order
from kamu.domain.entities.trip import Trip
from kamu.domain.order import OrderStatus
from kamu.domain.order_fsm import is_terminal, order_progress

logger = logging.getLogger(__name__)


@dataclass
class TrackingResult:
    ok: bool
    error_key: str | None = None
    order: Order | None = None
    progress_step: int | None = None
    total_steps: int = len(OrderStatus.PROGRESSION)
    trip: Trip | None = None

    @property
    def is_finished(self) -> bool:
        return self.order is not None and is_terminal(self.order.status)


async def track_order(
    order_id: str,
    *,
    order_client: Any,
    delivery_client: Any | None = None,
) -> TrackingResult:
    try:
        order = await order_client.get_order(order_id)
    except ApiError as exc:
        if exc.status == 404:
            return TrackingResult(False, "not_found")
        return TrackingResult(False, "service_unavailable")

    trip = None
    if delivery_client is not None and order.status == OrderStatus.OUT_FOR_DELIVERY:
        try:
            trip = await delivery_client.get_trip_for_order(order_id)
        except ApiError as exc:
            # Tracking still works without the rider position
            logger.warning("Trip lookup for order %s failed: %s", order_id, exc.message)

    return TrackingResult(True, order=order, progress_step=order_progress(order.status), trip=trip)


async def watch_order(
    order_id: str,
    *,
    order_client: Any,
    interval: float = 10.0,
    max_errors: int = 3,
) -> AsyncIterator[Order]:
    """Yield the order each time its status changes, until it is terminal.

    Gives up after ``max_errors`` consecutive failed polls.
    """
    last_status = None
    errors = 0
    while True:
        try:
            order = await order_client.get_order(order_id)
        except ApiError as exc:
            errors += 1
            logger.warning("Polling order %s failed (%s/%s): %s", order_id, errors, max_errors, exc.message)
            if errors >= max_errors:
                raise
            await asyncio.sleep(interval)
            continue

        errors = 0
        if order.status != last_status:
            last_status = order.status
            yield order
        if is_terminal(order.status):
            return
        await asyncio.sleep(interval)
