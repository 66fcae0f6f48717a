"""Delivery trip client used for order tracking."""
from __future__ import annotations

import logging
from typing import Any

from kamu.core.exceptions import ApiError, ValidationError
from kamu.domain.entities.trip import Trip, TripStatus
from kamu.integrations.api_client import ApiClient

logger = logging.getLogger(__name__)


class DeliveryServiceClient:
    def __init__(self, api: ApiClient, endpoint: str = "/api/trips"):
        self.api = api
        self.endpoint = endpoint.rstrip("/")

    async def get_trip(self, trip_id: str) -> Trip:
        body = await self.api.get(f"{self.endpoint}/{trip_id}")
        return Trip.model_validate(body)

    async def get_trip_for_order(self, order_id: str) -> Trip | None:
        try:
            body = await self.api.get(f"{self.endpoint}/order/{order_id}")
        except ApiError as exc:
            if exc.status == 404:
                return None
            raise
        if not body:
            return None
        if isinstance(body, list):
            body = body[0] if body else None
            if body is None:
                return None
        return Trip.model_validate(body)

    async def update_trip_status(self, trip_id: str, status: str) -> Trip:
        normalized = str(status).strip().lower()
        if normalized not in TripStatus.all():
            raise ValidationError(f"Unsupported trip status: {status}")
        body: Any = await self.api.patch(f"{self.endpoint}/{trip_id}", json={"status": normalized})
        logger.info("Trip %s moved to %s", trip_id, normalized)
        return Trip.model_validate(body)
