"""Delivery trip entity."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from kamu.domain.entities.dish import coerce_id


class TripStatus:
    PENDING = "pending"
    ACCEPTED = "accepted"
    PICKED_UP = "picked_up"
    DELIVERED = "delivered"
    FAILED = "failed"

    @classmethod
    def all(cls) -> frozenset[str]:
        return frozenset({cls.PENDING, cls.ACCEPTED, cls.PICKED_UP, cls.DELIVERED, cls.FAILED})


class Location(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class Trip(BaseModel):
    """Rider trip attached to an order."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    order_id: str = Field(..., alias="orderId")
    rider_id: str | None = Field(None, alias="riderId")
    customer_id: str | None = Field(None, alias="customerId")
    status: str = TripStatus.PENDING
    start_location: Location | None = Field(None, alias="startLocation")
    end_location: Location | None = Field(None, alias="endLocation")
    current_location: Location | None = Field(None, alias="currentLocation")

    @field_validator("id", "order_id", "rider_id", "customer_id", mode="before")
    @classmethod
    def validate_ids(cls, v: Any) -> Any:
        return coerce_id(v)

    @field_validator("status", mode="before")
    @classmethod
    def validate_status(cls, v: Any) -> Any:
        return str(v).strip().lower() if v is not None else TripStatus.PENDING

    @property
    def is_finished(self) -> bool:
        return self.status in (TripStatus.DELIVERED, TripStatus.FAILED)
