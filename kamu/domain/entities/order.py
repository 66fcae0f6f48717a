"""Order entity models exchanged with the order service."""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from kamu.domain.entities.dish import coerce_id
from kamu.domain.order import OrderStatus


class OrderItem(BaseModel):
    """Single line of an order."""

    model_config = ConfigDict(populate_by_name=True)

    food_item_id: str = Field(..., alias="foodItemId")
    quantity: int = Field(..., ge=1)
    price: Decimal = Field(..., ge=0)
    name: str | None = None

    @field_validator("food_item_id", mode="before")
    @classmethod
    def validate_id(cls, v: Any) -> Any:
        return coerce_id(v)

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "foodItemId": self.food_item_id,
            "quantity": self.quantity,
            "price": float(self.price),
        }
        if self.name:
            payload["name"] = self.name
        return payload


class Order(BaseModel):
    """Order as returned by the order service."""

    model_config = ConfigDict(populate_by_name=True)

    id: str | None = None
    customer_id: str = Field(..., alias="customerId")
    restaurant_id: str = Field(..., alias="restaurantId")
    total_bill: Decimal = Field(..., ge=0, alias="totalBill")
    delivery_fee: Decimal | None = Field(None, ge=0, alias="deliveryFee")
    status: str = OrderStatus.PENDING
    rider_id: str | None = Field(None, alias="riderId")
    payment_id: str | None = Field(None, alias="paymentId")
    delivery_id: str | None = Field(None, alias="deliveryId")
    created_at: datetime | None = Field(None, alias="createdAt")
    updated_at: datetime | None = Field(None, alias="updatedAt")
    items: list[OrderItem] = Field(default_factory=list)

    @field_validator(
        "id", "customer_id", "restaurant_id", "rider_id", "payment_id", "delivery_id", mode="before"
    )
    @classmethod
    def validate_ids(cls, v: Any) -> Any:
        return coerce_id(v)

    @field_validator("status", mode="before")
    @classmethod
    def validate_status(cls, v: Any) -> Any:
        return OrderStatus.normalize(v) if v is not None else OrderStatus.PENDING

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Order:
        return cls.model_validate(data)
