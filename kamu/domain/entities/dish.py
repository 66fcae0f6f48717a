"""Dish entity model."""
from __future__ import annotations

from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def coerce_id(value: Any) -> Any:
    """Backend ids arrive as ints or strings; the client keys everything by str."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str):
        return value.strip()
    return value


class Dish(BaseModel):
    """Purchasable menu item as shown on a restaurant page."""

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    id: str = Field(..., min_length=1, description="Dish id, stable within one menu")
    name: str = Field(..., min_length=1, max_length=200, description="Display name")
    price: Decimal = Field(..., gt=0, description="Unit price")
    description: str | None = Field(None, description="Menu description")
    restaurant_id: str | None = Field(None, alias="restaurantId")
    image: str | None = None

    @field_validator("id", "restaurant_id", mode="before")
    @classmethod
    def validate_id(cls, v: Any) -> Any:
        return coerce_id(v)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        name = v.strip()
        if not name:
            raise ValueError("Dish name must not be blank")
        return name
