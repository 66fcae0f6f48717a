"""Saved payment card entity."""
from __future__ import annotations

from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from kamu.domain.entities.dish import coerce_id


class CardDetails(BaseModel):
    """Tokenized card as kept by the saved-card provider."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., min_length=1)
    type: str = Field("card", description="Card brand, e.g. visa")
    last4: str = Field(..., description="Last four digits of the card number")
    expiry_month: int = Field(..., ge=1, le=12, alias="expiryMonth")
    expiry_year: int = Field(..., ge=2000, alias="expiryYear")
    cardholder_name: str | None = Field(None, alias="cardholderName")

    @field_validator("id", mode="before")
    @classmethod
    def validate_id(cls, v: Any) -> Any:
        return coerce_id(v)

    @field_validator("last4")
    @classmethod
    def validate_last4(cls, v: str) -> str:
        digits = v.strip()
        if len(digits) != 4 or not digits.isdigit():
            raise ValueError("last4 must be exactly four digits")
        return digits

    def is_expired(self, today: date | None = None) -> bool:
        today = today or date.today()
        return (self.expiry_year, self.expiry_month) < (today.year, today.month)

    @property
    def label(self) -> str:
        return f"{self.type.upper()} •••• {self.last4}"

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)
