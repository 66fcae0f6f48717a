"""Payment result entity."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class PaymentResult(BaseModel):
    """Outcome of a capture request; declines are data, not exceptions."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    transaction_id: str | None = Field(None, alias="transactionId")
    error: str | None = None

    @classmethod
    def declined(cls, error: str) -> PaymentResult:
        return cls(success=False, error=error)
