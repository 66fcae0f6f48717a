"""Order domain types and status enums."""
from __future__ import annotations


class OrderStatus:
    """Order lifecycle statuses as reported by the order service."""

    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    PREPARING = "PREPARING"
    READY_FOR_PICKUP = "READY_FOR_PICKUP"
    OUT_FOR_DELIVERY = "OUT_FOR_DELIVERY"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"
    FAILED = "FAILED"

    PROGRESSION = (
        PENDING,
        CONFIRMED,
        PREPARING,
        READY_FOR_PICKUP,
        OUT_FOR_DELIVERY,
        DELIVERED,
    )

    @classmethod
    def all(cls) -> tuple[str, ...]:
        return cls.PROGRESSION + (cls.CANCELLED, cls.FAILED)

    @classmethod
    def normalize(cls, status: str | None) -> str | None:
        if status is None:
            return None
        value = str(status).strip().upper().replace("-", "_").replace(" ", "_")
        mapping = {
            "NEW": cls.PENDING,
            "ACCEPTED": cls.CONFIRMED,
            "READY": cls.READY_FOR_PICKUP,
            "DELIVERING": cls.OUT_FOR_DELIVERY,
            "COMPLETED": cls.DELIVERED,
            "CANCELED": cls.CANCELLED,
        }
        return mapping.get(value, value)


class PaymentMethod:
    """Payment methods accepted at checkout."""

    CASH = "cash"
    CARD = "card"

    # Settled outside the app (on delivery), no capture at checkout
    DEFERRED = frozenset({CASH})

    @classmethod
    def all(cls) -> frozenset[str]:
        return frozenset({cls.CASH, cls.CARD})

    @classmethod
    def normalize(cls, method: str | None) -> str | None:
        if not method:
            return None
        return str(method).strip().lower()

    @classmethod
    def requires_capture(cls, method: str) -> bool:
        return cls.normalize(method) not in cls.DEFERRED
