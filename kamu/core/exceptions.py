"""Custom exceptions for the Kamu client."""
from __future__ import annotations

from dataclasses import dataclass


class KamuException(Exception):
    """Base exception for all Kamu client errors."""

    def __init__(self, message: str, *args: object) -> None:
        super().__init__(message, *args)
        self.message = message


class ValidationError(KamuException):
    """Checkout or cart input preconditions are not met."""

    pass


class OrderCreationError(KamuException):
    """Order service was unreachable or rejected the order."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class PaymentError(KamuException):
    """Payment was declined or the payment service was unreachable."""

    def __init__(self, message: str, order_id: str | None = None) -> None:
        super().__init__(message)
        self.order_id = order_id


class ApiError(KamuException):
    """Transport-level or non-2xx response from a backend API."""

    def __init__(self, message: str, status: int | None = None, path: str | None = None) -> None:
        super().__init__(message)
        self.status = status
        self.path = path

    @property
    def is_network_error(self) -> bool:
        return self.status is None


class ConfigurationException(KamuException):
    """Configuration errors."""

    pass


@dataclass(frozen=True)
class StoreInvariantWarning:
    """Cart already holds lines of another restaurant.

    Returned to the caller so it can choose between keeping the current cart
    and replacing it. Never raised.
    """

    current_restaurant_id: str
    requested_restaurant_id: str
    lines_count: int

    @property
    def message(self) -> str:
        return (
            f"Your cart contains {self.lines_count} item(s) from another restaurant. "
            "Replace the cart to continue?"
        )
