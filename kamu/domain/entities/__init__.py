"""Domain entities."""

from .card import CardDetails
from .dish import Dish
from .order import Order, OrderItem
from .payment import PaymentResult
from .trip import Location, Trip, TripStatus

__all__ = [
    "CardDetails",
    "Dish",
    "Location",
    "Order",
    "OrderItem",
    "PaymentResult",
    "Trip",
    "TripStatus",
]
