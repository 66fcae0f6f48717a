"""Domain package."""

from .cart import CartLine, CartSnapshot, CartStore
from .entities import CardDetails, Dish, Location, Order, OrderItem, PaymentResult, Trip, TripStatus
from .order import OrderStatus, PaymentMethod

__all__ = [
    # Cart
    "CartLine",
    "CartSnapshot",
    "CartStore",
    # Entities
    "CardDetails",
    "Dish",
    "Location",
    "Order",
    "OrderItem",
    "PaymentResult",
    "Trip",
    "TripStatus",
    # Value objects
    "OrderStatus",
    "PaymentMethod",
]
