"""Services package."""

from kamu.services.cart_service import AddItemResult, CartService, ConflictChoice
from kamu.services.checkout_service import (
    CheckoutOrchestrator,
    CheckoutOutcome,
    CheckoutRequest,
    CheckoutState,
)
from kamu.services.session import AuthSession, SessionManager, UserSession

__all__ = [
    "AddItemResult",
    "AuthSession",
    "CartService",
    "CheckoutOrchestrator",
    "CheckoutOutcome",
    "CheckoutRequest",
    "CheckoutState",
    "ConflictChoice",
    "SessionManager",
    "UserSession",
]
