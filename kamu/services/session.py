"""Per-user session lifecycle: cart and checkout live from sign-in to sign-out."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field

from kamu.core import sentry_integration
from kamu.core.config import Settings
from kamu.integrations.api_client import ApiClient
from kamu.integrations.card_storage import SavedCardStorage
from kamu.integrations.order_client import OrderServiceClient
from kamu.integrations.payment_client import PaymentServiceClient
from kamu.integrations.redis_cart import CartSnapshotStorage
from kamu.integrations.redis_store import RedisJsonStorage
from kamu.services.cart_service import CartService
from kamu.services.checkout_service import CheckoutOrchestrator

logger = logging.getLogger(__name__)


@dataclass
class AuthSession:
    """Signed-in customer as provided by the auth service."""

    customer_id: str | None
    token: str | None = None
    revoked: bool = False

    @property
    def is_valid(self) -> bool:
        return bool(self.customer_id) and bool(self.token) and not self.revoked


@dataclass
class UserSession:
    auth: AuthSession
    cart: CartService
    checkout: CheckoutOrchestrator
    cards: SavedCardStorage
    active: bool = field(default=True)

    @property
    def customer_id(self) -> str:
        return str(self.auth.customer_id)


class SessionManager:
    """Creates and tears down per-customer state.

    Nothing cart-related is module-global: each sign-in gets a fresh
    CartService (restored from the persisted snapshot when enabled).
    """

    def __init__(
        self,
        settings: Settings,
        api: ApiClient,
        *,
        order_client: OrderServiceClient | None = None,
        payment_client: PaymentServiceClient | None = None,
        cart_storage: CartSnapshotStorage | None = None,
        card_store: RedisJsonStorage | None = None,
    ):
        self.settings = settings
        self.api = api
        self.order_client = order_client or OrderServiceClient(api, settings.api.endpoint("orders"))
        self.payment_client = payment_client or PaymentServiceClient(
            api, settings.api.endpoint("payment")
        )
        self.cart_storage = cart_storage
        if self.cart_storage is None and settings.persist_cart:
            self.cart_storage = CartSnapshotStorage(settings.redis_url)
        self.card_store = card_store or RedisJsonStorage(
            settings.redis_url, namespace="kamu-payment-store", ttl_seconds=None
        )
        self._current: UserSession | None = None

    @property
    def current(self) -> UserSession | None:
        return self._current

    def start(self, auth: AuthSession) -> UserSession:
        if not auth.is_valid:
            raise ValueError("Cannot start a session without a signed-in customer")
        if self._current is not None:
            self.end(self._current)

        customer_id = str(auth.customer_id)
        if self.cart_storage is not None:
            cart = CartService.restore(customer_id, self.cart_storage)
        else:
            cart = CartService(customer_id=customer_id)

        cards = SavedCardStorage(customer_id, storage=self.card_store)
        checkout = CheckoutOrchestrator(
            cart,
            self.order_client,
            self.payment_client,
            cards,
            auth,
            delivery_fee=self.settings.delivery_fee,
        )
        self.api.set_token_provider(lambda: auth.token if not auth.revoked else None)
        sentry_integration.set_user_context(customer_id)

        self._current = UserSession(auth=auth, cart=cart, checkout=checkout, cards=cards)
        logger.info("Session started for customer %s", customer_id)
        return self._current

    def end(self, session: UserSession, *, forget_cart: bool = False) -> None:
        session.cart.close()
        session.auth.revoked = True
        session.active = False
        if forget_cart and self.cart_storage is not None:
            self.cart_storage.forget(session.customer_id)
        if self._current is session:
            self._current = None
            self.api.set_token_provider(None)
        logger.info("Session ended for customer %s", session.customer_id)
