"""Application bootstrap wiring transport, storages and the session manager."""
from __future__ import annotations

from dataclasses import dataclass

from kamu.core import sentry_integration
from kamu.core.config import Settings, load_settings
from kamu.core.logging_config import setup_logging
from kamu.integrations.api_client import ApiClient
from kamu.integrations.delivery_client import DeliveryServiceClient
from kamu.integrations.order_client import OrderServiceClient
from kamu.integrations.payment_client import PaymentServiceClient
from kamu.integrations.redis_cart import CartSnapshotStorage
from kamu.services.session import SessionManager


@dataclass
class Application:
    settings: Settings
    api: ApiClient
    orders: OrderServiceClient
    payments: PaymentServiceClient
    delivery: DeliveryServiceClient
    sessions: SessionManager

    async def close(self) -> None:
        current = self.sessions.current
        if current is not None:
            self.sessions.end(current)
        await self.api.close()


def build_application(settings: Settings | None = None) -> Application:
    """Create runtime components from configuration."""
    settings = settings or load_settings()
    logger = setup_logging(settings.log_level)
    sentry_integration.init_sentry(dsn=settings.sentry_dsn, environment=settings.environment)

    api = ApiClient(settings.api)
    orders = OrderServiceClient(api, settings.api.endpoint("orders"))
    payments = PaymentServiceClient(api, settings.api.endpoint("payment"))
    delivery = DeliveryServiceClient(api, settings.api.endpoint("delivery"))

    cart_storage = CartSnapshotStorage(settings.redis_url) if settings.persist_cart else None
    if cart_storage is None:
        logger.info("Cart persistence disabled; carts live for the session only")

    sessions = SessionManager(
        settings,
        api,
        order_client=orders,
        payment_client=payments,
        cart_storage=cart_storage,
    )
    logger.info("Kamu client ready (%s, %s)", settings.environment, settings.api.base_url)
    return Application(
        settings=settings,
        api=api,
        orders=orders,
        payments=payments,
        delivery=delivery,
        sessions=sessions,
    )
