"""Integrations package - backend APIs and local storage."""

from kamu.integrations.api_client import ApiClient
from kamu.integrations.card_storage import SavedCardStorage
from kamu.integrations.delivery_client import DeliveryServiceClient
from kamu.integrations.order_client import OrderServiceClient
from kamu.integrations.payment_client import PaymentServiceClient
from kamu.integrations.redis_cart import CART_STORAGE_KEY, CartSnapshotStorage
from kamu.integrations.redis_store import RedisJsonStorage

__all__ = [
    "ApiClient",
    "CART_STORAGE_KEY",
    "CartSnapshotStorage",
    "DeliveryServiceClient",
    "OrderServiceClient",
    "PaymentServiceClient",
    "RedisJsonStorage",
    "SavedCardStorage",
]
