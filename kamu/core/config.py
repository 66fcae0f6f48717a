"""Environment-driven configuration objects for the client."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation

from dotenv import load_dotenv

from kamu.core.exceptions import ConfigurationException

BASE_URLS = {
    "development": "http://localhost:80",
    "local": "http://10.0.2.2:80",
    "staging": "https://staging-api.kamuapp.com",
    "production": "https://api.kamuapp.com",
}

DEFAULT_ENDPOINTS = {
    "auth": "/api/auth",
    "restaurants": "/api/restaurant",
    "users": "/api/users",
    "orders": "/api/orders",
    "delivery": "/api/trips",
    "payment": "/api/payments",
    "promotion": "/api/promotion",
}


def _str_to_bool(value: str | None) -> bool:
    if value is None:
        return False
    return value.strip().lower() in {"true", "1", "yes", "y"}


def _parse_money(name: str, raw: str) -> Decimal:
    try:
        value = Decimal(raw.strip())
    except (InvalidOperation, AttributeError) as exc:
        raise ConfigurationException(f"{name} must be a decimal amount, got {raw!r}") from exc
    if value < 0:
        raise ConfigurationException(f"{name} must not be negative")
    return value


def _parse_float(name: str, raw: str) -> float:
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigurationException(f"{name} must be a number, got {raw!r}") from exc
    if value <= 0:
        raise ConfigurationException(f"{name} must be positive")
    return value


@dataclass(slots=True)
class ApiConfig:
    base_url: str
    timeout: float = 30.0
    endpoints: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_ENDPOINTS))

    def endpoint(self, name: str) -> str:
        try:
            return self.endpoints[name]
        except KeyError as exc:
            raise ConfigurationException(f"Unknown API endpoint: {name}") from exc


@dataclass(slots=True)
class Settings:
    environment: str
    api: ApiConfig
    redis_url: str | None
    delivery_fee: Decimal
    log_level: str = "INFO"
    sentry_dsn: str | None = None
    persist_cart: bool = True

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


def load_settings() -> Settings:
    """Load environment variables once and expose typed settings."""
    load_dotenv()

    environment = os.getenv("KAMU_ENV", "development").strip().lower()
    if environment not in BASE_URLS:
        raise ConfigurationException(
            f"KAMU_ENV must be one of {', '.join(sorted(BASE_URLS))}, got {environment!r}"
        )

    base_url = os.getenv("API_BASE_URL") or BASE_URLS[environment]
    api = ApiConfig(
        base_url=base_url.rstrip("/"),
        timeout=_parse_float("HTTP_TIMEOUT", os.getenv("HTTP_TIMEOUT", "30")),
    )

    persist_raw = os.getenv("PERSIST_CART")
    persist_cart = True if persist_raw is None else _str_to_bool(persist_raw)

    return Settings(
        environment=environment,
        api=api,
        redis_url=os.getenv("REDIS_URL") or None,
        delivery_fee=_parse_money("DELIVERY_FEE", os.getenv("DELIVERY_FEE", "2.99")),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        sentry_dsn=os.getenv("SENTRY_DSN") or None,
        persist_cart=persist_cart,
    )
