from __future__ import annotations

from decimal import Decimal

import pytest

import kamu.core.config as config_module
from kamu.core.config import ApiConfig, load_settings
from kamu.core.exceptions import ConfigurationException

ENV_VARS = (
    "KAMU_ENV",
    "API_BASE_URL",
    "REDIS_URL",
    "DELIVERY_FEE",
    "HTTP_TIMEOUT",
    "LOG_LEVEL",
    "SENTRY_DSN",
    "PERSIST_CART",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    # Never read a developer's .env during tests
    monkeypatch.setattr(config_module, "load_dotenv", lambda *args, **kwargs: False)


def test_defaults() -> None:
    settings = load_settings()

    assert settings.environment == "development"
    assert settings.api.base_url == "http://localhost:80"
    assert settings.api.timeout == 30.0
    assert settings.delivery_fee == Decimal("2.99")
    assert settings.persist_cart is True
    assert settings.redis_url is None
    assert not settings.is_production


def test_environment_overrides(monkeypatch) -> None:
    monkeypatch.setenv("KAMU_ENV", "Production")
    monkeypatch.setenv("DELIVERY_FEE", "0")
    monkeypatch.setenv("HTTP_TIMEOUT", "5")
    monkeypatch.setenv("PERSIST_CART", "no")
    monkeypatch.setenv("REDIS_URL", "redis://cache:6379/0")

    settings = load_settings()

    assert settings.is_production
    assert settings.api.base_url == "https://api.kamuapp.com"
    assert settings.delivery_fee == Decimal("0")
    assert settings.api.timeout == 5.0
    assert settings.persist_cart is False
    assert settings.redis_url == "redis://cache:6379/0"


def test_explicit_base_url_wins(monkeypatch) -> None:
    monkeypatch.setenv("API_BASE_URL", "http://gateway.test/")

    assert load_settings().api.base_url == "http://gateway.test"


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("KAMU_ENV", "mars"),
        ("DELIVERY_FEE", "-1"),
        ("DELIVERY_FEE", "free"),
        ("HTTP_TIMEOUT", "0"),
        ("HTTP_TIMEOUT", "soon"),
    ],
)
def test_invalid_values_raise(monkeypatch, name, value) -> None:
    monkeypatch.setenv(name, value)

    with pytest.raises(ConfigurationException):
        load_settings()


def test_unknown_endpoint_raises() -> None:
    api = ApiConfig(base_url="http://localhost")

    assert api.endpoint("orders") == "/api/orders"
    with pytest.raises(ConfigurationException):
        api.endpoint("wallet")
