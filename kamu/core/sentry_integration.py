"""Sentry integration for error tracking."""
from __future__ import annotations

import logging
import os
from typing import Any

import sentry_sdk
from sentry_sdk.integrations.logging import LoggingIntegration

logger = logging.getLogger(__name__)

_enabled = False


def init_sentry(
    dsn: str | None = None,
    environment: str = "production",
    enable_logging: bool = True,
    sample_rate: float = 1.0,
    traces_sample_rate: float = 0.1,
) -> bool:
    """Initialize Sentry error tracking.

    Args:
        dsn: Project DSN; falls back to SENTRY_DSN
        environment: Environment name (production, staging, development)
        enable_logging: Turn ERROR log records into Sentry events
        sample_rate: Error sampling rate (1.0 = 100%)
        traces_sample_rate: Performance tracing rate (0.1 = 10%)

    Returns:
        True if Sentry was initialized successfully
    """
    global _enabled

    sentry_dsn = dsn or os.getenv("SENTRY_DSN")
    if not sentry_dsn:
        logger.info("SENTRY_DSN not set - error tracking disabled")
        return False

    integrations = []
    if enable_logging:
        integrations.append(
            LoggingIntegration(
                level=logging.INFO,
                event_level=logging.ERROR,
            )
        )

    try:
        sentry_sdk.init(
            dsn=sentry_dsn,
            environment=environment,
            integrations=integrations,
            sample_rate=sample_rate,
            traces_sample_rate=traces_sample_rate,
            send_default_pii=False,
            release=os.getenv("KAMU_RELEASE", "unknown"),
        )
    except Exception as e:
        logger.error("Failed to initialize Sentry: %s", e)
        return False

    _enabled = True
    logger.info("Sentry initialized for %s environment", environment)
    return True


def is_enabled() -> bool:
    return _enabled


def capture_exception(error: Exception, **extra: Any) -> None:
    """Capture exception and send to Sentry with additional context."""
    if not _enabled:
        return

    try:
        with sentry_sdk.new_scope() as scope:
            for key, value in extra.items():
                scope.set_context(key, value)
            sentry_sdk.capture_exception(error)
    except Exception as e:
        logger.error("Failed to capture exception in Sentry: %s", e)


def set_user_context(customer_id: str, **extra: Any) -> None:
    """Attach the signed-in customer to subsequent Sentry events."""
    if not _enabled:
        return

    try:
        sentry_sdk.set_user({"id": str(customer_id), **extra})
    except Exception as e:
        logger.error("Failed to set user context in Sentry: %s", e)


def add_breadcrumb(message: str, category: str = "default", level: str = "info", **data: Any) -> None:
    """Add breadcrumb for debugging context."""
    if not _enabled:
        return

    try:
        sentry_sdk.add_breadcrumb(message=message, category=category, level=level, data=data)
    except Exception as e:
        logger.error("Failed to add breadcrumb in Sentry: %s", e)
