"""Order status transition rules (single source of truth)."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from kamu.domain.order import OrderStatus

ALLOWED_TRANSITIONS: Mapping[str, frozenset[str]] = {
    OrderStatus.PENDING: frozenset(
        {
            OrderStatus.CONFIRMED,
            OrderStatus.CANCELLED,
            OrderStatus.FAILED,
        }
    ),
    OrderStatus.CONFIRMED: frozenset(
        {
            OrderStatus.PREPARING,
            OrderStatus.CANCELLED,
            OrderStatus.FAILED,
        }
    ),
    OrderStatus.PREPARING: frozenset(
        {
            OrderStatus.READY_FOR_PICKUP,
            OrderStatus.FAILED,
        }
    ),
    OrderStatus.READY_FOR_PICKUP: frozenset(
        {
            OrderStatus.OUT_FOR_DELIVERY,
            OrderStatus.FAILED,
        }
    ),
    OrderStatus.OUT_FOR_DELIVERY: frozenset(
        {
            OrderStatus.DELIVERED,
            OrderStatus.FAILED,
        }
    ),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
    OrderStatus.FAILED: frozenset(),
}

TERMINAL_STATUSES = frozenset(
    {
        OrderStatus.DELIVERED,
        OrderStatus.CANCELLED,
        OrderStatus.FAILED,
    }
)

# Kitchen has not started yet
CANCELLABLE_STATUSES = frozenset(
    {
        OrderStatus.PENDING,
        OrderStatus.CONFIRMED,
    }
)


@dataclass(frozen=True, slots=True)
class TransitionValidationResult:
    allowed: bool
    reason: str | None = None


def is_terminal(status: str | None) -> bool:
    return OrderStatus.normalize(status) in TERMINAL_STATUSES


def can_cancel(status: str | None) -> bool:
    return OrderStatus.normalize(status) in CANCELLABLE_STATUSES


def order_progress(status: str | None) -> int | None:
    """Step index of the status in the delivery progression.

    Returns None for side branches (cancelled/failed) and unknown statuses.
    """
    normalized = OrderStatus.normalize(status)
    try:
        return OrderStatus.PROGRESSION.index(normalized)
    except ValueError:
        return None


def validate_order_transition(
    *,
    current_status: str | None,
    target_status: str | None,
) -> TransitionValidationResult:
    """Validate a status change against the transition matrix."""
    if not target_status:
        return TransitionValidationResult(False, "Target status is missing.")

    target = OrderStatus.normalize(target_status)
    current = OrderStatus.normalize(current_status)

    if target not in ALLOWED_TRANSITIONS:
        return TransitionValidationResult(False, f"Unsupported status: {target}")

    if current is not None and current not in ALLOWED_TRANSITIONS:
        return TransitionValidationResult(False, f"Unsupported current status: {current}")

    if current == target:
        return TransitionValidationResult(True)

    if current in TERMINAL_STATUSES:
        return TransitionValidationResult(False, f"Order is already {current.lower()}.")

    if current is None:
        if target != OrderStatus.PENDING:
            return TransitionValidationResult(False, "New orders must start as PENDING.")
        return TransitionValidationResult(True)

    if target not in ALLOWED_TRANSITIONS[current]:
        return TransitionValidationResult(False, f"Transition '{current} -> {target}' is not allowed.")

    return TransitionValidationResult(True)
