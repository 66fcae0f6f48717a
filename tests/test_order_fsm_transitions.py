from __future__ import annotations

from kamu.domain.order import OrderStatus, PaymentMethod
from kamu.domain.order_fsm import can_cancel, is_terminal, order_progress, validate_order_transition


def _validate(current_status: str | None, target_status: str | None):
    return validate_order_transition(current_status=current_status, target_status=target_status)


def test_delivery_happy_path_transitions_allowed() -> None:
    assert _validate("PENDING", "CONFIRMED").allowed
    assert _validate("CONFIRMED", "PREPARING").allowed
    assert _validate("PREPARING", "READY_FOR_PICKUP").allowed
    assert _validate("READY_FOR_PICKUP", "OUT_FOR_DELIVERY").allowed
    assert _validate("OUT_FOR_DELIVERY", "DELIVERED").allowed


def test_legacy_status_names_are_normalized() -> None:
    assert OrderStatus.normalize("canceled") == OrderStatus.CANCELLED
    assert OrderStatus.normalize("out-for-delivery") == OrderStatus.OUT_FOR_DELIVERY
    assert _validate("new", "accepted").allowed


def test_pending_to_delivered_is_blocked() -> None:
    result = _validate("PENDING", "DELIVERED")
    assert not result.allowed
    assert "PENDING -> DELIVERED" in result.reason


def test_terminal_statuses_are_final() -> None:
    result = _validate("DELIVERED", "CANCELLED")
    assert not result.allowed
    assert result.reason == "Order is already delivered."
    assert _validate("CANCELLED", "CANCELLED").allowed


def test_new_orders_must_start_pending() -> None:
    assert _validate(None, "PENDING").allowed
    assert not _validate(None, "CONFIRMED").allowed
    assert not _validate("PENDING", None).allowed
    assert not _validate("PENDING", "LOST").allowed


def test_cancellation_window_closes_when_kitchen_starts() -> None:
    assert can_cancel("PENDING")
    assert can_cancel("confirmed")
    assert not can_cancel("PREPARING")
    assert not _validate("PREPARING", "CANCELLED").allowed


def test_progress_and_terminal_helpers() -> None:
    assert order_progress("PENDING") == 0
    assert order_progress("DELIVERED") == len(OrderStatus.PROGRESSION) - 1
    assert order_progress("CANCELLED") is None
    assert is_terminal("failed")
    assert not is_terminal("PREPARING")


def test_only_card_payments_need_capture() -> None:
    assert PaymentMethod.requires_capture("card")
    assert not PaymentMethod.requires_capture(" CASH ")
    assert PaymentMethod.normalize("") is None
