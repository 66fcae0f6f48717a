"""Order use cases."""

from kamu.application.orders.cancel_order import OrderActionResult, cancel_order
from kamu.application.orders.track_order import TrackingResult, track_order, watch_order

__all__ = ["OrderActionResult", "TrackingResult", "cancel_order", "track_order", "watch_order"]
