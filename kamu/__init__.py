"""Kamu food-delivery client: cart, checkout and order tracking."""

__version__ = "0.4.0"
