"""Storefront checkout, order management and loyalty points."""

__version__ = "0.1.0"
