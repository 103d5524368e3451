"""Coupon storage, rules and a Flask HTTP API for creating and validating coupons."""

__version__ = "1.0.0"
__all__ = ["__version__"]