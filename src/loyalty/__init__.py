"""Loyalty points and voucher backend."""

__version__ = "0.1.0"
