"""Celery tasks for background processing.

This module provides async task execution for:
- Voucher expiry sweep
"""

from loyalty.core.celery_app import celery_app

__all__ = ["celery_app"]
