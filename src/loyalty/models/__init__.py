"""Database models for the loyalty backend."""

from loyalty.models.base import Base, TimestampMixin
from loyalty.models.user import UserRecord, UserVoucherRecord
from loyalty.models.voucher import VoucherRecord

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    # Business models
    "UserRecord",
    "UserVoucherRecord",
    "VoucherRecord",
]
