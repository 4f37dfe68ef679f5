"""Voucher model."""

from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from loyalty.models.base import Base, TimestampMixin


class VoucherRecord(Base, TimestampMixin):
    """Vouchers table."""

    __tablename__ = "vouchers"

    # Primary key
    code: Mapped[str] = mapped_column(String(20), primary_key=True)

    # Discount descriptor
    description: Mapped[str] = mapped_column(Text, nullable=False)
    discount: Mapped[int] = mapped_column(Integer, nullable=False)
    is_percentage: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    min_spend: Mapped[int] = mapped_column(Integer, default=0, nullable=False, index=True)
    category: Mapped[str] = mapped_column(String(100), default="", nullable=False, index=True)

    # Validity window
    starts: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )
    expires: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )

    # Usage
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)
    usage_limit: Mapped[int] = mapped_column(Integer, nullable=False)
    usage_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    __table_args__ = (
        CheckConstraint(
            "usage_count >= 0 AND usage_count <= usage_limit",
            name="usage_count",
        ),
    )
