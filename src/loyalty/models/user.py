"""User and per-user voucher entitlement models."""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column

from loyalty.models.base import Base, TimestampMixin


class UserRecord(Base, TimestampMixin):
    """Users table."""

    __tablename__ = "users"

    # Primary key
    id: Mapped[str] = mapped_column(String(32), primary_key=True)

    # Identity
    name: Mapped[str] = mapped_column(String(500), nullable=False)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(100), nullable=False)
    is_admin: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Balance
    points: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Optimistic concurrency
    version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)


class UserVoucherRecord(Base):
    """Entitlement rows: how many times a user may still use a voucher.

    No foreign key to vouchers; entitlements to deleted vouchers are pruned
    by the refresh on the next listing.
    """

    __tablename__ = "user_vouchers"

    user_id: Mapped[str] = mapped_column(
        String(32),
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    voucher_code: Mapped[str] = mapped_column(String(20), primary_key=True)
    remaining_uses: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (
        CheckConstraint("remaining_uses >= 0", name="remaining_uses"),
    )
