"""Domain entities shared by every store implementation."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes read back from storage."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def new_user_id() -> str:
    return uuid.uuid4().hex


@dataclass
class Voucher:
    """A discount voucher identified by its code.

    ``usage_count`` only changes through the store's atomic increment and
    ``active`` flips to false when it reaches ``usage_limit``.
    """

    code: str
    description: str
    discount: int
    starts: datetime
    expires: datetime
    usage_limit: int
    is_percentage: bool = False
    min_spend: int = 0
    category: str = ""
    active: bool = True
    usage_count: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def has_expired(self, at: datetime | None = None) -> bool:
        """True once ``at`` (default now) is past ``expires``."""
        return self.expires < (at or utcnow())


@dataclass
class User:
    """A registered user with a points balance."""

    name: str
    email: str
    password_hash: str
    id: str = field(default_factory=new_user_id)
    points: int = 0
    is_admin: bool = False
    version: int = 1
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class Entitlement:
    """An active voucher joined with the uses a user has left on it."""

    voucher: Voucher
    remaining_uses: int
