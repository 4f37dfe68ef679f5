"""Deterministic in-memory stores.

Used by tests and local development. A unit of work holds the database
lock for its whole lifetime and restores a snapshot on rollback, which
gives serializable isolation.
"""

import asyncio
import copy
import logging
from dataclasses import replace
from datetime import datetime
from functools import partial

from loyalty.core.exceptions import (
    AlreadyGrantedError,
    DuplicateCodeError,
    DuplicateEmailError,
    EditConflictError,
    InsufficientPointsError,
    NotFoundError,
    ValidationFailedError,
    VoucherNotAvailableError,
)
from loyalty.domain.entities import User, Voucher, utcnow
from loyalty.domain.filters import Filters, Metadata, Page, VoucherPredicates
from loyalty.repositories.interfaces import UserStore, VoucherStore
from loyalty.repositories.unit_of_work import BaseUnitOfWork, UnitOfWorkFactory

logger = logging.getLogger(__name__)


class InMemoryDatabase:
    """Shared state for in-memory stores."""

    def __init__(self) -> None:
        self.users: dict[str, User] = {}
        self.vouchers: dict[str, Voucher] = {}
        self.entitlements: dict[str, dict[str, int]] = {}
        self.lock = asyncio.Lock()

    def snapshot(self) -> tuple:
        return copy.deepcopy((self.users, self.vouchers, self.entitlements))

    def restore(self, state: tuple) -> None:
        self.users, self.vouchers, self.entitlements = state


class InMemoryVoucherStore(VoucherStore):
    def __init__(self, db: InMemoryDatabase) -> None:
        self.db = db

    async def insert(self, voucher: Voucher) -> Voucher:
        if voucher.code in self.db.vouchers:
            raise DuplicateCodeError(code=voucher.code)
        now = utcnow()
        stored = replace(
            voucher,
            usage_count=0,
            active=voucher.active and voucher.usage_limit > 0,
            created_at=now,
            updated_at=now,
        )
        self.db.vouchers[voucher.code] = stored
        return replace(stored)

    async def get_by_code(self, code: str) -> Voucher:
        try:
            return replace(self.db.vouchers[code])
        except KeyError:
            raise NotFoundError(f"voucher {code} not found") from None

    async def get_many(self, codes: list[str]) -> list[Voucher]:
        return [
            replace(self.db.vouchers[code])
            for code in sorted(set(codes))
            if code in self.db.vouchers
        ]

    async def exists(self, code: str) -> bool:
        return code in self.db.vouchers

    async def increment_usage(self, code: str) -> None:
        voucher = self.db.vouchers.get(code)
        if voucher is None:
            raise NotFoundError(f"voucher {code} not found")
        if not voucher.active or voucher.usage_count >= voucher.usage_limit:
            raise EditConflictError(code=code)

        voucher.usage_count += 1
        voucher.active = voucher.usage_count < voucher.usage_limit
        voucher.updated_at = utcnow()

    async def delete(self, code: str) -> None:
        if self.db.vouchers.pop(code, None) is None:
            raise NotFoundError(f"voucher {code} not found")

    async def list_filtered(
        self, predicates: VoucherPredicates, filters: Filters
    ) -> Page:
        column = filters.sort_column
        items = [v for v in self.db.vouchers.values() if _matches(v, predicates)]

        # Stable two-pass sort: code ascending breaks ties in the sort column.
        items.sort(key=lambda v: v.code)
        items.sort(key=lambda v: getattr(v, column), reverse=filters.descending)

        if filters.cursor and column == "code":
            cursor = filters.cursor
            items = [
                v for v in items
                if (v.code < cursor if filters.descending else v.code > cursor)
            ]
        elif filters.cursor:
            anchor = self.db.vouchers.get(filters.cursor)
            if anchor is None:
                raise ValidationFailedError(
                    {"cursor": "must reference an existing voucher"}
                )
            items = [v for v in items if _after(v, anchor, column, filters.descending)]

        page = [replace(v) for v in items[: filters.limit]]
        cursor = page[-1].code if page else None
        return Page(items=page, metadata=Metadata(cursor=cursor, page_size=filters.page_size))

    async def expire_stale(self, now: datetime) -> int:
        expired = 0
        for voucher in self.db.vouchers.values():
            if voucher.active and voucher.has_expired(now):
                voucher.active = False
                voucher.updated_at = utcnow()
                expired += 1
        return expired


def _matches(v: Voucher, p: VoucherPredicates) -> bool:
    if p.code and v.code != p.code:
        return False
    if p.starts is not None and v.starts < p.starts:
        return False
    if p.expires is not None and v.expires > p.expires:
        return False
    if p.active and not v.active:
        return False
    if p.category and v.category != p.category:
        return False
    if p.min_spend and v.min_spend > p.min_spend:
        return False
    return True


def _after(v: Voucher, anchor: Voucher, column: str, descending: bool) -> bool:
    """True if ``v`` sorts strictly after ``anchor`` on a non-code column."""
    value, anchor_value = getattr(v, column), getattr(anchor, column)
    if value == anchor_value:
        return v.code > anchor.code
    return value < anchor_value if descending else value > anchor_value


class InMemoryUserStore(UserStore):
    def __init__(self, db: InMemoryDatabase) -> None:
        self.db = db

    async def insert(self, user: User) -> User:
        if any(u.email == user.email for u in self.db.users.values()):
            raise DuplicateEmailError(email=user.email)
        now = utcnow()
        stored = replace(user, version=1, created_at=now, updated_at=now)
        self.db.users[user.id] = stored
        self.db.entitlements[user.id] = {}
        return replace(stored)

    async def get_by_id(self, user_id: str) -> User:
        return replace(self._get(user_id))

    async def get_by_email(self, email: str) -> User:
        for user in self.db.users.values():
            if user.email == email:
                return replace(user)
        raise NotFoundError("user not found")

    async def add_points(
        self, user_id: str, delta: int, expected_version: int | None = None
    ) -> int:
        user = self._bump(user_id, expected_version)
        user.points += delta
        return user.points

    async def deduct_points(self, user_id: str, points: int) -> int:
        user = self._get(user_id)
        if user.points < points:
            raise InsufficientPointsError(requested=points)
        user = self._bump(user_id)
        user.points -= points
        return user.points

    async def get_entitlements(self, user_id: str) -> dict[str, int]:
        self._get(user_id)
        return dict(sorted(self.db.entitlements.get(user_id, {}).items()))

    async def set_entitlements(
        self,
        user_id: str,
        entitlements: dict[str, int],
        expected_version: int | None = None,
    ) -> None:
        self._bump(user_id, expected_version)
        self.db.entitlements[user_id] = dict(entitlements)

    async def grant_entitlement(self, user_id: str, code: str, uses: int) -> None:
        self._get(user_id)
        held = self.db.entitlements.setdefault(user_id, {})
        if code in held:
            raise AlreadyGrantedError(code=code)
        self._bump(user_id)
        held[code] = uses

    async def consume_entitlement(self, user_id: str, code: str) -> int:
        held = self.db.entitlements.get(user_id, {})
        if held.get(code, 0) <= 0:
            raise VoucherNotAvailableError(code=code)
        held[code] -= 1
        self._bump(user_id)
        return held[code]

    def _get(self, user_id: str) -> User:
        try:
            return self.db.users[user_id]
        except KeyError:
            raise NotFoundError(f"user {user_id} not found") from None

    def _bump(self, user_id: str, expected_version: int | None = None) -> User:
        user = self._get(user_id)
        if expected_version is not None and user.version != expected_version:
            raise EditConflictError(user_id=user_id)
        user.version += 1
        user.updated_at = utcnow()
        return user


class InMemoryUnitOfWork(BaseUnitOfWork):
    """Unit of work holding the database lock until it ends."""

    def __init__(self, db: InMemoryDatabase, timeout: float | None = None) -> None:
        super().__init__(timeout)
        self.db = db
        self._snapshot: tuple | None = None
        self._locked = False

    async def _begin(self) -> None:
        await self.db.lock.acquire()
        self._locked = True
        self._snapshot = self.db.snapshot()
        self.users = InMemoryUserStore(self.db)
        self.vouchers = InMemoryVoucherStore(self.db)

    async def _commit(self) -> None:
        self._snapshot = None

    async def _rollback(self) -> None:
        if self._snapshot is not None:
            self.db.restore(self._snapshot)
            self._snapshot = None

    async def _close(self) -> None:
        if self._locked:
            self._locked = False
            self.db.lock.release()


def in_memory_unit_of_work_factory(
    db: InMemoryDatabase | None = None,
    timeout: float | None = None,
) -> UnitOfWorkFactory:
    """Build a factory producing in-memory units of work over ``db``."""
    return partial(InMemoryUnitOfWork, db or InMemoryDatabase(), timeout=timeout)
