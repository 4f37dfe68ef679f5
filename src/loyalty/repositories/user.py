"""SQLAlchemy user store.

Points and entitlements are mutated with conditional UPDATEs so concurrent
requests never lose updates; every mutation bumps the user's version.
"""

import logging

from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import IntegrityError

from loyalty.core.exceptions import (
    AlreadyGrantedError,
    DuplicateEmailError,
    EditConflictError,
    InsufficientPointsError,
    NotFoundError,
    VoucherNotAvailableError,
)
from loyalty.domain.entities import User, as_utc, utcnow
from loyalty.models.user import UserRecord, UserVoucherRecord
from loyalty.repositories.base import BaseRepository
from loyalty.repositories.interfaces import UserStore

logger = logging.getLogger(__name__)


def to_user(record: UserRecord) -> User:
    """Convert an ORM row into a domain user."""
    return User(
        id=record.id,
        name=record.name,
        email=record.email,
        password_hash=record.password_hash,
        is_admin=record.is_admin,
        points=record.points,
        version=record.version,
        created_at=as_utc(record.created_at) if record.created_at else None,
        updated_at=as_utc(record.updated_at) if record.updated_at else None,
    )


class SqlAlchemyUserStore(BaseRepository[UserRecord], UserStore):
    """User store backed by the ``users`` and ``user_vouchers`` tables."""

    model = UserRecord

    async def insert(self, user: User) -> User:
        now = utcnow()
        values = {
            "id": user.id,
            "name": user.name,
            "email": user.email,
            "password_hash": user.password_hash,
            "is_admin": user.is_admin,
            "points": user.points,
            "version": 1,
            "created_at": now,
            "updated_at": now,
        }
        try:
            await self.session.execute(insert(UserRecord).values(**values))
        except IntegrityError as e:
            raise DuplicateEmailError(email=user.email) from e

        return User(**values)

    async def get_by_id(self, user_id: str) -> User:
        record = await self._first(self._select().where(UserRecord.id == user_id))
        if record is None:
            raise NotFoundError(f"user {user_id} not found")
        return to_user(record)

    async def get_by_email(self, email: str) -> User:
        record = await self._first(self._select().where(UserRecord.email == email))
        if record is None:
            raise NotFoundError("user not found")
        return to_user(record)

    async def add_points(
        self, user_id: str, delta: int, expected_version: int | None = None
    ) -> int:
        await self._bump(user_id, expected_version, points=UserRecord.points + delta)
        result = await self.session.execute(
            select(UserRecord.points).where(UserRecord.id == user_id)
        )
        return result.scalar_one()

    async def deduct_points(self, user_id: str, points: int) -> int:
        stmt = (
            update(UserRecord)
            .where(UserRecord.id == user_id, UserRecord.points >= points)
            .values(
                points=UserRecord.points - points,
                version=UserRecord.version + 1,
                updated_at=utcnow(),
            )
        )
        if not await self._update(stmt):
            if not await self._exists(UserRecord.id == user_id):
                raise NotFoundError(f"user {user_id} not found")
            raise InsufficientPointsError(requested=points)

        result = await self.session.execute(
            select(UserRecord.points).where(UserRecord.id == user_id)
        )
        return result.scalar_one()

    async def get_entitlements(self, user_id: str) -> dict[str, int]:
        if not await self._exists(UserRecord.id == user_id):
            raise NotFoundError(f"user {user_id} not found")
        result = await self.session.execute(
            select(UserVoucherRecord.voucher_code, UserVoucherRecord.remaining_uses)
            .where(UserVoucherRecord.user_id == user_id)
            .order_by(UserVoucherRecord.voucher_code)
        )
        return {code: uses for code, uses in result.all()}

    async def set_entitlements(
        self,
        user_id: str,
        entitlements: dict[str, int],
        expected_version: int | None = None,
    ) -> None:
        await self._bump(user_id, expected_version)
        await self.session.execute(
            delete(UserVoucherRecord).where(UserVoucherRecord.user_id == user_id)
        )
        if entitlements:
            await self.session.execute(
                insert(UserVoucherRecord),
                [
                    {"user_id": user_id, "voucher_code": code, "remaining_uses": uses}
                    for code, uses in entitlements.items()
                ],
            )

    async def grant_entitlement(self, user_id: str, code: str, uses: int) -> None:
        # Bumping first locks the user row, serialising concurrent grants.
        await self._bump(user_id)
        try:
            await self.session.execute(
                insert(UserVoucherRecord).values(
                    user_id=user_id, voucher_code=code, remaining_uses=uses
                )
            )
        except IntegrityError as e:
            raise AlreadyGrantedError(code=code) from e

    async def consume_entitlement(self, user_id: str, code: str) -> int:
        stmt = (
            update(UserVoucherRecord)
            .where(
                UserVoucherRecord.user_id == user_id,
                UserVoucherRecord.voucher_code == code,
                UserVoucherRecord.remaining_uses > 0,
            )
            .values(remaining_uses=UserVoucherRecord.remaining_uses - 1)
        )
        if not await self._update(stmt):
            raise VoucherNotAvailableError(code=code)

        await self._bump(user_id)
        result = await self.session.execute(
            select(UserVoucherRecord.remaining_uses).where(
                UserVoucherRecord.user_id == user_id,
                UserVoucherRecord.voucher_code == code,
            )
        )
        return result.scalar_one()

    async def _bump(
        self, user_id: str, expected_version: int | None = None, **values
    ) -> None:
        """Increment the user's version, optionally checking the expected one.

        @raises NotFoundError - unknown user
        @raises EditConflictError - expected_version is stale
        """
        conditions = [UserRecord.id == user_id]
        if expected_version is not None:
            conditions.append(UserRecord.version == expected_version)

        stmt = (
            update(UserRecord)
            .where(*conditions)
            .values(version=UserRecord.version + 1, updated_at=utcnow(), **values)
        )
        if await self._update(stmt):
            return

        if not await self._exists(UserRecord.id == user_id):
            raise NotFoundError(f"user {user_id} not found")
        logger.info(f"Stale version {expected_version} for user {user_id}")
        raise EditConflictError(user_id=user_id)
