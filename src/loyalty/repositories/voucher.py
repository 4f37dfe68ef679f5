"""SQLAlchemy voucher store."""

import logging
from datetime import datetime

from sqlalchemy import and_, case, delete, false, insert, or_, select, true, update
from sqlalchemy.exc import IntegrityError

from loyalty.core.exceptions import (
    DuplicateCodeError,
    EditConflictError,
    NotFoundError,
    ValidationFailedError,
)
from loyalty.domain.entities import Voucher, as_utc, utcnow
from loyalty.domain.filters import Filters, Metadata, Page, VoucherPredicates
from loyalty.models.voucher import VoucherRecord
from loyalty.repositories.base import BaseRepository
from loyalty.repositories.interfaces import VoucherStore

logger = logging.getLogger(__name__)


def to_voucher(record: VoucherRecord) -> Voucher:
    """Convert an ORM row into a domain voucher."""
    return Voucher(
        code=record.code,
        description=record.description,
        discount=record.discount,
        is_percentage=record.is_percentage,
        min_spend=record.min_spend,
        category=record.category,
        starts=as_utc(record.starts),
        expires=as_utc(record.expires),
        active=record.active,
        usage_limit=record.usage_limit,
        usage_count=record.usage_count,
        created_at=as_utc(record.created_at) if record.created_at else None,
        updated_at=as_utc(record.updated_at) if record.updated_at else None,
    )


class SqlAlchemyVoucherStore(BaseRepository[VoucherRecord], VoucherStore):
    """Voucher store backed by the ``vouchers`` table."""

    model = VoucherRecord

    async def insert(self, voucher: Voucher) -> Voucher:
        now = utcnow()
        values = {
            "code": voucher.code,
            "description": voucher.description,
            "discount": voucher.discount,
            "is_percentage": voucher.is_percentage,
            "min_spend": voucher.min_spend,
            "category": voucher.category,
            "starts": voucher.starts,
            "expires": voucher.expires,
            "active": voucher.active and voucher.usage_limit > 0,
            "usage_limit": voucher.usage_limit,
            "usage_count": 0,
            "created_at": now,
            "updated_at": now,
        }
        try:
            await self.session.execute(insert(VoucherRecord).values(**values))
        except IntegrityError as e:
            raise DuplicateCodeError(code=voucher.code) from e

        return Voucher(**values)

    async def get_by_code(self, code: str) -> Voucher:
        record = await self._first(self._select().where(VoucherRecord.code == code))
        if record is None:
            raise NotFoundError(f"voucher {code} not found")
        return to_voucher(record)

    async def get_many(self, codes: list[str]) -> list[Voucher]:
        if not codes:
            return []
        records = await self._all(
            self._select()
            .where(VoucherRecord.code.in_(codes))
            .order_by(VoucherRecord.code)
        )
        return [to_voucher(r) for r in records]

    async def exists(self, code: str) -> bool:
        return await self._exists(VoucherRecord.code == code)

    async def increment_usage(self, code: str) -> None:
        new_count = VoucherRecord.usage_count + 1
        stmt = (
            update(VoucherRecord)
            .where(
                VoucherRecord.code == code,
                VoucherRecord.active.is_(True),
                VoucherRecord.usage_count < VoucherRecord.usage_limit,
            )
            .values(
                usage_count=new_count,
                active=case(
                    (new_count >= VoucherRecord.usage_limit, false()),
                    else_=true(),
                ),
                updated_at=utcnow(),
            )
        )
        if await self._update(stmt):
            return

        # Nothing matched: tell "missing" apart from "exhausted or inactive".
        if not await self.exists(code):
            raise NotFoundError(f"voucher {code} not found")
        logger.info(f"Usage increment rejected for inactive voucher {code}")
        raise EditConflictError(code=code)

    async def delete(self, code: str) -> None:
        result = await self.session.execute(
            delete(VoucherRecord).where(VoucherRecord.code == code)
        )
        if result.rowcount == 0:
            raise NotFoundError(f"voucher {code} not found")

    async def list_filtered(
        self, predicates: VoucherPredicates, filters: Filters
    ) -> Page:
        stmt = self._select()

        if predicates.code:
            stmt = stmt.where(VoucherRecord.code == predicates.code)
        if predicates.starts is not None:
            stmt = stmt.where(VoucherRecord.starts >= predicates.starts)
        if predicates.expires is not None:
            stmt = stmt.where(VoucherRecord.expires <= predicates.expires)
        if predicates.active:
            stmt = stmt.where(VoucherRecord.active.is_(True))
        if predicates.category:
            stmt = stmt.where(VoucherRecord.category == predicates.category)
        if predicates.min_spend:
            stmt = stmt.where(VoucherRecord.min_spend <= predicates.min_spend)

        column = getattr(VoucherRecord, filters.sort_column)
        if filters.cursor:
            stmt = stmt.where(await self._after_cursor(column, filters))

        if filters.sort_column == "code":
            order = [column.desc() if filters.descending else column.asc()]
        else:
            order = [
                column.desc() if filters.descending else column.asc(),
                VoucherRecord.code.asc(),
            ]

        records = await self._all(stmt.order_by(*order).limit(filters.limit))
        vouchers = [to_voucher(r) for r in records]
        cursor = vouchers[-1].code if vouchers else None
        return Page(items=vouchers, metadata=Metadata(cursor=cursor, page_size=filters.page_size))

    async def _after_cursor(self, column, filters: Filters):
        """Keyset condition selecting rows strictly after the cursor row."""
        cursor = filters.cursor
        if filters.sort_column == "code":
            return column < cursor if filters.descending else column > cursor

        result = await self.session.execute(
            select(column).where(VoucherRecord.code == cursor)
        )
        anchor = result.first()
        if anchor is None:
            raise ValidationFailedError({"cursor": "must reference an existing voucher"})
        value = anchor[0]

        beyond = column < value if filters.descending else column > value
        return or_(beyond, and_(column == value, VoucherRecord.code > cursor))

    async def expire_stale(self, now: datetime) -> int:
        stmt = (
            update(VoucherRecord)
            .where(VoucherRecord.active.is_(True), VoucherRecord.expires < now)
            .values(active=False, updated_at=utcnow())
        )
        return await self._update(stmt)
