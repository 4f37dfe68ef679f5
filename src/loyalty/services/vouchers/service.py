"""Voucher catalogue management."""

import logging
from datetime import datetime

from loyalty.core.exceptions import DuplicateCodeError
from loyalty.core.validator import Validator
from loyalty.domain import (
    Filters,
    Page,
    Voucher,
    VoucherPredicates,
    validate_filters,
    validate_voucher,
)
from loyalty.domain.entities import as_utc, utcnow
from loyalty.repositories import UnitOfWorkFactory, VoucherStore

logger = logging.getLogger(__name__)


class VoucherService:
    """Service for creating, listing and consuming vouchers by code.

    Provides:
    - Creation with caller supplied or generated codes
    - Lookup, deletion and filtered listing
    - Direct use by code (global counter only)
    - Expiry sweep
    """

    def __init__(self, uow_factory: UnitOfWorkFactory, code_attempts: int = 3):
        """Initialize voucher service.

        @param uow_factory - Factory producing units of work
        @param code_attempts - Generated code attempts before giving up
        """
        self._uow_factory = uow_factory
        self._code_attempts = code_attempts

    async def create(
        self,
        *,
        description: str,
        discount: int,
        starts: datetime,
        expires: datetime,
        usage_limit: int,
        code: str | None = None,
        is_percentage: bool = False,
        min_spend: int = 0,
        category: str = "",
        active: bool = True,
    ) -> Voucher:
        """Create a voucher.

        @returns Stored voucher
        @raises ValidationFailedError - invalid fields
        @raises DuplicateCodeError - supplied code taken, or every generated
            code collided
        """
        generated = code is None
        attempts = self._code_attempts if generated else 1

        for attempt in range(1, attempts + 1):
            voucher = Voucher(
                code=VoucherStore.generate_code() if generated else code,
                description=description,
                discount=discount,
                is_percentage=is_percentage,
                min_spend=min_spend,
                category=category,
                starts=as_utc(starts),
                expires=as_utc(expires),
                usage_limit=usage_limit,
                active=active,
            )

            v = Validator()
            validate_voucher(v, voucher)
            v.raise_if_invalid()

            try:
                async with self._uow_factory() as uow:
                    stored = await uow.vouchers.insert(voucher)
                    await uow.commit()
            except DuplicateCodeError:
                if not generated:
                    raise
                logger.warning(
                    f"Generated voucher code collided (attempt {attempt}/{attempts})"
                )
                continue

            logger.info(f"Created voucher {stored.code}")
            return stored

        raise DuplicateCodeError("unable to generate a unique voucher code")

    async def get(self, code: str) -> Voucher:
        async with self._uow_factory() as uow:
            return await uow.vouchers.get_by_code(code)

    async def delete(self, code: str) -> None:
        async with self._uow_factory() as uow:
            await uow.vouchers.delete(code)
            await uow.commit()
        logger.info(f"Deleted voucher {code}")

    async def use(self, code: str) -> Voucher:
        """Count one global use of ``code``.

        @raises NotFoundError - unknown code
        @raises EditConflictError - voucher inactive or exhausted
        """
        async with self._uow_factory() as uow:
            await uow.vouchers.increment_usage(code)
            voucher = await uow.vouchers.get_by_code(code)
            await uow.commit()
        return voucher

    async def list(self, predicates: VoucherPredicates, filters: Filters) -> Page:
        """Return one page of vouchers.

        @raises ValidationFailedError - bad page size, sort or cursor
        """
        v = Validator()
        validate_filters(v, filters)
        v.raise_if_invalid()

        async with self._uow_factory() as uow:
            return await uow.vouchers.list_filtered(predicates, filters)

    async def expire_stale(self, now: datetime | None = None) -> int:
        """Deactivate vouchers whose window has ended.

        @returns Number of vouchers deactivated
        """
        async with self._uow_factory() as uow:
            expired = await uow.vouchers.expire_stale(now or utcnow())
            await uow.commit()

        if expired:
            logger.info(f"Expired {expired} vouchers")
        return expired
