"""Points to voucher exchange.

Deducting points, creating the single-use voucher and granting it to the
user happen in one unit of work: either all three are visible or none is.
"""

import logging
from dataclasses import dataclass
from datetime import timedelta

from loyalty.core.exceptions import (
    DuplicateCodeError,
    ExchangeFailedError,
    VoucherAlreadyExistsError,
)
from loyalty.core.validator import Validator
from loyalty.domain import Voucher, validate_points, validate_voucher
from loyalty.domain.entities import utcnow
from loyalty.repositories import UnitOfWorkFactory, VoucherStore

logger = logging.getLogger(__name__)

EXCHANGE_USAGE_LIMIT = 1
EXCHANGE_GRANTED_USES = 1
# Placeholder validated in place of the generated code, which is always valid.
PENDING_CODE = "PENDING"


@dataclass
class ExchangeResult:
    """Outcome of a successful exchange."""

    voucher: Voucher
    balance: int


class ExchangeCoordinator:
    """Exchange points for a freshly generated voucher."""

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        code_attempts: int = 3,
        valid_days: int = 30,
    ):
        """Initialize exchange coordinator.

        @param uow_factory - Factory producing units of work
        @param code_attempts - Generated code attempts before giving up
        @param valid_days - Validity window of exchanged vouchers
        """
        self._uow_factory = uow_factory
        self._code_attempts = code_attempts
        self._valid_days = valid_days

    async def exchange(
        self,
        user_id: str,
        points: int,
        *,
        description: str,
        discount: int,
        is_percentage: bool = False,
        category: str = "",
    ) -> ExchangeResult:
        """Deduct ``points`` and grant the user a new single-use voucher.

        @returns Created voucher and the new balance
        @raises ValidationFailedError - invalid points or voucher fields
        @raises InsufficientPointsError - balance below ``points``
        @raises VoucherAlreadyExistsError - code collided at insert time
        @raises NotFoundError - unknown user
        """
        now = utcnow()
        voucher = Voucher(
            code=PENDING_CODE,
            description=description,
            discount=discount,
            is_percentage=is_percentage,
            category=category,
            starts=now,
            expires=now + timedelta(days=self._valid_days),
            usage_limit=EXCHANGE_USAGE_LIMIT,
        )

        v = Validator()
        validate_points(v, points)
        validate_voucher(v, voucher)
        v.raise_if_invalid()

        voucher.code = await self._reserve_code()

        try:
            async with self._uow_factory() as uow:
                balance = await uow.users.deduct_points(user_id, points)
                try:
                    stored = await uow.vouchers.insert(voucher)
                except DuplicateCodeError:
                    raise VoucherAlreadyExistsError(code=voucher.code) from None
                await uow.users.grant_entitlement(
                    user_id, stored.code, EXCHANGE_GRANTED_USES
                )
                await uow.commit()
        except ExchangeFailedError as e:
            logger.warning(f"Exchange failed for user {user_id}: {e.message}")
            raise

        logger.info(
            f"User {user_id} exchanged {points} points for voucher {stored.code}"
        )
        return ExchangeResult(voucher=stored, balance=balance)

    async def _reserve_code(self) -> str:
        """Pick a generated code not currently in use.

        A concurrent insert can still take the code; the exchange then
        aborts with VoucherAlreadyExistsError.
        """
        for _ in range(self._code_attempts):
            code = VoucherStore.generate_code()
            async with self._uow_factory() as uow:
                if not await uow.vouchers.exists(code):
                    return code
        raise VoucherAlreadyExistsError("unable to generate a unique voucher code")
