"""Per-user voucher entitlements: redeem, use and the listing refresh."""

import logging

from loyalty.core.exceptions import EditConflictError, VoucherNotAvailableError
from loyalty.core.validator import Validator
from loyalty.domain import Entitlement
from loyalty.repositories import UnitOfWorkFactory

logger = logging.getLogger(__name__)


class EntitlementService:
    """Service for the vouchers a user holds.

    Provides:
    - Redeem: grant the user uses of an active voucher
    - Use: spend one held use and count it against the voucher's limit
    - List: prune inactive vouchers from the user's map and return the rest
    """

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        default_uses: int = 1,
        refresh_attempts: int = 3,
    ):
        """Initialize entitlement service.

        @param uow_factory - Factory producing units of work
        @param default_uses - Uses granted when redeem gets no count
        @param refresh_attempts - Listing retries on a concurrent user update
        """
        self._uow_factory = uow_factory
        self._default_uses = default_uses
        self._refresh_attempts = refresh_attempts

    async def redeem(self, user_id: str, code: str, uses: int | None = None) -> int:
        """Grant the user ``uses`` of voucher ``code``.

        @returns Uses granted
        @raises ValidationFailedError - non-positive uses
        @raises NotFoundError - unknown voucher or user
        @raises VoucherNotAvailableError - voucher inactive or expired
        @raises AlreadyGrantedError - user already holds the voucher
        """
        uses = self._default_uses if uses is None else uses
        v = Validator()
        v.check(uses > 0, "uses", "must be greater than zero")
        v.raise_if_invalid()

        async with self._uow_factory() as uow:
            voucher = await uow.vouchers.get_by_code(code)
            if not voucher.active or voucher.has_expired():
                raise VoucherNotAvailableError(code=code)
            await uow.users.grant_entitlement(user_id, code, uses)
            await uow.commit()

        logger.info(f"User {user_id} redeemed voucher {code} ({uses} uses)")
        return uses

    async def use(self, user_id: str, code: str) -> int:
        """Spend one of the user's uses of ``code``.

        The entitlement decrement and the voucher's usage increment commit
        together or not at all.

        @returns Uses the user has left
        @raises VoucherNotAvailableError - user holds no uses of ``code``
        @raises EditConflictError - voucher inactive or exhausted
        @raises NotFoundError - voucher no longer exists
        """
        async with self._uow_factory() as uow:
            remaining = await uow.users.consume_entitlement(user_id, code)
            await uow.vouchers.increment_usage(code)
            await uow.commit()

        logger.info(f"User {user_id} used voucher {code}, {remaining} uses left")
        return remaining

    async def list_vouchers(self, user_id: str) -> list[Entitlement]:
        """Return the user's active vouchers, pruning the rest from their map.

        The pruned map is written back only when it changed, guarded by the
        user's version.

        @raises NotFoundError - unknown user
        @raises EditConflictError - user kept changing across every attempt
        """
        for attempt in range(1, self._refresh_attempts + 1):
            async with self._uow_factory() as uow:
                user = await uow.users.get_by_id(user_id)
                held = await uow.users.get_entitlements(user_id)
                vouchers = await uow.vouchers.get_many(list(held))

                active = {v.code: v for v in vouchers if v.active}
                pruned = {code: n for code, n in held.items() if code in active}

                if pruned != held:
                    try:
                        await uow.users.set_entitlements(
                            user_id, pruned, expected_version=user.version
                        )
                    except EditConflictError:
                        logger.warning(
                            f"Voucher refresh for user {user_id} conflicted "
                            f"(attempt {attempt}/{self._refresh_attempts})"
                        )
                        continue
                    await uow.commit()
                    logger.info(
                        f"Pruned {len(held) - len(pruned)} inactive vouchers "
                        f"for user {user_id}"
                    )

            return [
                Entitlement(voucher=active[code], remaining_uses=n)
                for code, n in sorted(pruned.items())
            ]

        raise EditConflictError(user_id=user_id)
