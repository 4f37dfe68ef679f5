"""Store capability sets.

Every store implementation (SQLAlchemy, in-memory) provides these methods
with the same error contract, so services never depend on the backend.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from types import TracebackType

from loyalty.domain.codes import generate_voucher_code
from loyalty.domain.entities import User, Voucher
from loyalty.domain.filters import Filters, Page, VoucherPredicates


class VoucherStore(ABC):
    """Voucher persistence."""

    @staticmethod
    def generate_code() -> str:
        """Random 15 character code; callers retry on collision."""
        return generate_voucher_code()

    @abstractmethod
    async def insert(self, voucher: Voucher) -> Voucher:
        """Persist a new voucher with usage_count 0.

        @raises DuplicateCodeError - code already exists
        """

    @abstractmethod
    async def get_by_code(self, code: str) -> Voucher:
        """@raises NotFoundError"""

    @abstractmethod
    async def get_many(self, codes: list[str]) -> list[Voucher]:
        """Fetch every existing voucher among ``codes`` in one query."""

    @abstractmethod
    async def exists(self, code: str) -> bool: ...

    @abstractmethod
    async def increment_usage(self, code: str) -> None:
        """Atomically count one use, deactivating the voucher at its limit.

        @raises NotFoundError - no voucher with this code
        @raises EditConflictError - voucher inactive or exhausted
        """

    @abstractmethod
    async def delete(self, code: str) -> None:
        """@raises NotFoundError"""

    @abstractmethod
    async def list_filtered(
        self, predicates: VoucherPredicates, filters: Filters
    ) -> Page:
        """Return one page of vouchers and the cursor for the next one."""

    @abstractmethod
    async def expire_stale(self, now: datetime) -> int:
        """Deactivate active vouchers whose window ended before ``now``."""


class UserStore(ABC):
    """User and entitlement persistence.

    Every mutation increments the user's version. Mutations that accept
    ``expected_version`` fail with EditConflictError when it is stale.
    """

    @abstractmethod
    async def insert(self, user: User) -> User:
        """@raises DuplicateEmailError"""

    @abstractmethod
    async def get_by_id(self, user_id: str) -> User:
        """@raises NotFoundError"""

    @abstractmethod
    async def get_by_email(self, email: str) -> User:
        """@raises NotFoundError"""

    @abstractmethod
    async def add_points(
        self, user_id: str, delta: int, expected_version: int | None = None
    ) -> int:
        """Atomically add ``delta`` (may be negative); returns the new balance."""

    @abstractmethod
    async def deduct_points(self, user_id: str, points: int) -> int:
        """Subtract ``points`` only if the balance covers it.

        @raises InsufficientPointsError
        @raises NotFoundError
        """

    @abstractmethod
    async def get_entitlements(self, user_id: str) -> dict[str, int]:
        """Map of voucher code to remaining uses."""

    @abstractmethod
    async def set_entitlements(
        self,
        user_id: str,
        entitlements: dict[str, int],
        expected_version: int | None = None,
    ) -> None:
        """Replace the whole entitlement map."""

    @abstractmethod
    async def grant_entitlement(self, user_id: str, code: str, uses: int) -> None:
        """Insert ``code`` into the map if absent.

        @raises AlreadyGrantedError
        @raises NotFoundError - unknown user
        """

    @abstractmethod
    async def consume_entitlement(self, user_id: str, code: str) -> int:
        """Atomically spend one use; returns the uses left.

        @raises VoucherNotAvailableError - no entitlement or none left
        """


class UnitOfWork(ABC):
    """One storage transaction exposing both stores.

    Leaving the block without ``commit()`` (including on error or
    cancellation) rolls back every write made through ``users`` and
    ``vouchers``.

    Example:
        async with uow_factory() as uow:
            await uow.users.deduct_points(user_id, 50)
            await uow.vouchers.insert(voucher)
            await uow.commit()
    """

    users: UserStore
    vouchers: VoucherStore

    @abstractmethod
    async def __aenter__(self) -> "UnitOfWork": ...

    @abstractmethod
    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> bool | None: ...

    @abstractmethod
    async def commit(self) -> None: ...

    @abstractmethod
    async def rollback(self) -> None: ...
