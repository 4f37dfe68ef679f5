"""Unit of work implementations.

A unit of work is one storage transaction with a deadline. Exceeding the
deadline, a driver failure or cancellation rolls the transaction back and
surfaces as StorageError (cancellation propagates unchanged).
"""

import asyncio
import logging
from functools import partial
from types import TracebackType
from typing import Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from loyalty.core.exceptions import StorageError
from loyalty.repositories.interfaces import UnitOfWork
from loyalty.repositories.user import SqlAlchemyUserStore
from loyalty.repositories.voucher import SqlAlchemyVoucherStore

logger = logging.getLogger(__name__)

UnitOfWorkFactory = Callable[[], UnitOfWork]


class BaseUnitOfWork(UnitOfWork):
    """Deadline and commit/rollback bookkeeping shared by all backends.

    Subclasses implement ``_begin``, ``_commit``, ``_rollback`` and
    ``_close``; ``storage_errors`` lists driver exceptions to classify as
    StorageError.
    """

    storage_errors: tuple[type[BaseException], ...] = ()

    def __init__(self, timeout: float | None = None) -> None:
        self._timeout = timeout
        self._deadline: asyncio.Timeout | None = None
        self._committed = False

    async def __aenter__(self) -> "BaseUnitOfWork":
        self._committed = False
        self._deadline = asyncio.timeout(self._timeout)
        await self._deadline.__aenter__()
        try:
            await self._begin()
        except BaseException as exc:
            await self._exit_deadline(type(exc), exc, exc.__traceback__)
            raise
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> bool:
        try:
            try:
                if not self._committed:
                    await self._rollback()
            finally:
                await self._close()
        finally:
            await self._exit_deadline(exc_type, exc, tb)

        if exc is not None and isinstance(exc, self.storage_errors):
            logger.error(f"Storage failure, transaction rolled back: {exc!r}")
            raise StorageError() from exc
        return False

    async def commit(self) -> None:
        await self._commit()
        self._committed = True

    async def rollback(self) -> None:
        await self._rollback()

    async def _exit_deadline(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        deadline, self._deadline = self._deadline, None
        if deadline is None:
            return
        try:
            await deadline.__aexit__(exc_type, exc, tb)
        except TimeoutError as e:
            logger.error(f"Storage operation exceeded {self._timeout}s deadline")
            raise StorageError("storage operation timed out") from e

    async def _begin(self) -> None:
        raise NotImplementedError

    async def _commit(self) -> None:
        raise NotImplementedError

    async def _rollback(self) -> None:
        raise NotImplementedError

    async def _close(self) -> None:
        raise NotImplementedError


class SqlAlchemyUnitOfWork(BaseUnitOfWork):
    """Unit of work over one AsyncSession transaction."""

    storage_errors = (SQLAlchemyError,)

    def __init__(
        self,
        session_factory: Callable[[], AsyncSession],
        timeout: float | None = None,
    ) -> None:
        super().__init__(timeout)
        self._session_factory = session_factory
        self.session: AsyncSession | None = None

    async def _begin(self) -> None:
        self.session = self._session_factory()
        self.users = SqlAlchemyUserStore(self.session)
        self.vouchers = SqlAlchemyVoucherStore(self.session)

    async def _commit(self) -> None:
        await self.session.commit()

    async def _rollback(self) -> None:
        await self.session.rollback()

    async def _close(self) -> None:
        await self.session.close()


def sqlalchemy_unit_of_work_factory(
    session_factory: Callable[[], AsyncSession],
    timeout: float | None = None,
) -> UnitOfWorkFactory:
    """Build a factory producing SQLAlchemy units of work."""
    return partial(SqlAlchemyUnitOfWork, session_factory, timeout=timeout)
