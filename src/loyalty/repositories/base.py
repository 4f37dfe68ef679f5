"""Base repository with shared SQLAlchemy helpers.

Repositories issue Core-style statements through the session so every
mutation is a single conditional write whose row count tells the outcome.
"""

from typing import Any, Generic, TypeVar

from sqlalchemy import Select, Update, exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from loyalty.models.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """Generic async repository bound to one session.

    The session's transaction is owned by the unit of work; repositories
    never commit.
    """

    model: type[ModelType]

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with async session.

        @param session - SQLAlchemy async session
        """
        self.session = session

    def _select(self) -> Select:
        """Base select that always reloads rows changed by bulk updates."""
        return select(self.model).execution_options(populate_existing=True)

    async def _first(self, stmt: Select) -> ModelType | None:
        result = await self.session.execute(stmt.limit(1))
        return result.scalars().first()

    async def _all(self, stmt: Select) -> list[ModelType]:
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def _update(self, stmt: Update) -> int:
        """Execute a conditional update and return the matched row count.

        @param stmt - UPDATE statement with its WHERE conditions
        @returns Number of rows the condition matched
        """
        result = await self.session.execute(
            stmt.execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def _exists(self, *conditions: Any) -> bool:
        stmt = select(exists().where(*conditions))
        result = await self.session.execute(stmt)
        return bool(result.scalar())
