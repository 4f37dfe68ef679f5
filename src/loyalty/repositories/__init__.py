"""Repository layer for storage operations.

Store interfaces with two interchangeable implementations: SQLAlchemy 2.x
async repositories and deterministic in-memory stores. Units of work bind
both stores to one transaction.
"""

from loyalty.repositories.base import BaseRepository
from loyalty.repositories.interfaces import UnitOfWork, UserStore, VoucherStore
from loyalty.repositories.memory import (
    InMemoryDatabase,
    InMemoryUnitOfWork,
    InMemoryUserStore,
    InMemoryVoucherStore,
    in_memory_unit_of_work_factory,
)
from loyalty.repositories.unit_of_work import (
    BaseUnitOfWork,
    SqlAlchemyUnitOfWork,
    UnitOfWorkFactory,
    sqlalchemy_unit_of_work_factory,
)
from loyalty.repositories.user import SqlAlchemyUserStore
from loyalty.repositories.voucher import SqlAlchemyVoucherStore

__all__ = [
    # Interfaces
    "UnitOfWork",
    "UnitOfWorkFactory",
    "UserStore",
    "VoucherStore",
    # SQLAlchemy
    "BaseRepository",
    "BaseUnitOfWork",
    "SqlAlchemyUnitOfWork",
    "SqlAlchemyUserStore",
    "SqlAlchemyVoucherStore",
    "sqlalchemy_unit_of_work_factory",
    # In-memory
    "InMemoryDatabase",
    "InMemoryUnitOfWork",
    "InMemoryUserStore",
    "InMemoryVoucherStore",
    "in_memory_unit_of_work_factory",
]
