"""Database infrastructure module."""

from loyalty.infrastructure.database.session import (
    create_async_db_engine,
    create_session_factory,
    create_tables,
)

__all__ = [
    "create_async_db_engine",
    "create_session_factory",
    "create_tables",
]
