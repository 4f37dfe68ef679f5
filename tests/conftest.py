"""Pytest configuration and fixtures."""

from datetime import timedelta

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from loyalty.core.config import Settings
from loyalty.domain import User, Voucher
from loyalty.domain.entities import utcnow
from loyalty.infrastructure.database import (
    create_async_db_engine,
    create_session_factory,
    create_tables,
)
from loyalty.repositories import (
    InMemoryDatabase,
    in_memory_unit_of_work_factory,
    sqlalchemy_unit_of_work_factory,
)


@pytest.fixture(scope="function")
def settings():
    """Create settings instance for testing."""
    return Settings(
        _env_file=None,
        environment="testing",
        secret_key="test-secret-key-for-testing-only",
        bcrypt_rounds=4,
        db_operation_timeout=5.0,
    )


@pytest.fixture
def db():
    """Fresh in-memory database."""
    return InMemoryDatabase()


@pytest.fixture
def uow_factory(db, settings):
    """Unit of work factory over the in-memory database."""
    return in_memory_unit_of_work_factory(db, timeout=settings.db_operation_timeout)


@pytest.fixture
def app(settings, uow_factory):
    """Create FastAPI application for testing."""
    from loyalty.main import create_app

    return create_app(settings=settings, uow_factory=uow_factory)


@pytest.fixture
def client(app):
    """Create test client."""
    with TestClient(app) as client:
        yield client


@pytest.fixture
def make_voucher():
    """Build an unsaved voucher valid from yesterday for thirty days."""

    def _make(code: str = "SAVE10", **overrides) -> Voucher:
        now = utcnow()
        fields = {
            "code": code,
            "description": "Ten percent off",
            "discount": 10,
            "is_percentage": True,
            "starts": now - timedelta(days=1),
            "expires": now + timedelta(days=30),
            "usage_limit": 5,
        }
        fields.update(overrides)
        return Voucher(**fields)

    return _make


@pytest.fixture
def make_user():
    """Build an unsaved user with a placeholder password hash."""

    def _make(email: str = "alice@example.com", **overrides) -> User:
        fields = {
            "name": "Alice",
            "email": email,
            "password_hash": "$2b$04$placeholderplaceholderplaceholderplaceholderpla",
        }
        fields.update(overrides)
        return User(**fields)

    return _make


def seeder(uow_factory):
    """Insert users and vouchers in one committed unit of work."""

    async def _seed(users=(), vouchers=()):
        async with uow_factory() as uow:
            stored_users = [await uow.users.insert(u) for u in users]
            stored_vouchers = [await uow.vouchers.insert(v) for v in vouchers]
            await uow.commit()
        return stored_users, stored_vouchers

    return _seed


@pytest.fixture
def seed(uow_factory):
    return seeder(uow_factory)


@pytest_asyncio.fixture(params=["memory", "sqlite"])
async def store_uow(request, tmp_path):
    """Unit of work factory for each storage backend."""
    if request.param == "memory":
        yield in_memory_unit_of_work_factory(InMemoryDatabase(), timeout=5.0)
    else:
        settings = Settings(
            _env_file=None,
            db_url_override=f"sqlite+aiosqlite:///{tmp_path / 'loyalty.db'}",
        )
        engine = create_async_db_engine(settings)
        await create_tables(engine)
        yield sqlalchemy_unit_of_work_factory(create_session_factory(engine), timeout=5.0)
        await engine.dispose()


@pytest.fixture
def seed_store(store_uow):
    return seeder(store_uow)
