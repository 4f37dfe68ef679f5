"""Tests for the points to voucher exchange."""

from datetime import timedelta
from unittest.mock import Mock, patch

import pytest

from loyalty.core.exceptions import (
    ExchangeFailedError,
    InsufficientPointsError,
    NotFoundError,
    ValidationFailedError,
    VoucherAlreadyExistsError,
)
from loyalty.domain import Filters, VoucherPredicates
from loyalty.services.exchange import ExchangeCoordinator
from loyalty.services.vouchers import VoucherService


class TestExchangeCoordinator:
    """Tests for ExchangeCoordinator."""

    @pytest.mark.asyncio
    async def test_exchange_creates_and_grants_voucher(
        self, uow_factory, seed, make_user
    ):
        users, _ = await seed(users=[make_user(points=200)])
        user = users[0]
        coordinator = ExchangeCoordinator(uow_factory, valid_days=7)

        result = await coordinator.exchange(
            user.id, 150, description="Free coffee", discount=100, category="food"
        )

        assert result.balance == 50
        voucher = result.voucher
        assert len(voucher.code) == 15
        assert voucher.usage_limit == 1
        assert voucher.usage_count == 0
        assert voucher.active is True
        assert voucher.category == "food"
        assert voucher.expires - voucher.starts == timedelta(days=7)

        async with uow_factory() as uow:
            assert (await uow.users.get_by_id(user.id)).points == 50
            assert await uow.users.get_entitlements(user.id) == {voucher.code: 1}
            assert await uow.vouchers.exists(voucher.code)

    @pytest.mark.asyncio
    async def test_insufficient_points_changes_nothing(
        self, store_uow, seed_store, make_user
    ):
        users, _ = await seed_store(users=[make_user(points=100)])
        user = users[0]
        coordinator = ExchangeCoordinator(store_uow)

        with pytest.raises(InsufficientPointsError) as exc_info:
            await coordinator.exchange(user.id, 150, description="Too much", discount=10)

        assert isinstance(exc_info.value, ExchangeFailedError)
        async with store_uow() as uow:
            stored = await uow.users.get_by_id(user.id)
            assert stored.points == 100
            assert stored.version == 1
            assert await uow.users.get_entitlements(user.id) == {}
        page = await VoucherService(store_uow).list(VoucherPredicates(), Filters())
        assert page.items == []

    @pytest.mark.asyncio
    async def test_code_collision_rolls_back_deduction(
        self, store_uow, seed_store, make_user, make_voucher
    ):
        users, _ = await seed_store(
            users=[make_user(points=100)], vouchers=[make_voucher("TAKEN")]
        )
        user = users[0]
        coordinator = ExchangeCoordinator(store_uow)

        # Simulate another writer inserting the reserved code first.
        with patch.object(coordinator, "_reserve_code", return_value="TAKEN"):
            with pytest.raises(VoucherAlreadyExistsError):
                await coordinator.exchange(user.id, 60, description="Race", discount=5)

        async with store_uow() as uow:
            stored = await uow.users.get_by_id(user.id)
            assert stored.points == 100
            assert stored.version == 1
            assert await uow.users.get_entitlements(user.id) == {}
            assert (await uow.vouchers.get_by_code("TAKEN")).description == "Ten percent off"

    @pytest.mark.asyncio
    async def test_reserve_code_gives_up_after_attempts(self, uow_factory, seed, make_voucher):
        await seed(vouchers=[make_voucher("SAMECODE")])
        coordinator = ExchangeCoordinator(uow_factory, code_attempts=2)

        with patch(
            "loyalty.services.exchange.coordinator.VoucherStore.generate_code",
            return_value="SAMECODE",
        ) as generate:
            with pytest.raises(VoucherAlreadyExistsError):
                await coordinator._reserve_code()

        assert generate.call_count == 2

    @pytest.mark.asyncio
    async def test_negative_points_rejected(self, uow_factory, seed, make_user):
        users, _ = await seed(users=[make_user(points=100)])
        coordinator = ExchangeCoordinator(uow_factory)

        with pytest.raises(ValidationFailedError) as exc_info:
            await coordinator.exchange(users[0].id, -5, description="Gift", discount=5)

        assert "points" in exc_info.value.errors

    @pytest.mark.asyncio
    async def test_invalid_voucher_fields_rejected(self, uow_factory, seed, make_user):
        users, _ = await seed(users=[make_user(points=100)])
        coordinator = ExchangeCoordinator(uow_factory)

        with pytest.raises(ValidationFailedError) as exc_info:
            await coordinator.exchange(users[0].id, 10, description="", discount=500)

        assert set(exc_info.value.errors) == {"description", "discount"}

    @pytest.mark.asyncio
    async def test_unknown_user(self, uow_factory, db):
        coordinator = ExchangeCoordinator(uow_factory)

        with pytest.raises(NotFoundError):
            await coordinator.exchange("0" * 32, 10, description="Ghost", discount=5)

        assert db.vouchers == {}

    @pytest.mark.asyncio
    async def test_validation_runs_before_storage(self):
        uow_factory = Mock(side_effect=AssertionError("storage opened"))
        coordinator = ExchangeCoordinator(uow_factory)

        with pytest.raises(ValidationFailedError) as exc_info:
            await coordinator.exchange("0" * 32, -5, description="Gift", discount=5)

        assert "points" in exc_info.value.errors
        uow_factory.assert_not_called()
