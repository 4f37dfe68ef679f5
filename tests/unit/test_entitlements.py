"""Tests for redeem, use and the voucher listing refresh."""

from datetime import timedelta
from unittest.mock import patch

import pytest

from loyalty.core.exceptions import (
    AlreadyGrantedError,
    EditConflictError,
    NotFoundError,
    ValidationFailedError,
    VoucherNotAvailableError,
)
from loyalty.domain.entities import utcnow
from loyalty.repositories import InMemoryUserStore
from loyalty.services.entitlements import EntitlementService
from loyalty.services.vouchers import VoucherService


@pytest.fixture
def service(uow_factory):
    return EntitlementService(uow_factory, default_uses=1, refresh_attempts=3)


class TestRedeem:
    """Tests for EntitlementService.redeem."""

    @pytest.mark.asyncio
    async def test_redeem_grants_default_uses(self, service, uow_factory, seed, make_user, make_voucher):
        users, _ = await seed(users=[make_user()], vouchers=[make_voucher()])
        user = users[0]

        assert await service.redeem(user.id, "SAVE10") == 1

        async with uow_factory() as uow:
            assert await uow.users.get_entitlements(user.id) == {"SAVE10": 1}
            assert (await uow.users.get_by_id(user.id)).version == 2

    @pytest.mark.asyncio
    async def test_redeem_twice(self, service, seed, make_user, make_voucher):
        users, _ = await seed(users=[make_user()], vouchers=[make_voucher()])

        await service.redeem(users[0].id, "SAVE10", uses=2)
        with pytest.raises(AlreadyGrantedError):
            await service.redeem(users[0].id, "SAVE10")

    @pytest.mark.asyncio
    async def test_redeem_unknown_voucher(self, service, seed, make_user):
        users, _ = await seed(users=[make_user()])

        with pytest.raises(NotFoundError):
            await service.redeem(users[0].id, "NOPE")

    @pytest.mark.asyncio
    async def test_redeem_inactive_voucher(self, service, seed, make_user, make_voucher):
        users, _ = await seed(users=[make_user()], vouchers=[make_voucher(active=False)])

        with pytest.raises(VoucherNotAvailableError):
            await service.redeem(users[0].id, "SAVE10")

    @pytest.mark.asyncio
    async def test_redeem_expired_voucher(self, service, seed, make_user, make_voucher):
        now = utcnow()
        users, _ = await seed(
            users=[make_user()],
            vouchers=[
                make_voucher(starts=now - timedelta(days=3), expires=now - timedelta(days=1))
            ],
        )

        with pytest.raises(VoucherNotAvailableError):
            await service.redeem(users[0].id, "SAVE10")

    @pytest.mark.asyncio
    async def test_redeem_non_positive_uses(self, service, seed, make_user, make_voucher):
        users, _ = await seed(users=[make_user()], vouchers=[make_voucher()])

        with pytest.raises(ValidationFailedError):
            await service.redeem(users[0].id, "SAVE10", uses=0)


class TestUse:
    """Tests for EntitlementService.use."""

    @pytest.mark.asyncio
    async def test_save10_scenario(self, store_uow, seed_store, make_user, make_voucher):
        """Two users share a two-use voucher; the third use is refused."""
        service = EntitlementService(store_uow)
        users, _ = await seed_store(
            users=[make_user("a@example.com"), make_user("b@example.com")],
            vouchers=[make_voucher(usage_limit=2)],
        )
        alice, bob = users

        await service.redeem(alice.id, "SAVE10", uses=2)
        await service.redeem(bob.id, "SAVE10", uses=1)

        assert await service.use(alice.id, "SAVE10") == 1
        assert await service.use(bob.id, "SAVE10") == 0

        with pytest.raises(EditConflictError):
            await service.use(alice.id, "SAVE10")

        async with store_uow() as uow:
            voucher = await uow.vouchers.get_by_code("SAVE10")
            # The refused use left alice's remaining use untouched.
            assert await uow.users.get_entitlements(alice.id) == {"SAVE10": 1}
        assert voucher.usage_count == 2
        assert voucher.active is False

    @pytest.mark.asyncio
    async def test_use_without_entitlement(
        self, service, uow_factory, seed, make_user, make_voucher
    ):
        users, _ = await seed(users=[make_user()], vouchers=[make_voucher()])

        with pytest.raises(VoucherNotAvailableError):
            await service.use(users[0].id, "SAVE10")

        assert (await VoucherService(uow_factory).get("SAVE10")).usage_count == 0

    @pytest.mark.asyncio
    async def test_use_deleted_voucher_keeps_entitlement(
        self, service, uow_factory, seed, make_user, make_voucher
    ):
        users, _ = await seed(users=[make_user()], vouchers=[make_voucher()])
        user = users[0]
        await service.redeem(user.id, "SAVE10")
        await VoucherService(uow_factory).delete("SAVE10")

        with pytest.raises(NotFoundError):
            await service.use(user.id, "SAVE10")

        async with uow_factory() as uow:
            assert await uow.users.get_entitlements(user.id) == {"SAVE10": 1}


class TestListVouchers:
    """Tests for the entitlement refresh on listing."""

    @pytest.mark.asyncio
    async def test_prunes_inactive_and_missing(
        self, service, uow_factory, seed, make_user, make_voucher
    ):
        users, _ = await seed(
            users=[make_user()],
            vouchers=[make_voucher("ACTIVE1"), make_voucher("GONE"), make_voucher("SPENT", usage_limit=1)],
        )
        user = users[0]
        for code in ("ACTIVE1", "GONE", "SPENT"):
            await service.redeem(user.id, code)
        vouchers = VoucherService(uow_factory)
        await vouchers.delete("GONE")
        await vouchers.use("SPENT")

        entitlements = await service.list_vouchers(user.id)

        assert [(e.voucher.code, e.remaining_uses) for e in entitlements] == [("ACTIVE1", 1)]
        async with uow_factory() as uow:
            assert await uow.users.get_entitlements(user.id) == {"ACTIVE1": 1}

    @pytest.mark.asyncio
    async def test_refresh_is_idempotent(
        self, store_uow, seed_store, make_user, make_voucher
    ):
        service = EntitlementService(store_uow)
        users, _ = await seed_store(
            users=[make_user()],
            vouchers=[make_voucher("A1"), make_voucher("B2", active=False)],
        )
        user = users[0]
        await service.redeem(user.id, "A1")
        async with store_uow() as uow:
            await uow.users.grant_entitlement(user.id, "B2", 1)
            await uow.commit()

        first = await service.list_vouchers(user.id)
        async with store_uow() as uow:
            version_after_first = (await uow.users.get_by_id(user.id)).version

        second = await service.list_vouchers(user.id)
        async with store_uow() as uow:
            version_after_second = (await uow.users.get_by_id(user.id)).version

        assert [(e.voucher.code, e.remaining_uses) for e in first] == [("A1", 1)]
        assert first == second
        # Nothing left to prune, so the second read writes nothing.
        assert version_after_second == version_after_first

    @pytest.mark.asyncio
    async def test_empty_holdings(self, service, seed, make_user):
        users, _ = await seed(users=[make_user()])

        assert await service.list_vouchers(users[0].id) == []

    @pytest.mark.asyncio
    async def test_unknown_user(self, service):
        with pytest.raises(NotFoundError):
            await service.list_vouchers("0" * 32)

    @pytest.mark.asyncio
    async def test_retries_on_conflict(self, service, uow_factory, seed, make_user, make_voucher):
        users, _ = await seed(
            users=[make_user()], vouchers=[make_voucher(active=False)]
        )
        user = users[0]
        async with uow_factory() as uow:
            await uow.users.grant_entitlement(user.id, "SAVE10", 1)
            await uow.commit()

        original = InMemoryUserStore.set_entitlements
        calls = []

        async def flaky(self, user_id, entitlements, expected_version=None):
            calls.append(expected_version)
            if len(calls) == 1:
                raise EditConflictError(user_id=user_id)
            return await original(self, user_id, entitlements, expected_version)

        with patch.object(InMemoryUserStore, "set_entitlements", flaky):
            assert await service.list_vouchers(user.id) == []

        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_gives_up_after_attempts(
        self, service, uow_factory, seed, make_user, make_voucher
    ):
        users, _ = await seed(
            users=[make_user()], vouchers=[make_voucher(active=False)]
        )
        user = users[0]
        async with uow_factory() as uow:
            await uow.users.grant_entitlement(user.id, "SAVE10", 1)
            await uow.commit()

        async def always_conflict(self, user_id, entitlements, expected_version=None):
            raise EditConflictError(user_id=user_id)

        with patch.object(InMemoryUserStore, "set_entitlements", always_conflict):
            with pytest.raises(EditConflictError):
                await service.list_vouchers(user.id)
