"""Voucher maintenance tasks."""

import logging
from typing import Any

from loyalty.core.config import get_settings
from loyalty.infrastructure.database import create_async_db_engine, create_session_factory
from loyalty.repositories import sqlalchemy_unit_of_work_factory
from loyalty.services.vouchers import VoucherService
from loyalty.tasks.base import async_task

logger = logging.getLogger(__name__)


async def run_expiry_sweep(service: VoucherService) -> dict[str, Any]:
    """Deactivate vouchers past their expiry and report how many changed."""
    expired = await service.expire_stale()
    return {"status": "completed", "expired": expired}


@async_task(name="loyalty.tasks.voucher_tasks.expire_vouchers")
async def expire_vouchers(self) -> dict[str, Any]:
    """Periodic expiry sweep.

    Flips ``active`` off for vouchers whose window has ended so listings
    and redemption see them as unavailable.
    """
    settings = get_settings()
    engine = create_async_db_engine(settings)
    try:
        uow_factory = sqlalchemy_unit_of_work_factory(
            create_session_factory(engine), timeout=settings.db_operation_timeout
        )
        result = await run_expiry_sweep(VoucherService(uow_factory))
    finally:
        await engine.dispose()

    logger.info(f"Expiry sweep finished: {result['expired']} vouchers deactivated")
    return result
