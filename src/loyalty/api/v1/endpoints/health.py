"""Health API endpoints."""

from typing import Any

from fastapi import APIRouter, HTTPException

from loyalty.api.v1.dependencies import UowFactoryDep
from loyalty.core.exceptions import StorageError

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("/live")
async def liveness_check() -> dict[str, Any]:
    """Liveness probe endpoint.

    Returns:
        Simple alive status
    """
    return {"status": "alive"}


@router.get("/ready")
async def readiness_check(uow_factory: UowFactoryDep) -> dict[str, Any]:
    """Readiness probe endpoint; opens one unit of work against storage.

    Raises:
        HTTPException: 503 when storage is unreachable
    """
    try:
        async with uow_factory() as uow:
            await uow.vouchers.exists("")
    except StorageError:
        raise HTTPException(503, "Service not ready") from None

    return {"status": "ready"}
