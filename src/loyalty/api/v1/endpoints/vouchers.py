"""Voucher catalogue API endpoints."""

import logging
from datetime import datetime

from fastapi import APIRouter, Query, status

from loyalty.api.v1.dependencies import VoucherServiceDep
from loyalty.domain import Filters, VoucherPredicates
from loyalty.domain.entities import as_utc
from loyalty.domain.filters import DEFAULT_PAGE_SIZE
from loyalty.services.auth import AdminUser, CurrentUser
from loyalty.services.vouchers import (
    ExpireResponse,
    PaginationMeta,
    VoucherCreateRequest,
    VoucherListResponse,
    VoucherResponse,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/vouchers", tags=["Vouchers"])


@router.get("", response_model=VoucherListResponse)
async def list_vouchers(
    user: CurrentUser,
    service: VoucherServiceDep,
    code: str | None = Query(None, description="Exact voucher code"),
    starts: datetime | None = Query(None, description="Starting on or after"),
    expires: datetime | None = Query(None, description="Expiring on or before"),
    active: bool = Query(False, description="Only active vouchers"),
    min_spend: int | None = Query(None, description="Minimum spend at most"),
    category: str | None = Query(None, description="Category"),
    cursor: str | None = Query(None, description="Code of the last item seen"),
    page_size: int = Query(DEFAULT_PAGE_SIZE, description="Items per page"),
    sort: str = Query("code", description="Sort field, prefix - for descending"),
) -> VoucherListResponse:
    """List vouchers with filters and cursor pagination."""
    predicates = VoucherPredicates(
        code=code,
        starts=as_utc(starts) if starts else None,
        expires=as_utc(expires) if expires else None,
        active=active,
        min_spend=min_spend,
        category=category,
    )
    filters = Filters(cursor=cursor, page_size=page_size, sort=sort)

    page = await service.list(predicates, filters)
    return VoucherListResponse(
        vouchers=[VoucherResponse.model_validate(v) for v in page.items],
        metadata=PaginationMeta(
            cursor=page.metadata.cursor, page_size=page.metadata.page_size
        ),
    )


@router.post(
    "", response_model=VoucherResponse, status_code=status.HTTP_201_CREATED
)
async def create_voucher(
    request: VoucherCreateRequest, user: AdminUser, service: VoucherServiceDep
) -> VoucherResponse:
    """Create a voucher.

    Requires: admin role
    """
    voucher = await service.create(**request.model_dump())
    return VoucherResponse.model_validate(voucher)


@router.post("/expire", response_model=ExpireResponse)
async def expire_vouchers(
    user: AdminUser, service: VoucherServiceDep
) -> ExpireResponse:
    """Deactivate every voucher whose validity window has ended.

    Requires: admin role
    """
    return ExpireResponse(expired=await service.expire_stale())


@router.get("/{code}", response_model=VoucherResponse)
async def get_voucher(
    code: str, user: CurrentUser, service: VoucherServiceDep
) -> VoucherResponse:
    return VoucherResponse.model_validate(await service.get(code))


@router.delete("/{code}")
async def delete_voucher(
    code: str, user: AdminUser, service: VoucherServiceDep
) -> dict:
    """Delete a voucher.

    Requires: admin role
    """
    await service.delete(code)
    return {"message": "voucher successfully deleted"}


@router.put("/{code}/use", response_model=VoucherResponse)
async def use_voucher(
    code: str, user: AdminUser, service: VoucherServiceDep
) -> VoucherResponse:
    """Count one use against the voucher's global limit.

    Requires: admin role
    """
    return VoucherResponse.model_validate(await service.use(code))
