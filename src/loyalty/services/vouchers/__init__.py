"""Voucher catalogue service module."""

from loyalty.services.vouchers.schemas import (
    ExpireResponse,
    PaginationMeta,
    VoucherCreateRequest,
    VoucherListResponse,
    VoucherResponse,
)
from loyalty.services.vouchers.service import VoucherService

__all__ = [
    # Schemas
    "ExpireResponse",
    "PaginationMeta",
    "VoucherCreateRequest",
    "VoucherListResponse",
    "VoucherResponse",
    # Service
    "VoucherService",
]
