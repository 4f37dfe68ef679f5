"""Voucher API schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class VoucherCreateRequest(BaseModel):
    """New voucher; the code is generated when omitted."""

    code: str | None = Field(None, description="Alphanumeric code, up to 20 chars")
    description: str = Field(..., description="Human readable description")
    discount: int = Field(..., description="Discount value (0 to 100)")
    is_percentage: bool = Field(False, description="Discount is a percentage")
    min_spend: int = Field(0, description="Minimum spend to apply the voucher")
    category: str = Field("", description="Voucher category")
    starts: datetime = Field(..., description="Start of the validity window")
    expires: datetime = Field(..., description="End of the validity window")
    usage_limit: int = Field(..., description="Global number of uses allowed")
    active: bool = Field(True, description="Voucher can be redeemed and used")


class VoucherResponse(BaseModel):
    """Voucher view."""

    model_config = ConfigDict(from_attributes=True)

    code: str = Field(..., description="Voucher code")
    description: str = Field(..., description="Description")
    discount: int = Field(..., description="Discount value")
    is_percentage: bool = Field(..., description="Discount is a percentage")
    min_spend: int = Field(..., description="Minimum spend")
    category: str = Field(..., description="Category")
    starts: datetime = Field(..., description="Start of the validity window")
    expires: datetime = Field(..., description="End of the validity window")
    active: bool = Field(..., description="Voucher is active")
    usage_limit: int = Field(..., description="Global number of uses allowed")
    usage_count: int = Field(..., description="Uses so far")


class PaginationMeta(BaseModel):
    """Cursor pagination metadata."""

    cursor: str | None = Field(None, description="Pass as cursor to get the next page")
    page_size: int = Field(..., description="Items per page")


class VoucherListResponse(BaseModel):
    """One page of vouchers."""

    vouchers: list[VoucherResponse]
    metadata: PaginationMeta


class ExpireResponse(BaseModel):
    """Result of an expiry sweep."""

    expired: int = Field(..., description="Vouchers deactivated by this sweep")
