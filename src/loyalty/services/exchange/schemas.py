"""Points exchange API schemas."""

from pydantic import BaseModel, Field

from loyalty.services.vouchers.schemas import VoucherResponse


class ExchangeRequest(BaseModel):
    """Points to spend and the voucher to create for them."""

    points: int = Field(..., description="Points to deduct")
    description: str = Field(..., description="Voucher description")
    discount: int = Field(..., description="Discount value (0 to 100)")
    is_percentage: bool = Field(False, description="Discount is a percentage")
    category: str = Field("", description="Voucher category")


class ExchangeResponse(BaseModel):
    """Voucher bought with points and the remaining balance."""

    voucher: VoucherResponse
    points: int = Field(..., description="Points balance after the exchange")
