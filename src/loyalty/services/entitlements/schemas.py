"""Entitlement API schemas."""

from pydantic import BaseModel, Field

from loyalty.services.vouchers.schemas import VoucherResponse


class RedeemRequest(BaseModel):
    """Voucher to add to the current user."""

    code: str = Field(..., description="Voucher code")
    uses: int | None = Field(None, description="Uses to grant (server default if omitted)")


class UseRequest(BaseModel):
    """Voucher to spend one use of."""

    code: str = Field(..., description="Voucher code")


class EntitlementResponse(BaseModel):
    """Held voucher with the user's remaining uses."""

    voucher: VoucherResponse
    remaining_uses: int = Field(..., description="Uses left for this user")


class EntitlementListResponse(BaseModel):
    """Active vouchers held by the current user."""

    vouchers: list[EntitlementResponse]


class RedeemResponse(BaseModel):
    code: str
    uses: int


class UseResponse(BaseModel):
    code: str
    remaining_uses: int
