"""Voucher entitlement service module."""

from loyalty.services.entitlements.schemas import (
    EntitlementListResponse,
    EntitlementResponse,
    RedeemRequest,
    RedeemResponse,
    UseRequest,
    UseResponse,
)
from loyalty.services.entitlements.service import EntitlementService

__all__ = [
    # Schemas
    "EntitlementListResponse",
    "EntitlementResponse",
    "RedeemRequest",
    "RedeemResponse",
    "UseRequest",
    "UseResponse",
    # Service
    "EntitlementService",
]
