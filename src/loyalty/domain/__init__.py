"""Domain entities, filters and validation rules."""

from loyalty.domain.codes import generate_voucher_code
from loyalty.domain.entities import Entitlement, User, Voucher
from loyalty.domain.filters import (
    VOUCHER_SORT_SAFELIST,
    Filters,
    Metadata,
    Page,
    VoucherPredicates,
    validate_filters,
)
from loyalty.domain.rules import (
    validate_email,
    validate_password_plaintext,
    validate_points,
    validate_user,
    validate_voucher,
)

__all__ = [
    # Entities
    "User",
    "Voucher",
    "Entitlement",
    # Codes
    "generate_voucher_code",
    # Listing
    "Filters",
    "Metadata",
    "Page",
    "VoucherPredicates",
    "VOUCHER_SORT_SAFELIST",
    "validate_filters",
    # Rules
    "validate_email",
    "validate_password_plaintext",
    "validate_points",
    "validate_user",
    "validate_voucher",
]
