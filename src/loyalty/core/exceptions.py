"""Domain error taxonomy.

Stores classify storage outcomes into these errors at their boundary; the
API layer maps them to HTTP responses. Anything that is not a
``LoyaltyError`` is treated as an opaque internal failure.

Usage:
    try:
        await vouchers.increment_usage("SAVE10")
    except EditConflictError:
        ...  # voucher exists but is exhausted or inactive
"""

from typing import Any


class LoyaltyError(Exception):
    """Base class for all domain errors.

    Carries a machine readable ``code``, a human message and optional
    structured details.
    """

    code = "LOYALTY_ERROR"
    default_message = "Loyalty operation failed"

    def __init__(self, message: str | None = None, **details: Any):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def as_dict(self) -> dict[str, Any]:
        """Serialize error for API responses."""
        data: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            data["details"] = self.details
        return data


class NotFoundError(LoyaltyError):
    code = "NOT_FOUND"
    default_message = "the requested resource could not be found"


class DuplicateKeyError(LoyaltyError):
    code = "DUPLICATE_KEY"
    default_message = "a record with this key already exists"


class DuplicateEmailError(DuplicateKeyError):
    code = "DUPLICATE_EMAIL"
    default_message = "a user with this email address already exists"


class DuplicateCodeError(DuplicateKeyError):
    code = "DUPLICATE_CODE"
    default_message = "a voucher with the provided voucher code already exists"


class EditConflictError(LoyaltyError):
    """Conditional update matched the record but its precondition failed."""

    code = "EDIT_CONFLICT"
    default_message = (
        "unable to update the record due to an edit conflict, please try again"
    )


class AlreadyGrantedError(LoyaltyError):
    code = "ALREADY_GRANTED"
    default_message = "voucher already redeemed"


class ExchangeFailedError(LoyaltyError):
    code = "EXCHANGE_FAILED"
    default_message = "problem exchanging points for voucher"


class InsufficientPointsError(ExchangeFailedError):
    code = "INSUFFICIENT_POINTS"
    default_message = "insufficient points for exchange"


class VoucherAlreadyExistsError(ExchangeFailedError):
    code = "VOUCHER_ALREADY_EXISTS"
    default_message = "voucher already exists"


class VoucherNotAvailableError(LoyaltyError):
    code = "VOUCHER_NOT_AVAILABLE"
    default_message = "voucher is not available for this user"


class ValidationFailedError(LoyaltyError):
    """Field level validation failure.

    ``errors`` maps field names to the first message recorded for them.
    """

    code = "VALIDATION_FAILED"
    default_message = "validation failed"

    def __init__(self, errors: dict[str, str], message: str | None = None):
        self.errors = dict(errors)
        super().__init__(message, fields=self.errors)


class StorageError(LoyaltyError):
    """Storage failure that is not a domain outcome (timeouts, driver errors)."""

    code = "STORAGE_ERROR"
    default_message = "the server encountered a problem and could not process your request"


class InvalidCredentialsError(LoyaltyError):
    code = "INVALID_CREDENTIALS"
    default_message = "invalid authentication credentials"
