"""Validation rules for users, points and vouchers."""

from loyalty.core.validator import ALPHANUMERIC_RX, EMAIL_RX, Validator, matches
from loyalty.domain.entities import User, Voucher

MAX_CODE_LENGTH = 20


def validate_points(v: Validator, points: int) -> None:
    v.check(points >= 0, "points", "must be a positive integer")


def validate_email(v: Validator, email: str) -> None:
    v.check(email != "", "email", "must be provided")
    v.check(matches(email, EMAIL_RX), "email", "must be a valid email address")


def validate_password_plaintext(v: Validator, password: str) -> None:
    """Passwords must be 8 to 72 bytes; bcrypt ignores anything longer."""
    v.check(password != "", "password", "must be provided")
    v.check(len(password.encode()) >= 8, "password", "must be at least 8 bytes long")
    v.check(
        len(password.encode()) <= 72, "password", "must not be more than 72 bytes long"
    )


def validate_user(v: Validator, user: User, password: str | None = None) -> None:
    v.check(user.name != "", "name", "must be provided")
    v.check(len(user.name.encode()) <= 500, "name", "must not be more than 500 bytes long")

    validate_email(v, user.email)

    if password is not None:
        validate_password_plaintext(v, password)

    # A missing hash is a programming error, not bad client input.
    if not user.password_hash:
        raise RuntimeError("missing password hash for user")


def validate_voucher(v: Validator, voucher: Voucher) -> None:
    v.check(voucher.code != "", "code", "must be provided")
    v.check(
        len(voucher.code) <= MAX_CODE_LENGTH,
        "code",
        "must not be more than 20 characters long",
    )
    v.check(matches(voucher.code, ALPHANUMERIC_RX), "code", "must be alphanumeric")

    v.check(voucher.description != "", "description", "must be provided")
    v.check(
        len(voucher.description) <= 500,
        "description",
        "must not be more than 500 characters long",
    )

    v.check(voucher.discount >= 0, "discount", "must be a positive number")
    v.check(voucher.discount <= 100, "discount", "must not be more than 100")
    v.check(voucher.min_spend >= 0, "min_spend", "must be a positive number")

    v.check(voucher.usage_limit > 0, "usage_limit", "must be greater than zero")
    v.check(
        0 <= voucher.usage_count <= voucher.usage_limit,
        "usage_count",
        "must be between zero and the usage limit",
    )

    v.check(voucher.starts < voucher.expires, "starts", "must be before the expiry date")
