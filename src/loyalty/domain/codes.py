"""Voucher code generation."""

import secrets
import string

CODE_ALPHABET = string.ascii_uppercase + string.digits
GENERATED_CODE_LENGTH = 15


def generate_voucher_code(length: int = GENERATED_CODE_LENGTH) -> str:
    """Random URL-safe code from a 36 symbol alphabet (36**15 by default)."""
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))
