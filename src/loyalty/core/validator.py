"""Field level validation producing structured error maps."""

import re
from typing import Any

from loyalty.core.exceptions import ValidationFailedError

EMAIL_RX = re.compile(
    r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+@[a-zA-Z0-9]"
    r"(?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$"
)
ALPHANUMERIC_RX = re.compile(r"^[A-Za-z0-9]+$")


class Validator:
    """Accumulates named validation errors.

    Only the first message per key is kept, so checks can be ordered from
    most to least fundamental.

    Example:
        v = Validator()
        v.check(points >= 0, "points", "must be a positive integer")
        v.raise_if_invalid()
    """

    def __init__(self) -> None:
        self.errors: dict[str, str] = {}

    @property
    def valid(self) -> bool:
        """True if no errors have been recorded."""
        return not self.errors

    def add_error(self, key: str, message: str) -> None:
        """Record an error unless one already exists for ``key``."""
        self.errors.setdefault(key, message)

    def check(self, ok: bool, key: str, message: str) -> None:
        """Record an error if ``ok`` is false."""
        if not ok:
            self.add_error(key, message)

    def raise_if_invalid(self) -> None:
        """Raise ValidationFailedError carrying the error map if invalid."""
        if not self.valid:
            raise ValidationFailedError(self.errors)


def permitted_value(value: Any, *permitted: Any) -> bool:
    """True if ``value`` is one of ``permitted``."""
    return value in permitted


def matches(value: str, rx: re.Pattern[str]) -> bool:
    """True if ``value`` matches the compiled pattern."""
    return rx.match(value) is not None
