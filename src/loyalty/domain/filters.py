"""Filtering, sorting and cursor pagination for listings."""

from dataclasses import dataclass, field
from datetime import datetime

from loyalty.core.validator import Validator, permitted_value

MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 20

VOUCHER_SORT_FIELDS = ("code", "starts", "expires", "active", "min_spend", "category")
VOUCHER_SORT_SAFELIST = VOUCHER_SORT_FIELDS + tuple(f"-{f}" for f in VOUCHER_SORT_FIELDS)


@dataclass
class Filters:
    """Cursor pagination and sort parameters.

    ``cursor`` is the code of the last item on the previous page. ``sort``
    names a field from ``sort_safelist``; a leading ``-`` sorts descending.
    """

    cursor: str | None = None
    page_size: int = DEFAULT_PAGE_SIZE
    sort: str = "code"
    sort_safelist: tuple[str, ...] = VOUCHER_SORT_SAFELIST

    @property
    def sort_column(self) -> str:
        """Sort field without its direction prefix.

        Raises ValueError for values outside the safelist; callers are
        expected to have run validate_filters first.
        """
        if self.sort not in self.sort_safelist:
            raise ValueError(f"unsafe sort parameter: {self.sort}")
        return self.sort.lstrip("-")

    @property
    def descending(self) -> bool:
        return self.sort.startswith("-")

    @property
    def limit(self) -> int:
        return self.page_size


@dataclass
class VoucherPredicates:
    """Optional predicates for the voucher listing.

    ``active`` only filters when true, matching the listing's
    "only active vouchers" switch.
    """

    code: str | None = None
    starts: datetime | None = None
    expires: datetime | None = None
    active: bool = False
    min_spend: int | None = None
    category: str | None = None


@dataclass
class Metadata:
    """Pagination metadata returned with each page."""

    cursor: str | None = None
    page_size: int = DEFAULT_PAGE_SIZE


@dataclass
class Page:
    """One page of results plus metadata for fetching the next one."""

    items: list = field(default_factory=list)
    metadata: Metadata = field(default_factory=Metadata)


def validate_filters(v: Validator, f: Filters) -> None:
    v.check(f.page_size > 0, "page_size", "must be greater than 0")
    v.check(f.page_size <= MAX_PAGE_SIZE, "page_size", "must be a maximum of 100")
    v.check(permitted_value(f.sort, *f.sort_safelist), "sort", "invalid sort value")
