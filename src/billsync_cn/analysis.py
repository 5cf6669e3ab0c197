"""Filtering and aggregation over ledger transactions.

Every function here is pure: it takes the transactions and parameters it
needs and returns a fresh result, so callers recompute views whenever the
ledger or the filters change.
"""

import calendar
import re
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from billsync_cn.config import DEFAULT_CATEGORY_LIMIT
from billsync_cn.ledger import Ledger
from billsync_cn.models import (
    CategorySlice,
    Direction,
    Summary,
    Transaction,
    TrendBucket,
)

ALL_DIRECTIONS = "All"
UNKNOWN_BUCKET = "Unknown"
UNKNOWN_MERCHANT = "Unknown Merchant"
OTHER = "Other"
COUNTERPARTY_UNKNOWN = "/"


class Granularity(str, Enum):
    """Trend bucket size, valued by the length of the time prefix used."""

    DAILY = "daily"
    MONTHLY = "monthly"
    YEARLY = "yearly"

    @property
    def key_length(self) -> int:
        return {"daily": 10, "monthly": 7, "yearly": 4}[self.value]


class Dimension(str, Enum):
    """Field a category breakdown groups by."""

    TYPE = "type"
    COUNTERPARTY = "counterparty"
    PRODUCT = "product"
    PAYMENT_METHOD = "payment_method"


@dataclass(frozen=True)
class TransactionFilter:
    """Filter parameters applied to the ledger."""

    search: str = ""
    direction: Direction | str = ALL_DIRECTIONS
    start_date: str = ""
    end_date: str = ""


def _matches_search(tx: Transaction, search: str) -> bool:
    if not search:
        return True
    return any(
        search in value
        for value in (tx.product, tx.counterparty, tx.type, tx.payment_method)
    )


def filter_transactions(
    transactions: Iterable[Transaction],
    search: str = "",
    direction: Direction | str = ALL_DIRECTIONS,
    start_date: str = "",
    end_date: str = "",
) -> list[Transaction]:
    """
    Filter transactions and sort them newest first.

    Args:
        transactions: Transactions to filter
        search: Case-sensitive substring of product, counterparty, type or
            payment method; empty matches everything
        direction: "All", or the direction to keep
        start_date: Inclusive YYYY-MM-DD lower bound, empty for none
        end_date: Inclusive YYYY-MM-DD upper bound, empty for none

    Returns:
        Matching transactions sorted by time descending

    Raises:
        ValueError: If direction is not "All" or a direction label
    """
    wanted = None if direction == ALL_DIRECTIONS else Direction(direction)

    result = []
    for tx in transactions:
        if not _matches_search(tx, search):
            continue
        if wanted is not None and tx.direction is not wanted:
            continue
        day = tx.time[:10]
        if start_date and day < start_date:
            continue
        if end_date and day > end_date:
            continue
        result.append(tx)

    result.sort(key=lambda t: t.time, reverse=True)
    return result


def get_filtered_view(
    ledger: Ledger, filters: TransactionFilter | None = None
) -> list[Transaction]:
    """Apply a TransactionFilter to a ledger."""
    filters = filters or TransactionFilter()
    return filter_transactions(
        ledger,
        search=filters.search,
        direction=filters.direction,
        start_date=filters.start_date,
        end_date=filters.end_date,
    )


def get_trend(
    transactions: Iterable[Transaction],
    granularity: Granularity | str = Granularity.MONTHLY,
) -> list[TrendBucket]:
    """
    Sum income and expense per time bucket.

    Neutral transactions count toward neither sum. Transactions without a
    time land in the "Unknown" bucket.

    Args:
        transactions: Usually a filtered view
        granularity: daily, monthly or yearly

    Returns:
        Buckets sorted by key ascending

    Raises:
        ValueError: If granularity is not recognized
    """
    length = Granularity(granularity).key_length
    income: dict[str, Decimal] = {}
    expense: dict[str, Decimal] = {}

    for tx in transactions:
        key = tx.time[:length] or UNKNOWN_BUCKET
        income.setdefault(key, Decimal(0))
        expense.setdefault(key, Decimal(0))
        if tx.is_income:
            income[key] += tx.amount
        elif tx.is_expense:
            expense[key] += tx.amount

    return [
        TrendBucket(key=key, income=income[key], expense=expense[key])
        for key in sorted(income)
    ]


def _category_key(tx: Transaction, dimension: Dimension) -> str:
    if dimension is Dimension.COUNTERPARTY:
        key = UNKNOWN_MERCHANT if tx.counterparty == COUNTERPARTY_UNKNOWN else tx.counterparty
    else:
        key = getattr(tx, dimension.value)
    return key if key and key.strip() else OTHER


def get_category_breakdown(
    transactions: Iterable[Transaction],
    dimension: Dimension | str = Dimension.TYPE,
    direction: Direction | str = Direction.EXPENSE,
    limit: int = DEFAULT_CATEGORY_LIMIT,
) -> list[CategorySlice]:
    """
    Sum amounts per category for one direction.

    Groups beyond the largest `limit` are folded into a trailing "Other"
    slice, or into the "Other" group itself when it is among the largest.
    The slice values always add up to the total amount of the selected
    transactions.

    Args:
        transactions: Usually a filtered view
        dimension: type, counterparty, product or payment_method
        direction: Income or Expense
        limit: Number of slices kept before folding

    Returns:
        Slices sorted by value descending, at most limit + 1 of them

    Raises:
        ValueError: If dimension or direction is not recognized
    """
    dimension = Dimension(dimension)
    direction = Direction(direction)

    totals: dict[str, Decimal] = {}
    for tx in transactions:
        if tx.direction is not direction:
            continue
        key = _category_key(tx, dimension)
        totals[key] = totals.get(key, Decimal(0)) + tx.amount

    slices = [CategorySlice(name=name, value=value) for name, value in totals.items()]
    slices.sort(key=lambda s: s.value, reverse=True)

    if len(slices) > limit:
        rest = sum((s.value for s in slices[limit:]), Decimal(0))
        slices = slices[:limit]
        # Slice names stay unique: a kept "Other" group absorbs the tail.
        for i, kept in enumerate(slices):
            if kept.name == OTHER:
                slices[i] = CategorySlice(name=OTHER, value=kept.value + rest)
                slices.sort(key=lambda s: s.value, reverse=True)
                break
        else:
            slices.append(CategorySlice(name=OTHER, value=rest))

    return slices


def summarize(transactions: Iterable[Transaction]) -> Summary:
    """Total income, expense and neutral amounts."""
    totals = {direction: Decimal(0) for direction in Direction}
    for tx in transactions:
        totals[tx.direction] += tx.amount
    return Summary(
        income=totals[Direction.INCOME],
        expense=totals[Direction.EXPENSE],
        neutral=totals[Direction.NEUTRAL],
    )


def date_bounds(transactions: Iterable[Transaction]) -> tuple[str, str]:
    """Get the earliest and latest YYYY-MM-DD dates, ("", "") if none."""
    days = sorted(tx.date for tx in transactions if tx.time)
    if not days:
        return "", ""
    return days[0], days[-1]


def bucket_date_range(key: str, granularity: Granularity | str) -> tuple[str, str]:
    """
    Get the inclusive date range a trend bucket covers.

    Used to drill down from a trend bucket into the date-range filter.

    Args:
        key: Bucket key from get_trend
        granularity: Granularity the key was produced with

    Returns:
        (start_date, end_date), or ("", "") for an unknown or malformed key
    """
    granularity = Granularity(granularity)

    if granularity is Granularity.DAILY:
        if re.fullmatch(r"\d{4}-\d{2}-\d{2}", key):
            return key, key
    elif granularity is Granularity.MONTHLY:
        match = re.fullmatch(r"(\d{4})-(\d{2})", key)
        if match and 1 <= int(match.group(2)) <= 12:
            last_day = calendar.monthrange(int(match.group(1)), int(match.group(2)))[1]
            return f"{key}-01", f"{key}-{last_day:02d}"
    elif re.fullmatch(r"\d{4}", key):
        return f"{key}-01-01", f"{key}-12-31"

    return "", ""
