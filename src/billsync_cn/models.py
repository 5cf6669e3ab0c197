"""Data models for bill transactions."""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any


class Source(str, Enum):
    """Payment provider an export came from."""

    WECHAT = "WeChat"
    ALIPAY = "Alipay"


class Direction(str, Enum):
    """Canonical money direction of a transaction."""

    INCOME = "Income"
    EXPENSE = "Expense"
    NEUTRAL = "Neutral"

    @classmethod
    def from_label(cls, label: str) -> "Direction":
        """
        Map a vendor direction label to a Direction.

        WeChat marks neutral transfers with "/", Alipay with "不计收支";
        an empty label is neutral as well. Unknown labels fall back to neutral.
        """
        return _DIRECTION_LABELS.get(label.strip(), cls.NEUTRAL)


_DIRECTION_LABELS: dict[str, Direction] = {
    "收入": Direction.INCOME,
    "支出": Direction.EXPENSE,
    "不计收支": Direction.NEUTRAL,
    "/": Direction.NEUTRAL,
    "": Direction.NEUTRAL,
    "Income": Direction.INCOME,
    "Expense": Direction.EXPENSE,
    "Neutral": Direction.NEUTRAL,
}


@dataclass(frozen=True)
class Transaction:
    """Represents a normalized bill transaction."""

    time: str
    type: str
    counterparty: str
    product: str
    direction: Direction
    amount: Decimal
    payment_method: str
    status: str
    transaction_id: str
    source: Source
    merchant_id: str = ""
    note: str = ""
    raw_data: dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def date(self) -> str:
        """Return the YYYY-MM-DD prefix of the transaction time."""
        return self.time[:10]

    @property
    def is_expense(self) -> bool:
        """Return True if this is an expense."""
        return self.direction is Direction.EXPENSE

    @property
    def is_income(self) -> bool:
        """Return True if this is income."""
        return self.direction is Direction.INCOME


@dataclass(frozen=True)
class RawRecord:
    """A vendor row keyed by canonical field name, tagged with its source."""

    source: Source
    fields: dict[str, Any]

    def get(self, name: str) -> Any:
        return self.fields.get(name)


class ContainerKind(str, Enum):
    """How an uploaded file is laid out."""

    TEXT = "text"
    SPREADSHEET = "spreadsheet"


@dataclass(frozen=True)
class InputFile:
    """One uploaded file: raw bytes plus its name and container kind."""

    name: str
    data: bytes
    kind: ContainerKind = ContainerKind.TEXT

    @staticmethod
    def guess_kind(name: str) -> ContainerKind:
        """Guess the container kind from the file extension."""
        suffix = Path(name).suffix.lower()
        if suffix in (".xlsx", ".xls"):
            return ContainerKind.SPREADSHEET
        return ContainerKind.TEXT

    @classmethod
    def from_bytes(cls, name: str, data: bytes) -> "InputFile":
        return cls(name=name, data=data, kind=cls.guess_kind(name))

    @classmethod
    def from_path(cls, path: Path) -> "InputFile":
        """Read a file from disk."""
        return cls.from_bytes(path.name, path.read_bytes())


@dataclass
class FileReport:
    """Diagnostics for one ingested file."""

    filename: str
    source: Source | None = None
    records_added: int = 0
    rows_skipped: int = 0
    reason_codes: dict[str, int] = field(default_factory=dict)
    error: str | None = None

    def skip(self, reason: str) -> None:
        """Count a dropped row under the given reason code."""
        self.rows_skipped += 1
        self.reason_codes[reason] = self.reason_codes.get(reason, 0) + 1

    @property
    def recognized(self) -> bool:
        """Return True if a header row was found."""
        return self.source is not None


@dataclass(frozen=True)
class MergeStats:
    """Counts reported after merging a batch into the ledger."""

    total: int
    new_added: int
    duplicates: int


@dataclass(frozen=True)
class TrendBucket:
    """Income and expense sums for one time bucket."""

    key: str
    income: Decimal = Decimal(0)
    expense: Decimal = Decimal(0)


@dataclass(frozen=True)
class CategorySlice:
    """One named slice of a category breakdown."""

    name: str
    value: Decimal


@dataclass(frozen=True)
class Summary:
    """Totals over a set of transactions."""

    income: Decimal = Decimal(0)
    expense: Decimal = Decimal(0)
    neutral: Decimal = Decimal(0)

    @property
    def balance(self) -> Decimal:
        """Income minus expense."""
        return self.income - self.expense
