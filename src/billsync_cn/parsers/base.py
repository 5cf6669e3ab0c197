"""Base parser class and registry for bill export parsers."""

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, ClassVar

from billsync_cn.models import Direction, RawRecord, Source, Transaction
from billsync_cn.utils import (
    clean_header,
    clean_text,
    normalize_date,
    parse_amount,
    strip_control_chars,
)

logger = logging.getLogger(__name__)

# Canonical field names, in Transaction order.
CANONICAL_FIELDS = (
    "time",
    "type",
    "counterparty",
    "product",
    "direction",
    "amount",
    "payment_method",
    "status",
    "transaction_id",
    "merchant_id",
    "note",
)


@dataclass
class DetectedFormat:
    """Vendor and header location detected in an export."""

    parser: type["BillParser"]
    header_index: int
    headers: list[str]

    @property
    def source(self) -> Source:
        return self.parser.source


class BillParser(ABC):
    """Abstract base class for bill record normalizers."""

    # Class attributes to be overridden by subclasses
    source: ClassVar[Source]
    header_signature: ClassVar[tuple[str, ...]] = ()
    # Substrings proving the text was decoded with the right codec
    text_markers: ClassVar[tuple[tuple[str, ...], ...]] = ()
    # Canonical field name -> vendor header label
    aliases: ClassVar[dict[str, str]] = {}

    @classmethod
    def matches_header(cls, row_text: str) -> bool:
        """
        Check if a row is this vendor's header row.

        Args:
            row_text: Non-empty cells of the row joined by commas

        Returns:
            True if every signature label occurs in the row
        """
        return all(label in row_text for label in cls.header_signature)

    @classmethod
    def has_markers(cls, text: str) -> bool:
        """Check if decoded text contains any of this vendor's markers."""
        return any(
            all(marker in text for marker in group) for group in cls.text_markers
        )

    @classmethod
    def build_record(cls, headers: Sequence[str], cells: Sequence[Any]) -> RawRecord:
        """
        Re-key a data row by canonical field name.

        Args:
            headers: Cleaned header labels
            cells: Raw cell values of one data row

        Returns:
            RawRecord tagged with this vendor's source
        """
        by_label = {
            header: cells[i] if i < len(cells) else None
            for i, header in enumerate(headers)
        }
        return RawRecord(
            source=cls.source,
            fields={name: by_label.get(cls.aliases.get(name, "")) for name in CANONICAL_FIELDS},
        )

    @classmethod
    def normalize(cls, raw: RawRecord) -> Transaction | None:
        """
        Map a raw record into a Transaction.

        Args:
            raw: Row keyed by canonical field name

        Returns:
            Transaction, or None if the time is missing or the amount is
            not a finite number
        """
        time = normalize_date(raw.get("time"))
        amount = parse_amount(raw.get("amount"))
        if not time or not amount.is_finite():
            return None

        return Transaction(
            time=time,
            type=cls.normalize_type(clean_text(raw.get("type"))),
            counterparty=clean_text(raw.get("counterparty")),
            product=clean_text(raw.get("product")),
            direction=Direction.from_label(clean_text(raw.get("direction"))),
            amount=amount,
            payment_method=clean_text(raw.get("payment_method")),
            status=clean_text(raw.get("status")),
            transaction_id=strip_control_chars(clean_text(raw.get("transaction_id"))),
            merchant_id=strip_control_chars(clean_text(raw.get("merchant_id"))),
            note=clean_text(raw.get("note")),
            source=cls.source,
            raw_data=dict(raw.fields),
        )

    @classmethod
    @abstractmethod
    def normalize_type(cls, value: str) -> str:
        """Apply vendor defaulting to the category label."""


class ParserRegistry:
    """Registry for bill parsers with automatic detection."""

    _parsers: ClassVar[list[type[BillParser]]] = []

    # Suspected Alipay when seen in the file name or text
    alipay_filename_hints: ClassVar[tuple[str, ...]] = ("支付宝",)
    alipay_banners: ClassVar[tuple[str, ...]] = ("支付宝交易明细", "支付宝账户")

    @classmethod
    def register(cls, parser_class: type[BillParser]) -> type[BillParser]:
        """
        Register a parser class. Can be used as a decorator.

        Detection tries parsers in registration order.
        """
        if parser_class not in cls._parsers:
            cls._parsers.append(parser_class)
        return parser_class

    @classmethod
    def suspect_source(
        cls,
        text: str,
        filename: str,
        filename_hints: Sequence[str] | None = None,
    ) -> Source:
        """
        Guess the vendor before the header row is located.

        Only used to pick a decoding and for logging; the header row decides.
        """
        hints = cls.alipay_filename_hints if filename_hints is None else filename_hints
        if any(hint in filename for hint in hints):
            return Source.ALIPAY
        if any(banner in text for banner in cls.alipay_banners):
            return Source.ALIPAY
        return Source.WECHAT

    @classmethod
    def has_known_markers(cls, text: str) -> bool:
        """Check if text decoded to anything a registered parser recognizes."""
        return any(parser.has_markers(text) for parser in cls._parsers)

    @classmethod
    def detect(cls, rows: Sequence[Sequence[Any]]) -> DetectedFormat | None:
        """
        Locate the header row and the vendor it belongs to.

        Args:
            rows: Lines split into cells, or spreadsheet rows

        Returns:
            DetectedFormat for the first matching row, None if no row matches
        """
        for index, row in enumerate(rows):
            row_text = ",".join(clean_text(cell) for cell in row if cell is not None)
            for parser_class in cls._parsers:
                if parser_class.matches_header(row_text):
                    logger.debug(
                        "Header for %s found at row %d", parser_class.source.value, index
                    )
                    return DetectedFormat(
                        parser=parser_class,
                        header_index=index,
                        headers=[clean_header(cell) for cell in row],
                    )
        return None

    @classmethod
    def get_parser(cls, source: Source) -> type[BillParser] | None:
        """Get the registered parser for a source."""
        for parser_class in cls._parsers:
            if parser_class.source is source:
                return parser_class
        return None

    @classmethod
    def get_all_parsers(cls) -> list[type[BillParser]]:
        """Get all registered parser classes."""
        return cls._parsers.copy()
