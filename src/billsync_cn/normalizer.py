"""Main normalizer class that orchestrates ingestion."""

import asyncio
import logging
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from billsync_cn.config import get_alipay_filename_hints, get_encodings
from billsync_cn.ledger import Ledger
from billsync_cn.models import (
    ContainerKind,
    FileReport,
    InputFile,
    MergeStats,
    Source,
    Transaction,
)
from billsync_cn.parsers import ParserRegistry
from billsync_cn.parsers.base import DetectedFormat
from billsync_cn.utils import MIN_FIELDS, decode_text, read_grid, split_csv_line
from billsync_cn.utils.parsing import is_workbook

logger = logging.getLogger(__name__)

_LINE_SPLIT_RE = re.compile(r"\r\n|\n")


class BillNormalizer:
    """
    Main class for ingesting bill exports.

    Usage:
        normalizer = BillNormalizer()
        transactions = normalizer.process_files([InputFile.from_path(p) for p in paths])
        for report in normalizer.reports:
            print(report.filename, report.records_added, report.reason_codes)
    """

    def __init__(self, config: dict[str, Any] | None = None) -> None:
        """
        Initialize normalizer.

        Args:
            config: Loaded JSON config for encodings and file name hints
        """
        self.config = config
        self._errors: list[tuple[str, str]] = []
        self._reports: list[FileReport] = []

    @property
    def errors(self) -> list[tuple[str, str]]:
        """Get list of (filename, error_message) for failed files."""
        return self._errors.copy()

    @property
    def reports(self) -> list[FileReport]:
        """Get per-file diagnostics of the last batch."""
        return self._reports.copy()

    def process_file(self, file: InputFile) -> list[Transaction]:
        """
        Process a single file and return transactions.

        Workbooks are recognized by their magic bytes, so a CSV export saved
        with an .xls name is still read as text. A file that cannot be read
        or has no recognizable header contributes no transactions; the
        reason is kept in errors and reports.

        Args:
            file: Uploaded file

        Returns:
            List of Transaction objects, in file order
        """
        report = FileReport(filename=file.name)
        self._reports.append(report)

        try:
            if is_workbook(file.data):
                rows = read_grid(file.data)
            else:
                if file.kind == ContainerKind.SPREADSHEET:
                    logger.debug("%s is not a workbook, reading it as text", file.name)
                rows = [split_csv_line(line) for line in self._decode(file)]
        except Exception as e:
            logger.exception("Failed to read %s", file.name)
            report.error = str(e)
            report.reason_codes["read_error"] = 1
            self._errors.append((file.name, f"Read error: {e}"))
            return []

        detected = ParserRegistry.detect(rows)
        if detected is None:
            logger.warning("No bill header found in %s", file.name)
            report.error = "No header row found"
            report.reason_codes["no_header"] = 1
            self._errors.append((file.name, "No parser found for this file format"))
            return []

        report.source = detected.source
        transactions = self._parse_rows(rows, detected, report)
        logger.info(
            "%s: %d %s records, %d rows skipped",
            file.name,
            report.records_added,
            detected.source.value,
            report.rows_skipped,
        )
        return transactions

    def process_files(self, files: Iterable[InputFile]) -> list[Transaction]:
        """
        Process multiple files in order and return combined transactions.

        Args:
            files: Uploaded files

        Returns:
            Transactions of all files, concatenated in input order
        """
        self._errors = []
        self._reports = []
        all_transactions: list[Transaction] = []

        for file in files:
            all_transactions.extend(self.process_file(file))

        return all_transactions

    async def aprocess_paths(self, paths: Sequence[Path]) -> list[Transaction]:
        """Load files from disk one after another, then process them."""
        files = await load_files(paths)
        return self.process_files(files)

    def _decode(self, file: InputFile) -> list[str]:
        """
        Decode a delimited export into lines.

        Alipay-looking file names start with the Alipay codec (GBK), others
        with UTF-8. If the text shows no vendor markers, decode once more
        with the other codec.
        """
        default_encoding, alipay_encoding = get_encodings(self.config)
        hints = get_alipay_filename_hints(self.config)

        if ParserRegistry.suspect_source("", file.name, hints) is Source.ALIPAY:
            primary, alternate = alipay_encoding, default_encoding
        else:
            primary, alternate = default_encoding, alipay_encoding

        text = decode_text(file.data, primary)
        if not ParserRegistry.has_known_markers(text):
            logger.debug(
                "No bill markers in %s decoded as %s, retrying with %s",
                file.name,
                primary,
                alternate,
            )
            text = decode_text(file.data, alternate)

        logger.debug(
            "%s decoded, suspected source %s",
            file.name,
            ParserRegistry.suspect_source(text, file.name, hints).value,
        )
        return _LINE_SPLIT_RE.split(text)

    @staticmethod
    def _parse_rows(
        rows: Sequence[Sequence[Any]],
        detected: DetectedFormat,
        report: FileReport,
    ) -> list[Transaction]:
        """Normalize every row below the header."""
        parser = detected.parser
        transactions: list[Transaction] = []

        for row in rows[detected.header_index + 1 :]:
            if not row or all(cell is None or str(cell).strip() == "" for cell in row):
                report.skip("blank_row")
                continue

            if len(row) < MIN_FIELDS:
                report.skip("too_few_fields")
                continue

            tx = parser.normalize(parser.build_record(detected.headers, row))
            if tx is None:
                report.skip("invalid_record")
                continue

            if not tx.transaction_id:
                report.skip("missing_transaction_id")
                continue

            transactions.append(tx)

        report.records_added = len(transactions)
        return transactions


async def load_files(paths: Sequence[Path]) -> list[InputFile]:
    """
    Read files from disk without blocking the event loop.

    Files are read one at a time, in order, so merge results stay
    deterministic. Unreadable paths are logged and skipped.

    Args:
        paths: Files to read

    Returns:
        Loaded files, in input order
    """
    files: list[InputFile] = []
    for path in paths:
        try:
            data = await asyncio.to_thread(path.read_bytes)
        except OSError:
            logger.exception("Could not read %s", path)
            continue
        files.append(InputFile.from_bytes(path.name, data))
    return files


@dataclass
class IngestResult:
    """Outcome of ingesting one batch of files."""

    ledger: Ledger
    stats: MergeStats
    reports: list[FileReport] = field(default_factory=list)


def ingest(
    files: Iterable[InputFile],
    ledger: Ledger | None = None,
    config: dict[str, Any] | None = None,
) -> IngestResult:
    """
    Ingest a batch of files and merge it into a ledger.

    Args:
        files: Uploaded files, processed in order
        ledger: Existing ledger (empty if omitted); it is not modified
        config: Loaded JSON config

    Returns:
        IngestResult with the merged ledger, merge counts and file reports
    """
    normalizer = BillNormalizer(config=config)
    batch = normalizer.process_files(files)
    merged, stats = (ledger if ledger is not None else Ledger()).merge(batch)
    return IngestResult(ledger=merged, stats=stats, reports=normalizer.reports)
