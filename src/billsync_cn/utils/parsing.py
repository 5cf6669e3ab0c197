"""Parsing utilities for bill export files."""

import math
import re
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from io import BytesIO
from typing import Any

# Spreadsheet day serials are counted from this date (1900 date system).
EXCEL_EPOCH = datetime(1899, 12, 30)

# Numbers inside this open interval are treated as day serials
# (roughly 1982 to 2064); anything else is an amount or an id, not a date.
SERIAL_MIN = 30000
SERIAL_MAX = 60000

MIN_FIELDS = 5

_DATE_RE = re.compile(
    r"^(\d{4})[-年](\d{1,2})[-月](\d{1,2})日?"
    r"(?:\s*(\d{1,2})[:：](\d{1,2})(?:[:：](\d{1,2}))?)?"
)
_AMOUNT_JUNK_RE = re.compile(r"[¥￥,\s]")
_CONTROL_RE = re.compile(r"[\x00-\x1f\x7f]")
_ZIP_MAGIC = b"PK\x03\x04"
_OLE2_MAGIC = b"\xd0\xcf\x11\xe0"


def excel_serial_to_str(serial: float) -> str:
    """
    Convert a spreadsheet day serial to YYYY-MM-DD HH:MM:SS.

    The time of day is derived from the fractional part with integer
    arithmetic so float noise (0.49999999 days) cannot shift the clock.

    Args:
        serial: Days since 1899-12-30, fraction is the time of day

    Returns:
        Canonical timestamp string
    """
    days = math.floor(serial)
    seconds = math.floor((serial - days + 1e-7) * 86400)
    if seconds >= 86400:
        days += 1
        seconds -= 86400

    day = EXCEL_EPOCH + timedelta(days=days)
    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{day:%Y-%m-%d} {hours:02d}:{minutes:02d}:{secs:02d}"


def normalize_date(value: Any) -> str:
    """
    Normalize a raw date value to YYYY-MM-DD HH:MM:SS.

    Handles:
    - Spreadsheet day serials (numbers between 30000 and 60000)
    - datetime/date cells returned by spreadsheet readers
    - 2023-01-05 10:00:00, 2023/1/5 10:00:00, 2023年1月5日 10：00：00
    - Times without seconds (2023/1/5 10:00)

    Text that does not look like a date is returned unchanged, since some
    exports already carry canonical values. Never raises.

    Args:
        value: Raw cell value

    Returns:
        Timestamp string, or "" when the value cannot be a date
    """
    if value is None or isinstance(value, bool):
        return ""

    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M:%S")
    if isinstance(value, date):
        return value.strftime("%Y-%m-%d 00:00:00")

    if isinstance(value, (int, float, Decimal)):
        try:
            number = float(value)
        except (OverflowError, ValueError):
            return ""
        if SERIAL_MIN < number < SERIAL_MAX:
            return excel_serial_to_str(number)
        return ""

    date_str = str(value).strip().replace("/", "-")
    match = _DATE_RE.match(date_str)
    if not match:
        return date_str

    year, month, day, hh, mm, ss = match.groups()
    time_part = "00:00:00"
    if hh is not None:
        ss = ss or "00"
        time_part = f"{hh.zfill(2)}:{mm.zfill(2)}:{ss.zfill(2)}"
    return f"{year}-{month.zfill(2)}-{day.zfill(2)} {time_part}"


def clean_text(value: Any) -> str:
    """Convert a raw cell to a stripped string; None becomes ""."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        # Spreadsheet readers hand back whole numbers as floats.
        return str(int(value))
    return str(value).strip()


def parse_amount(value: Any, default: Decimal = Decimal(0)) -> Decimal:
    """
    Parse an amount cell to Decimal.

    Handles:
    - Native numbers from spreadsheet cells
    - Currency glyphs (¥, ￥)
    - Thousands separators (commas)

    Args:
        value: Raw amount value
        default: Returned when the value is not a finite number

    Returns:
        Parsed Decimal, or default
    """
    if value is None or isinstance(value, bool):
        return default

    if isinstance(value, (int, float, Decimal)):
        try:
            amount = Decimal(str(value))
        except InvalidOperation:
            return default
        return amount if amount.is_finite() else default

    amount_str = _AMOUNT_JUNK_RE.sub("", str(value)).strip('"')
    if not amount_str:
        return default

    try:
        amount = Decimal(amount_str)
    except InvalidOperation:
        return default
    return amount if amount.is_finite() else default


def strip_control_chars(value: str) -> str:
    """Remove tabs and other control characters (exports pad ids with \\t)."""
    return _CONTROL_RE.sub("", value)


def split_csv_line(line: str, delimiter: str = ",") -> list[str]:
    """
    Split one delimited line into fields.

    A delimiter only splits when it is followed by an even number of
    double quotes up to the end of the line, i.e. it sits outside any
    quoted segment. Each field is stripped of whitespace and of one
    leading and one trailing quote.

    Args:
        line: Raw line without its newline
        delimiter: Field delimiter

    Returns:
        List of field values
    """
    pattern = re.escape(delimiter) + r'(?=(?:[^"]*"[^"]*")*[^"]*$)'
    fields = re.split(pattern, line)
    return [_strip_quotes(f.strip()) for f in fields]


def _strip_quotes(value: str) -> str:
    if value.startswith('"'):
        value = value[1:]
    if value.endswith('"'):
        value = value[:-1]
    return value


def clean_header(value: Any) -> str:
    """Clean a header cell: strip whitespace, BOM and surrounding quotes."""
    header = clean_text(value)
    return re.sub('^[\ufeff"]+|"$', "", header).strip()


def decode_text(data: bytes, encoding: str) -> str:
    """
    Decode file bytes, replacing undecodable sequences.

    Args:
        data: Raw file content
        encoding: Codec name, e.g. utf-8 or gbk

    Returns:
        Decoded text (a leading BOM is kept for the header cleaner)
    """
    return data.decode(encoding, errors="replace")


def is_workbook(data: bytes) -> bool:
    """Check for xlsx (zip) or xls (OLE2) magic bytes."""
    return data[:4] in (_ZIP_MAGIC, _OLE2_MAGIC)


def read_grid(data: bytes) -> list[list[Any]]:
    """
    Read the first sheet of a workbook as a 2-D grid.

    Cell values keep their native types so numeric date serials reach the
    date normalizer untouched.

    Args:
        data: Raw workbook bytes (.xlsx or .xls)

    Returns:
        Rows of cell values

    Raises:
        ValueError: If the workbook cannot be read
    """
    if data[:4] == _OLE2_MAGIC:
        return _read_xls(data)
    return _read_xlsx(data)


def _read_xlsx(data: bytes) -> list[list[Any]]:
    """Read an OOXML workbook with openpyxl."""
    try:
        from openpyxl import load_workbook
    except ImportError as err:
        raise ValueError(
            "openpyxl is required to read .xlsx files. Install with: pip install openpyxl"
        ) from err

    try:
        wb = load_workbook(BytesIO(data), read_only=True, data_only=True)
    except Exception as e:
        raise ValueError(f"Could not read workbook: {e}") from e

    try:
        sheet = wb.worksheets[0]
        return [list(row) for row in sheet.iter_rows(values_only=True)]
    finally:
        wb.close()


def _read_xls(data: bytes) -> list[list[Any]]:
    """Read a legacy BIFF workbook with xlrd."""
    try:
        import xlrd  # type: ignore[import-untyped]
    except ImportError as err:
        raise ValueError(
            "xlrd is required to read .xls files. Install with: pip install xlrd"
        ) from err

    try:
        wb = xlrd.open_workbook(file_contents=data)
        sheet = wb.sheet_by_index(0)
        return [sheet.row_values(row) for row in range(sheet.nrows)]
    except Exception as e:
        raise ValueError(f"Could not read workbook: {e}") from e
