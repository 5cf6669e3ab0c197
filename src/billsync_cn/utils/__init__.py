"""Utility functions for billsync-cn."""

from billsync_cn.utils.parsing import (
    MIN_FIELDS,
    clean_header,
    clean_text,
    decode_text,
    excel_serial_to_str,
    normalize_date,
    parse_amount,
    read_grid,
    split_csv_line,
    strip_control_chars,
)

__all__ = [
    "MIN_FIELDS",
    "clean_header",
    "clean_text",
    "decode_text",
    "excel_serial_to_str",
    "normalize_date",
    "parse_amount",
    "read_grid",
    "split_csv_line",
    "strip_control_chars",
]
