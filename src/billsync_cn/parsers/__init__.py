"""Bill parsers package."""

from billsync_cn.parsers.base import (
    CANONICAL_FIELDS,
    BillParser,
    DetectedFormat,
    ParserRegistry,
)
# Import order is detection order.
from billsync_cn.parsers.wechat import WeChatParser
from billsync_cn.parsers.alipay import AlipayParser

__all__ = [
    "CANONICAL_FIELDS",
    "BillParser",
    "DetectedFormat",
    "ParserRegistry",
    "WeChatParser",
    "AlipayParser",
]
