"""Alipay bill parser."""

from typing import ClassVar

from billsync_cn.models import Source
from billsync_cn.parsers.base import BillParser, ParserRegistry

DEFAULT_TYPE = "Other"


@ParserRegistry.register
class AlipayParser(BillParser):
    """Parser for Alipay bill exports (GBK CSV and XLSX)."""

    source: ClassVar[Source] = Source.ALIPAY
    header_signature: ClassVar[tuple[str, ...]] = ("交易时间", "交易分类", "商品说明")
    text_markers: ClassVar[tuple[tuple[str, ...], ...]] = (("支付宝",), ("交易分类", "商品"))
    aliases: ClassVar[dict[str, str]] = {
        "time": "交易时间",
        "type": "交易分类",
        "counterparty": "交易对方",
        "product": "商品说明",
        "direction": "收/支",
        "amount": "金额",
        "payment_method": "收/付款方式",
        "status": "交易状态",
        "transaction_id": "交易订单号",
        "merchant_id": "商家订单号",
        "note": "备注",
    }

    @classmethod
    def normalize_type(cls, value: str) -> str:
        """Alipay rows without a category fall under "Other"."""
        return value or DEFAULT_TYPE
