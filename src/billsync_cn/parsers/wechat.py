"""WeChat Pay bill parser."""

from typing import ClassVar

from billsync_cn.models import Source
from billsync_cn.parsers.base import BillParser, ParserRegistry


@ParserRegistry.register
class WeChatParser(BillParser):
    """Parser for WeChat Pay bill exports (CSV and XLSX)."""

    source: ClassVar[Source] = Source.WECHAT
    header_signature: ClassVar[tuple[str, ...]] = ("交易时间", "金额(元)")
    text_markers: ClassVar[tuple[tuple[str, ...], ...]] = (("微信支付",), ("交易时间",))
    aliases: ClassVar[dict[str, str]] = {
        "time": "交易时间",
        "type": "交易类型",
        "counterparty": "交易对方",
        "product": "商品",
        "direction": "收/支",
        "amount": "金额(元)",
        "payment_method": "支付方式",
        "status": "当前状态",
        "transaction_id": "交易单号",
        "merchant_id": "商户单号",
        "note": "备注",
    }

    @classmethod
    def normalize_type(cls, value: str) -> str:
        """WeChat labels are kept as-is, empty included."""
        return value
