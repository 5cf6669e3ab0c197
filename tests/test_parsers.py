"""Tests for bill parsers and format detection."""

from decimal import Decimal
from typing import Any

import pytest

from billsync_cn.models import Direction, RawRecord, Source, Transaction
from billsync_cn.parsers import AlipayParser, ParserRegistry, WeChatParser
from conftest import ALIPAY_HEADER, WECHAT_HEADER


def wechat_row(**overrides: Any) -> list[Any]:
    values = {
        "交易时间": "2024-03-15 12:30:45",
        "交易类型": "商户消费",
        "交易对方": "瑞幸咖啡",
        "商品": "拿铁",
        "收/支": "支出",
        "金额(元)": "¥18.00",
        "支付方式": "零钱",
        "当前状态": "支付成功",
        "交易单号": "4200001\t",
        "商户单号": "M001\t",
        "备注": "/",
    }
    values.update(overrides)
    return [values[h] for h in WECHAT_HEADER]


def alipay_row(**overrides: Any) -> list[Any]:
    values = {
        "交易时间": "2024/3/14 20:15:00",
        "交易分类": "餐饮美食",
        "交易对方": "肯德基",
        "对方账号": "kfc@example.com",
        "商品说明": "汉堡套餐",
        "收/支": "支出",
        "金额": "35.50",
        "收/付款方式": "花呗",
        "交易状态": "交易成功",
        "交易订单号": "2024031422001100001\t",
        "商家订单号": "T001",
        "备注": "",
    }
    values.update(overrides)
    return [values[h] for h in ALIPAY_HEADER]


class TestDetect:
    """Tests for ParserRegistry.detect."""

    def test_wechat_header(self) -> None:
        """Test WeChat header after banner rows."""
        rows = [["微信支付账单明细"], ["微信昵称：[x]"], [], WECHAT_HEADER, wechat_row()]
        detected = ParserRegistry.detect(rows)
        assert detected is not None
        assert detected.parser is WeChatParser
        assert detected.source is Source.WECHAT
        assert detected.header_index == 3
        assert detected.headers == WECHAT_HEADER

    def test_alipay_header(self) -> None:
        """Test Alipay header."""
        rows = [["支付宝交易明细"], ALIPAY_HEADER, alipay_row()]
        detected = ParserRegistry.detect(rows)
        assert detected is not None
        assert detected.parser is AlipayParser
        assert detected.header_index == 1

    def test_header_overrides_suspicion(self) -> None:
        """Test a WeChat header wins even under an Alipay banner."""
        rows = [["支付宝交易明细"], WECHAT_HEADER]
        detected = ParserRegistry.detect(rows)
        assert detected is not None
        assert detected.source is Source.WECHAT

    def test_first_match_wins(self) -> None:
        """Test the first header-like row is used."""
        rows = [ALIPAY_HEADER, WECHAT_HEADER]
        detected = ParserRegistry.detect(rows)
        assert detected is not None
        assert detected.header_index == 0
        assert detected.source is Source.ALIPAY

    def test_spreadsheet_row_with_none_cells(self) -> None:
        """Test None cells are ignored when matching."""
        rows = [[None, None], [*WECHAT_HEADER, None, None]]
        detected = ParserRegistry.detect(rows)
        assert detected is not None
        assert detected.header_index == 1

    def test_headers_cleaned(self) -> None:
        """Test BOM and quotes are stripped from header labels."""
        rows = [['\ufeff"交易时间"', *WECHAT_HEADER[1:]]]
        detected = ParserRegistry.detect(rows)
        assert detected is not None
        assert detected.headers[0] == "交易时间"

    def test_no_header(self) -> None:
        """Test None when no row matches."""
        assert ParserRegistry.detect([["name", "value"], ["a", "b"]]) is None
        assert ParserRegistry.detect([]) is None

    def test_amount_label_must_be_exact(self) -> None:
        """Test a bare amount column is not a WeChat header."""
        assert ParserRegistry.detect([["交易时间", "金额", "交易类型"]]) is None

    def test_registration_order(self) -> None:
        """Test WeChat is tried before Alipay."""
        parsers = ParserRegistry.get_all_parsers()
        assert parsers.index(WeChatParser) < parsers.index(AlipayParser)

    def test_get_parser(self) -> None:
        """Test lookup by source."""
        assert ParserRegistry.get_parser(Source.ALIPAY) is AlipayParser
        assert ParserRegistry.get_parser(Source.WECHAT) is WeChatParser


class TestSuspectSource:
    """Tests for suspect_source and text markers."""

    def test_filename_hint(self) -> None:
        """Test Alipay file names."""
        assert ParserRegistry.suspect_source("", "支付宝交易明细(2024).csv") is Source.ALIPAY

    def test_banner(self) -> None:
        """Test Alipay banner text."""
        assert ParserRegistry.suspect_source("支付宝账户：a@b.c", "bill.csv") is Source.ALIPAY

    def test_default_wechat(self) -> None:
        """Test anything else is suspected WeChat."""
        assert ParserRegistry.suspect_source("微信支付账单明细", "bill.csv") is Source.WECHAT

    def test_custom_hints(self) -> None:
        """Test configured file name hints replace the default."""
        assert ParserRegistry.suspect_source("", "alipay.csv", ["alipay"]) is Source.ALIPAY
        assert ParserRegistry.suspect_source("", "支付宝.csv", ["alipay"]) is Source.WECHAT

    def test_known_markers(self) -> None:
        """Test marker detection on decoded text."""
        assert ParserRegistry.has_known_markers("微信支付账单明细") is True
        assert ParserRegistry.has_known_markers("交易时间,金额(元)") is True
        assert ParserRegistry.has_known_markers("支付宝") is True
        assert ParserRegistry.has_known_markers("交易分类,商品说明") is True
        assert ParserRegistry.has_known_markers("ÖЧ¸¶±¦") is False


class TestBuildRecord:
    """Tests for BillParser.build_record."""

    def test_rekeys_by_canonical_name(self) -> None:
        """Test vendor labels become canonical names."""
        raw = AlipayParser.build_record(ALIPAY_HEADER, alipay_row())
        assert raw.source is Source.ALIPAY
        assert raw.get("type") == "餐饮美食"
        assert raw.get("product") == "汉堡套餐"
        assert raw.get("payment_method") == "花呗"
        assert raw.get("amount") == "35.50"

    def test_short_row(self) -> None:
        """Test missing cells become None."""
        raw = WeChatParser.build_record(WECHAT_HEADER, wechat_row()[:5])
        assert raw.get("time") == "2024-03-15 12:30:45"
        assert raw.get("amount") is None
        assert raw.get("transaction_id") is None


class TestWeChatParser:
    """Tests for WeChat record rules."""

    def normalize(self, **overrides: Any) -> Transaction | None:
        return WeChatParser.normalize(
            WeChatParser.build_record(WECHAT_HEADER, wechat_row(**overrides))
        )

    def test_normalize(self) -> None:
        """Test a regular expense row."""
        tx = self.normalize()
        assert tx is not None
        assert tx.time == "2024-03-15 12:30:45"
        assert tx.type == "商户消费"
        assert tx.counterparty == "瑞幸咖啡"
        assert tx.product == "拿铁"
        assert tx.direction is Direction.EXPENSE
        assert tx.amount == Decimal("18.00")
        assert tx.payment_method == "零钱"
        assert tx.status == "支付成功"
        assert tx.transaction_id == "4200001"
        assert tx.merchant_id == "M001"
        assert tx.note == "/"
        assert tx.source is Source.WECHAT

    def test_neutral_sentinel(self) -> None:
        """Test "/" becomes Neutral."""
        tx = self.normalize(**{"收/支": "/"})
        assert tx is not None
        assert tx.direction is Direction.NEUTRAL

    def test_empty_type_not_defaulted(self) -> None:
        """Test WeChat keeps an empty type."""
        tx = self.normalize(**{"交易类型": ""})
        assert tx is not None
        assert tx.type == ""

    def test_counterparty_sentinel_preserved(self) -> None:
        """Test "/" counterparty is kept verbatim."""
        tx = self.normalize(**{"交易对方": "/"})
        assert tx is not None
        assert tx.counterparty == "/"

    def test_bad_amount_is_zero(self) -> None:
        """Test an unparseable amount does not drop the record."""
        tx = self.normalize(**{"金额(元)": "abc"})
        assert tx is not None
        assert tx.amount == 0

    def test_missing_time(self) -> None:
        """Test a row without time is rejected."""
        assert self.normalize(**{"交易时间": ""}) is None
        assert self.normalize(**{"交易时间": None}) is None

    def test_numeric_non_serial_time(self) -> None:
        """Test a number outside the serial range is rejected."""
        assert self.normalize(**{"交易时间": 12.5}) is None

    def test_serial_time_and_native_amount(self) -> None:
        """Test spreadsheet cells with native types."""
        tx = self.normalize(**{"交易时间": 44927.5, "金额(元)": 100.0})
        assert tx is not None
        assert tx.time == "2023-01-01 12:00:00"
        assert tx.amount == Decimal("100.0")

    def test_missing_id_still_normalizes(self) -> None:
        """Test the id check is left to the pipeline."""
        tx = self.normalize(**{"交易单号": ""})
        assert tx is not None
        assert tx.transaction_id == ""

    def test_raw_data_kept(self) -> None:
        """Test raw fields are kept for inspection."""
        tx = self.normalize()
        assert tx is not None
        assert tx.raw_data["amount"] == "¥18.00"


class TestAlipayParser:
    """Tests for Alipay record rules."""

    def normalize(self, **overrides: Any) -> Transaction | None:
        return AlipayParser.normalize(
            AlipayParser.build_record(ALIPAY_HEADER, alipay_row(**overrides))
        )

    def test_normalize(self) -> None:
        """Test a regular expense row."""
        tx = self.normalize()
        assert tx is not None
        assert tx.time == "2024-03-14 20:15:00"
        assert tx.type == "餐饮美食"
        assert tx.product == "汉堡套餐"
        assert tx.amount == Decimal("35.50")
        assert tx.payment_method == "花呗"
        assert tx.status == "交易成功"
        assert tx.transaction_id == "2024031422001100001"
        assert tx.merchant_id == "T001"
        assert tx.source is Source.ALIPAY

    def test_empty_type_defaults_to_other(self) -> None:
        """Test Alipay rows without category get "Other"."""
        tx = self.normalize(**{"交易分类": ""})
        assert tx is not None
        assert tx.type == "Other"

    @pytest.mark.parametrize("label", ["不计收支", "", "/"])
    def test_neutral_labels(self, label: str) -> None:
        """Test Alipay neutral labels."""
        tx = self.normalize(**{"收/支": label})
        assert tx is not None
        assert tx.direction is Direction.NEUTRAL

    def test_income(self) -> None:
        """Test income rows with thousands separators."""
        tx = self.normalize(**{"收/支": "收入", "金额": "8,000.00"})
        assert tx is not None
        assert tx.direction is Direction.INCOME
        assert tx.amount == Decimal("8000.00")

    def test_source_tag(self) -> None:
        """Test the raw record tag does not change the parser's source."""
        raw = RawRecord(source=Source.ALIPAY, fields={"time": "2024-01-01", "amount": "1"})
        tx = AlipayParser.normalize(raw)
        assert tx is not None
        assert tx.source is Source.ALIPAY
        assert tx.time == "2024-01-01 00:00:00"
