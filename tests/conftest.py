"""Pytest configuration and fixtures."""

from decimal import Decimal
from io import BytesIO
from pathlib import Path
from typing import Any

import pytest

from billsync_cn.models import Direction, Source, Transaction

WECHAT_HEADER = [
    "交易时间", "交易类型", "交易对方", "商品", "收/支", "金额(元)",
    "支付方式", "当前状态", "交易单号", "商户单号", "备注",
]

ALIPAY_HEADER = [
    "交易时间", "交易分类", "交易对方", "对方账号", "商品说明", "收/支", "金额",
    "收/付款方式", "交易状态", "交易订单号", "商家订单号", "备注",
]


@pytest.fixture
def fixtures_dir() -> Path:
    """Return path to test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def wechat_file(fixtures_dir: Path) -> Path:
    """Return path to the WeChat Pay CSV fixture (UTF-8 with BOM)."""
    return fixtures_dir / "wechat_bill.csv"


@pytest.fixture
def alipay_file(fixtures_dir: Path) -> Path:
    """Return path to the Alipay CSV fixture (GBK)."""
    return fixtures_dir / "alipay_bill.csv"


@pytest.fixture
def noise_file(fixtures_dir: Path) -> Path:
    """Return path to a CSV that is not a bill export."""
    return fixtures_dir / "noise.csv"


def make_xlsx(rows: list[list[Any]]) -> bytes:
    """Build a single-sheet workbook in memory."""
    from openpyxl import Workbook

    wb = Workbook()
    sheet = wb.active
    for row in rows:
        sheet.append(row)
    buffer = BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def make_tx(
    transaction_id: str = "T1",
    time: str = "2024-03-15 12:00:00",
    amount: str = "10.00",
    direction: Direction = Direction.EXPENSE,
    **kwargs: Any,
) -> Transaction:
    """Build a transaction with sensible defaults."""
    fields: dict[str, Any] = {
        "type": "商户消费",
        "counterparty": "瑞幸咖啡",
        "product": "拿铁",
        "payment_method": "零钱",
        "status": "支付成功",
        "source": Source.WECHAT,
    }
    fields.update(kwargs)
    return Transaction(
        time=time,
        direction=direction,
        amount=Decimal(amount),
        transaction_id=transaction_id,
        **fields,
    )
