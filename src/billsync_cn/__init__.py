"""billsync-cn - Merge WeChat Pay and Alipay bill exports into one ledger."""

from billsync_cn.analysis import (
    Dimension,
    Granularity,
    TransactionFilter,
    bucket_date_range,
    date_bounds,
    filter_transactions,
    get_category_breakdown,
    get_filtered_view,
    get_trend,
    summarize,
)
from billsync_cn.ledger import Ledger, reset
from billsync_cn.models import (
    CategorySlice,
    ContainerKind,
    Direction,
    FileReport,
    InputFile,
    MergeStats,
    Source,
    Summary,
    Transaction,
    TrendBucket,
)
from billsync_cn.normalizer import BillNormalizer, IngestResult, ingest, load_files

__version__ = "0.1.0"
__all__ = [
    "BillNormalizer",
    "CategorySlice",
    "ContainerKind",
    "Dimension",
    "Direction",
    "FileReport",
    "Granularity",
    "IngestResult",
    "InputFile",
    "Ledger",
    "MergeStats",
    "Source",
    "Summary",
    "Transaction",
    "TransactionFilter",
    "TrendBucket",
    "bucket_date_range",
    "date_bounds",
    "filter_transactions",
    "get_category_breakdown",
    "get_filtered_view",
    "get_trend",
    "ingest",
    "load_files",
    "reset",
    "summarize",
]
