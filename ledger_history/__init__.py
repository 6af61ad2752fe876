"""
Ledger History Package - Account transaction history with USD valuations.

Features:
- Backward block-window pagination under a per-stream record cap
- Native and internal transfers normalized into one schema
- Lossless wei -> ether formatting (truncating, never rounding)
- Nearest-sample historical USD pricing
- Typed failures: invalid input, upstream failure; price gaps degrade to None

Quick Start:
    from ledger_history import ServiceConfig, TransactionReportService

    async def recent_history(address: str):
        config = ServiceConfig.from_env()
        async with TransactionReportService.from_config(config) as service:
            report = await service.build_report(address, include_internal=True)

        for row in report.rows:
            print(row.datetime_utc, row.type.value, row.value_ether, row.value_usd)

Serving over HTTP:
    ledger-history --port 8000
    curl "http://localhost:8000/api/txs?address=0x...&includeInternal=1"
"""

from ledger_history.aggregator import (
    TransactionReportService,
    merge_transactions,
    validate_address,
)
from ledger_history.base import BaseHttpSource, BaseLedgerSource, BasePriceSource
from ledger_history.config import ServiceConfig
from ledger_history.envelope import (
    EnvelopeEmpty,
    EnvelopeFailure,
    EnvelopeRecords,
    parse_envelope,
)
from ledger_history.exceptions import (
    ConfigurationError,
    InvalidAddressError,
    LedgerHistoryError,
    PriceUnavailableError,
    UpstreamFetchError,
)
from ledger_history.fetcher import ChunkedLedgerFetcher
from ledger_history.models import (
    AggregatedReport,
    Direction,
    FetchWindow,
    LedgerRecord,
    NormalizedTransaction,
    RecordKind,
    TransactionStatus,
    TransactionType,
)
from ledger_history.normalizer import (
    RecordNormalizer,
    compute_gas_fee,
    format_ether,
)
from ledger_history.pricing import PriceInterpolator, PriceSeries
from ledger_history.providers import CoinGeckoPriceSource, EtherscanLedgerSource
from ledger_history.rate_limiter import RateLimiter


__version__ = "1.0.0"

__all__ = [
    # Pipeline
    "TransactionReportService",
    "merge_transactions",
    "validate_address",
    "ChunkedLedgerFetcher",
    "RecordNormalizer",
    "PriceInterpolator",
    "PriceSeries",
    "RateLimiter",
    "format_ether",
    "compute_gas_fee",

    # Sources
    "BaseHttpSource",
    "BaseLedgerSource",
    "BasePriceSource",
    "EtherscanLedgerSource",
    "CoinGeckoPriceSource",

    # Envelope
    "parse_envelope",
    "EnvelopeRecords",
    "EnvelopeEmpty",
    "EnvelopeFailure",

    # Models
    "AggregatedReport",
    "Direction",
    "FetchWindow",
    "LedgerRecord",
    "NormalizedTransaction",
    "RecordKind",
    "TransactionStatus",
    "TransactionType",

    # Config
    "ServiceConfig",

    # Exceptions
    "LedgerHistoryError",
    "InvalidAddressError",
    "UpstreamFetchError",
    "PriceUnavailableError",
    "ConfigurationError",
]
