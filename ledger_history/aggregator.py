"""
Report aggregation.

============================================================
PIPELINE
============================================================
1. Validate the address (no network call on failure)
2. Fetch native and, optionally, internal records concurrently
3. Load one price series spanning every record timestamp
4. Normalize each record with its nearest price
5. Merge both streams newest first

Each stream is capped independently before merging, so a report with
internal transfers may hold up to twice the per-stream limit.
============================================================
"""

import asyncio
import logging
import re
from typing import Iterable, Optional

from ledger_history.base import BaseLedgerSource, BasePriceSource
from ledger_history.config import ServiceConfig
from ledger_history.exceptions import InvalidAddressError
from ledger_history.fetcher import ChunkedLedgerFetcher
from ledger_history.models import (
    AggregatedReport,
    LedgerRecord,
    NormalizedTransaction,
    RecordKind,
)
from ledger_history.normalizer import RecordNormalizer
from ledger_history.pricing import PriceInterpolator
from ledger_history.providers import CoinGeckoPriceSource, EtherscanLedgerSource
from ledger_history.rate_limiter import RateLimiter


logger = logging.getLogger(__name__)


ADDRESS_PATTERN = re.compile(r"^0x[a-fA-F0-9]{40}$")


def validate_address(address: Optional[str]) -> str:
    """
    Return the trimmed address.

    Raises:
        InvalidAddressError: If it is not 0x followed by 40 hex digits
    """
    candidate = (address or "").strip()
    if not ADDRESS_PATTERN.match(candidate):
        raise InvalidAddressError("Invalid Ethereum address.", address=address)
    return candidate


def merge_transactions(
    *streams: Iterable[NormalizedTransaction],
) -> list[NormalizedTransaction]:
    """Concatenate streams and order newest first, keeping ties in input order."""
    combined: list[NormalizedTransaction] = []
    for stream in streams:
        combined.extend(stream)
    # sorted() is stable, so equal timestamps keep their relative order
    return sorted(combined, key=lambda row: row.timestamp, reverse=True)


class TransactionReportService:
    """
    Request-scoped aggregation pipeline.

    Usage:
        async with TransactionReportService.from_config(config) as service:
            report = await service.build_report(address, include_internal=True)
    """

    def __init__(
        self,
        ledger_source: BaseLedgerSource,
        price_source: Optional[BasePriceSource] = None,
        config: Optional[ServiceConfig] = None,
    ) -> None:
        self._ledger_source = ledger_source
        self._price_source = price_source
        self._config = config or ServiceConfig()

    @classmethod
    def from_config(cls, config: ServiceConfig) -> "TransactionReportService":
        """Wire Etherscan and CoinGecko sources from settings."""
        ledger_source = EtherscanLedgerSource(
            api_key=config.etherscan_api_key,
            chain_id=config.chain_id,
            api_url=config.etherscan_api_url,
            timeout=config.http_timeout,
        )
        price_source = CoinGeckoPriceSource(
            api_key=config.coingecko_api_key,
            api_url=config.coingecko_api_url,
            timeout=config.http_timeout,
        )
        return cls(ledger_source, price_source, config)

    @property
    def config(self) -> ServiceConfig:
        return self._config

    def _new_fetcher(self) -> ChunkedLedgerFetcher:
        return ChunkedLedgerFetcher(
            source=self._ledger_source,
            rate_limiter=RateLimiter(self._config.min_request_interval),
            page_size=self._config.page_size,
            max_chunks=self._config.max_chunks,
        )

    async def fetch_records(
        self,
        address: str,
        include_internal: bool = False,
    ) -> tuple[list[LedgerRecord], list[LedgerRecord]]:
        """
        Fetch native and internal streams, each capped at record_limit.

        If either stream fails, the other is cancelled before the error
        propagates.
        """
        limit = self._config.record_limit

        if not include_internal:
            return await self._new_fetcher().fetch(address, RecordKind.NATIVE, limit), []

        tasks = [
            asyncio.ensure_future(self._new_fetcher().fetch(address, kind, limit))
            for kind in (RecordKind.NATIVE, RecordKind.INTERNAL)
        ]
        try:
            native, internal = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        return native, internal

    async def build_report(
        self,
        address: str,
        include_internal: bool = False,
    ) -> AggregatedReport:
        """
        Build the transaction report for `address`.

        Raises:
            InvalidAddressError: Before any network call
            UpstreamFetchError: If either record stream fails
        """
        address = validate_address(address)

        native, internal = await self.fetch_records(address, include_internal)

        interpolator = PriceInterpolator(self._price_source)
        await interpolator.load([record.timestamp for record in (*native, *internal)])

        normalizer = RecordNormalizer(
            address,
            decimals=self._config.ether_decimals,
            explorer_tx_url=self._config.explorer_tx_url,
        )
        native_rows = [
            normalizer.normalize(record, interpolator.resolve(record.timestamp))
            for record in native
        ]
        internal_rows = [
            normalizer.normalize(record, interpolator.resolve(record.timestamp))
            for record in internal
        ]

        rows = merge_transactions(native_rows, internal_rows)
        logger.info(
            f"Report for {address}: {len(native_rows)} native + "
            f"{len(internal_rows)} internal rows"
        )
        return AggregatedReport(address=address, rows=tuple(rows))

    async def close(self) -> None:
        """Close upstream sessions."""
        await self._ledger_source.close()
        if self._price_source is not None:
            await self._price_source.close()

    async def __aenter__(self) -> "TransactionReportService":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
