"""
CoinGecko Price Source - historical ETH/USD series.

Uses /coins/ethereum/market_chart/range, which returns
{"prices": [[timestamp_ms, price_usd], ...]} for a unix-second range.
Granularity is chosen by CoinGecko from the range width.
"""

import logging
from typing import Any, Optional

import aiohttp

from ledger_history.base import BasePriceSource
from ledger_history.config import COINGECKO_RANGE_URL
from ledger_history.exceptions import PriceUnavailableError, UpstreamFetchError


logger = logging.getLogger(__name__)


class CoinGeckoPriceSource(BasePriceSource):
    """CoinGecko market_chart/range client."""

    def __init__(
        self,
        api_key: str = "",
        api_url: str = COINGECKO_RANGE_URL,
        vs_currency: str = "usd",
        timeout: float = 30.0,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        super().__init__(timeout=timeout, session=session)
        self._api_key = api_key.strip()
        self._api_url = api_url
        self._vs_currency = vs_currency

    @property
    def name(self) -> str:
        """Unique identifier."""
        return "coingecko"

    async def fetch_range(
        self,
        start_seconds: int,
        end_seconds: int,
    ) -> list[tuple[int, float]]:
        """Fetch price samples for [start_seconds, end_seconds], ascending."""
        params = {
            "vs_currency": self._vs_currency,
            "from": str(start_seconds),
            "to": str(end_seconds),
        }
        headers = {}
        if self._api_key:
            # Demo (free tier) key header
            headers["x-cg-demo-api-key"] = self._api_key

        try:
            payload = await self._request_json(self._api_url, params=params, headers=headers)
        except UpstreamFetchError as e:
            raise PriceUnavailableError(
                message=f"Price request failed: {e.message}",
                source_name=self.name,
                range_start=start_seconds,
                range_end=end_seconds,
                original_error=e,
            )

        return self.parse_prices(payload, start_seconds, end_seconds)

    def parse_prices(
        self,
        payload: Any,
        start_seconds: Optional[int] = None,
        end_seconds: Optional[int] = None,
    ) -> list[tuple[int, float]]:
        """Extract well-formed (ms, price) pairs sorted by timestamp."""
        prices = payload.get("prices") if isinstance(payload, dict) else None
        if not isinstance(prices, list):
            raise PriceUnavailableError(
                message="Response has no price list",
                source_name=self.name,
                range_start=start_seconds,
                range_end=end_seconds,
                context={"body": str(payload)[:200]},
            )

        series: list[tuple[int, float]] = []
        dropped = 0
        for entry in prices:
            try:
                timestamp_ms, price = entry[0], entry[1]
                if isinstance(timestamp_ms, bool) or isinstance(price, bool):
                    raise TypeError("boolean sample")
                series.append((int(timestamp_ms), float(price)))
            except (TypeError, ValueError, IndexError, KeyError):
                dropped += 1

        if dropped:
            logger.warning(f"[{self.name}] Dropped {dropped} malformed price samples")

        series.sort(key=lambda point: point[0])
        return series
