"""
Historical price resolution.

One price series is loaded per report, covering every record's timestamp
padded by an hour on each side, and each record is then valued at the
sample nearest to its timestamp.
"""

import logging
from bisect import bisect_left
from typing import Iterable, Optional, Sequence

from ledger_history.base import BasePriceSource
from ledger_history.exceptions import PriceUnavailableError


logger = logging.getLogger(__name__)


RANGE_PADDING_SECONDS = 3600


class PriceSeries:
    """
    Read-only (timestamp_ms, price_usd) samples, ascending by timestamp.

    Duplicate timestamps are allowed.
    """

    def __init__(self, points: Iterable[tuple[int, float]] = ()) -> None:
        ordered = sorted(((int(ts), float(price)) for ts, price in points), key=lambda p: p[0])
        self._timestamps: tuple[int, ...] = tuple(ts for ts, _ in ordered)
        self._prices: tuple[float, ...] = tuple(price for _, price in ordered)

    def __len__(self) -> int:
        return len(self._timestamps)

    def __bool__(self) -> bool:
        return bool(self._timestamps)

    def __iter__(self):
        return iter(zip(self._timestamps, self._prices))

    def __repr__(self) -> str:
        return f"<PriceSeries(points={len(self)})>"

    def nearest(self, timestamp_seconds: int) -> Optional[float]:
        """
        Price of the sample closest to `timestamp_seconds`.

        Candidate is the first sample at or after the query; it is compared
        with its predecessor and wins ties. Returns None for an empty series.
        """
        if not self._timestamps:
            return None

        target_ms = timestamp_seconds * 1000
        index = bisect_left(self._timestamps, target_ms)
        if index >= len(self._timestamps):
            index = len(self._timestamps) - 1

        previous = max(0, index - 1)
        candidate_delta = abs(self._timestamps[index] - target_ms)
        previous_delta = abs(self._timestamps[previous] - target_ms)

        if candidate_delta <= previous_delta:
            return self._prices[index]
        return self._prices[previous]


def price_window(
    timestamps: Sequence[int],
    padding: int = RANGE_PADDING_SECONDS,
) -> Optional[tuple[int, int]]:
    """Unix-second range to request for a set of record timestamps."""
    valid = [ts for ts in timestamps if ts > 0]
    if not valid:
        return None
    return max(0, min(valid) - padding), max(valid) + padding


class PriceInterpolator:
    """
    Loads a PriceSeries for a report and resolves per-record prices.

    Price failures never fail the report; they leave the series empty so
    every USD value resolves to None.
    """

    def __init__(
        self,
        source: Optional[BasePriceSource],
        padding: int = RANGE_PADDING_SECONDS,
    ) -> None:
        self._source = source
        self._padding = padding
        self._series = PriceSeries()

    @property
    def series(self) -> PriceSeries:
        return self._series

    async def load(self, timestamps: Sequence[int]) -> PriceSeries:
        """Fetch the series covering `timestamps`; skipped when there are none."""
        window = price_window(timestamps, self._padding)
        if window is None or self._source is None:
            self._series = PriceSeries()
            return self._series

        start, end = window
        try:
            points = await self._source.fetch_range(start, end)
        except PriceUnavailableError as e:
            logger.warning(f"[{self._source.name}] Price series unavailable, USD values omitted: {e}")
            points = []

        self._series = PriceSeries(points)
        if not self._series:
            logger.warning(f"[{self._source.name}] Empty price series for {start}..{end}")
        else:
            logger.debug(f"[{self._source.name}] Loaded {len(self._series)} price samples")
        return self._series

    def resolve(self, timestamp_seconds: int) -> Optional[float]:
        """Nearest price for a record timestamp."""
        return self._series.nearest(timestamp_seconds)
