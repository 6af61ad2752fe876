"""
Price Interpolation Tests.
"""

import pytest

from ledger_history.pricing import (
    RANGE_PADDING_SECONDS,
    PriceInterpolator,
    PriceSeries,
    price_window,
)


# ============================================================
# NEAREST LOOKUP
# ============================================================

class TestPriceSeries:
    """Tests for PriceSeries.nearest."""

    def test_closer_predecessor_wins(self):
        series = PriceSeries([(1000, 10.0), (5000, 20.0)])
        # 2s -> 2000ms: 1000ms from the first sample, 3000ms from the second
        assert series.nearest(2) == 10.0

    def test_closer_candidate_wins(self):
        series = PriceSeries([(1000, 10.0), (5000, 20.0)])
        assert series.nearest(4) == 20.0

    def test_tie_prefers_later_sample(self):
        series = PriceSeries([(1000, 10.0), (5000, 20.0)])
        assert series.nearest(3) == 20.0

    def test_exact_match(self):
        series = PriceSeries([(1000, 10.0), (2000, 15.0), (5000, 20.0)])
        assert series.nearest(2) == 15.0

    def test_before_first_sample(self):
        series = PriceSeries([(10_000, 10.0), (20_000, 20.0)])
        assert series.nearest(1) == 10.0

    def test_after_last_sample(self):
        series = PriceSeries([(10_000, 10.0), (20_000, 20.0)])
        assert series.nearest(1_000) == 20.0

    def test_single_sample(self):
        assert PriceSeries([(5000, 42.0)]).nearest(999) == 42.0

    def test_empty_series_has_no_price(self):
        series = PriceSeries()
        assert series.nearest(100) is None
        assert not series

    def test_zero_price_is_distinct_from_missing(self):
        assert PriceSeries([(1000, 0.0)]).nearest(1) == 0.0

    def test_unsorted_input_is_ordered(self):
        series = PriceSeries([(5000, 20.0), (1000, 10.0)])
        assert list(series) == [(1000, 10.0), (5000, 20.0)]

    def test_duplicate_timestamps(self):
        series = PriceSeries([(1000, 10.0), (1000, 11.0), (9000, 30.0)])
        assert series.nearest(1) in (10.0, 11.0)


# ============================================================
# RANGE
# ============================================================

class TestPriceWindow:
    """Tests for price_window."""

    def test_pads_one_hour_each_side(self):
        assert price_window([1_700_000_000, 1_700_050_000]) == (
            1_700_000_000 - RANGE_PADDING_SECONDS,
            1_700_050_000 + RANGE_PADDING_SECONDS,
        )

    def test_no_timestamps(self):
        assert price_window([]) is None

    def test_ignores_zero_timestamps(self):
        assert price_window([0, 10_000]) == (10_000 - 3600, 10_000 + 3600)

    def test_start_clamped_at_zero(self):
        assert price_window([100]) == (0, 3700)


# ============================================================
# INTERPOLATOR
# ============================================================

class TestPriceInterpolator:
    """Tests for PriceInterpolator."""

    @pytest.mark.asyncio
    async def test_loads_once_for_full_range(self, price_source_factory):
        source = price_source_factory([(1_700_000_000_000, 2000.0)])
        interpolator = PriceInterpolator(source)

        await interpolator.load([1_700_000_500, 1_700_000_000, 1_700_001_000])

        assert source.ranges == [(1_700_000_000 - 3600, 1_700_001_000 + 3600)]
        assert interpolator.resolve(1_700_000_000) == 2000.0

    @pytest.mark.asyncio
    async def test_skips_fetch_without_records(self, price_source_factory):
        source = price_source_factory([(1, 1.0)])
        interpolator = PriceInterpolator(source)

        series = await interpolator.load([])

        assert source.ranges == []
        assert len(series) == 0
        assert interpolator.resolve(1_700_000_000) is None

    @pytest.mark.asyncio
    async def test_failure_degrades_to_no_price(self, price_source_factory):
        source = price_source_factory(fail=True)
        interpolator = PriceInterpolator(source)

        series = await interpolator.load([1_700_000_000])

        assert not series
        assert interpolator.resolve(1_700_000_000) is None

    @pytest.mark.asyncio
    async def test_without_source(self):
        interpolator = PriceInterpolator(None)
        await interpolator.load([1_700_000_000])
        assert interpolator.resolve(1_700_000_000) is None
