"""
Shared fixtures for ledger history tests.
"""

from typing import Any, Callable, Optional

import pytest

from ledger_history.base import BaseLedgerSource, BasePriceSource
from ledger_history.config import ServiceConfig
from ledger_history.exceptions import PriceUnavailableError
from ledger_history.models import FetchWindow, LedgerRecord, RecordKind


ADDRESS = "0x1111111111111111111111111111111111111111"
OTHER = "0x2222222222222222222222222222222222222222"
THIRD = "0x3333333333333333333333333333333333333333"


# ============================================================
# FAKE SOURCES
# ============================================================

class FakeLedgerSource(BaseLedgerSource):
    """
    Ledger source driven by a page function.

    page_fn(kind, window) returns raw record dicts or raises.
    """

    def __init__(self, page_fn: Callable[[RecordKind, FetchWindow], list[dict[str, Any]]]) -> None:
        super().__init__()
        self._page_fn = page_fn
        self.calls: list[tuple[RecordKind, int]] = []

    @property
    def name(self) -> str:
        return "fake_ledger"

    async def fetch_page(self, address, kind, window):
        self.calls.append((kind, window.endblock))
        self._request_count += 1
        raw_rows = self._page_fn(kind, window)
        return [LedgerRecord.from_raw(kind, raw) for raw in raw_rows]


class FakePriceSource(BasePriceSource):
    """Price source returning a fixed series, or failing."""

    def __init__(self, points: Optional[list[tuple[int, float]]] = None, fail: bool = False) -> None:
        super().__init__()
        self._points = points or []
        self._fail = fail
        self.ranges: list[tuple[int, int]] = []

    @property
    def name(self) -> str:
        return "fake_price"

    async def fetch_range(self, start_seconds, end_seconds):
        self.ranges.append((start_seconds, end_seconds))
        self._request_count += 1
        if self._fail:
            raise PriceUnavailableError("price service down", source_name=self.name)
        return list(self._points)


# ============================================================
# FIXTURES
# ============================================================

def _raw_tx(
    block: int,
    timestamp: int = 1_700_000_000,
    tx_hash: Optional[str] = None,
    sender: str = OTHER,
    recipient: Optional[str] = ADDRESS,
    value: str = "1000000000000000000",
    gas_used: str = "21000",
    gas_price: str = "20000000000",
    receipt_status: Optional[str] = "1",
    is_error: str = "0",
    trace_id: Optional[str] = None,
) -> dict[str, Any]:
    raw = {
        "blockNumber": str(block),
        "timeStamp": str(timestamp),
        "hash": tx_hash or f"0x{block:064x}",
        "from": sender,
        "to": recipient if recipient is not None else "",
        "value": value,
        "gasUsed": gas_used,
        "gasPrice": gas_price,
        "isError": is_error,
    }
    if receipt_status is not None:
        raw["txreceipt_status"] = receipt_status
    if trace_id is not None:
        raw["traceId"] = trace_id
    return raw


@pytest.fixture
def raw_tx():
    """Factory for raw ledger record dicts."""
    return _raw_tx


@pytest.fixture
def ledger_source_factory():
    """Factory for FakeLedgerSource."""
    return FakeLedgerSource


@pytest.fixture
def price_source_factory():
    """Factory for FakePriceSource."""
    return FakePriceSource


@pytest.fixture
def fast_config():
    """Config with no inter-page delay."""
    return ServiceConfig(min_request_interval=0.0)
