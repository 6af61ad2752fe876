"""
Chunked ledger retrieval.

The ledger-query API caps every answer at one page, so history is walked
backward: request the newest page below `endblock`, then move `endblock`
under the oldest block seen and repeat until the record budget is filled,
the source runs dry, or the chunk ceiling is hit.
"""

import logging
from typing import Optional

from ledger_history.base import BaseLedgerSource
from ledger_history.models import (
    CHAIN_TIP_BLOCK,
    DEFAULT_PAGE_SIZE,
    FetchWindow,
    LedgerRecord,
    RecordKind,
)
from ledger_history.rate_limiter import RateLimiter


logger = logging.getLogger(__name__)


DEFAULT_RECORD_LIMIT = 1000
DEFAULT_MAX_CHUNKS = 1000
DEFAULT_MIN_INTERVAL = 0.22


class ChunkedLedgerFetcher:
    """
    Assembles up to `limit` records of one kind, newest first.

    Pages are requested strictly in order since each window depends on the
    previous page's last block. Failures propagate unchanged; pages are
    never retried.
    """

    def __init__(
        self,
        source: BaseLedgerSource,
        rate_limiter: Optional[RateLimiter] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        max_chunks: int = DEFAULT_MAX_CHUNKS,
        start_block: int = CHAIN_TIP_BLOCK,
    ) -> None:
        if page_size < 1:
            raise ValueError("page_size must be >= 1")
        if max_chunks < 1:
            raise ValueError("max_chunks must be >= 1")
        self._source = source
        self._rate_limiter = rate_limiter or RateLimiter(DEFAULT_MIN_INTERVAL)
        self._page_size = page_size
        self._max_chunks = max_chunks
        self._start_block = start_block
        self._chunks_fetched = 0

    @property
    def chunks_fetched(self) -> int:
        """Pages requested by the most recent fetch() call."""
        return self._chunks_fetched

    async def fetch(
        self,
        address: str,
        kind: RecordKind,
        limit: int = DEFAULT_RECORD_LIMIT,
    ) -> list[LedgerRecord]:
        """
        Fetch up to `limit` records of `kind` for `address`.

        Raises:
            UpstreamFetchError: If any page fails
        """
        self._chunks_fetched = 0
        if limit <= 0:
            return []

        window = FetchWindow(endblock=self._start_block, page_size=self._page_size)
        records: list[LedgerRecord] = []
        seen: set[tuple] = set()

        while self._chunks_fetched < self._max_chunks and len(records) < limit:
            await self._rate_limiter.acquire()
            page = await self._source.fetch_page(address, kind, window)
            self._chunks_fetched += 1

            logger.debug(
                f"[{self._source.name}] {kind.value} chunk {self._chunks_fetched}: "
                f"{len(page)} rows below block {window.endblock}"
            )

            if not page:
                break

            for record in page:
                key = record.identity()
                if key in seen:
                    continue
                seen.add(key)
                records.append(record)
                if len(records) >= limit:
                    break

            if len(records) >= limit:
                break

            if len(page) < window.page_size:
                break

            last_block = page[-1].block_number
            if last_block <= 0 or last_block > window.endblock:
                logger.warning(
                    f"[{self._source.name}] Cannot advance {kind.value} window past "
                    f"block {last_block} (endblock={window.endblock}), stopping"
                )
                break
            window.advance(last_block)

        if self._chunks_fetched >= self._max_chunks and len(records) < limit:
            logger.warning(
                f"[{self._source.name}] Hit chunk ceiling ({self._max_chunks}) "
                f"for {kind.value} records of {address}"
            )

        logger.info(
            f"[{self._source.name}] Fetched {len(records)} {kind.value} records "
            f"for {address} in {self._chunks_fetched} chunks"
        )
        return records
