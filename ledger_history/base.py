"""
Base Upstream Sources - Abstract interfaces for ledger and price providers.

All sources:
- Share one aiohttp session per instance (created lazily, or injected)
- Raise typed errors instead of returning partial data
- Never retry; retry policy belongs to the caller
"""

import asyncio
import json
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Optional

import aiohttp

from ledger_history.exceptions import UpstreamFetchError
from ledger_history.models import FetchWindow, LedgerRecord, RecordKind


logger = logging.getLogger(__name__)


class BaseHttpSource(ABC):
    """
    Common HTTP plumbing for upstream sources.

    Subclasses provide a name and their own request methods built on
    _request_json().
    """

    DEFAULT_TIMEOUT = 30.0

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self._timeout = timeout
        self._session = session
        self._owns_session = session is None
        self._request_count = 0
        self._last_latency_ms: Optional[float] = None

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique identifier for this source."""
        pass

    @property
    def request_count(self) -> int:
        """Number of HTTP requests issued by this instance."""
        return self._request_count

    # ─────────────────────────────────────────────────────────────
    # HTTP Helpers
    # ─────────────────────────────────────────────────────────────

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout),
                headers=self._get_default_headers(),
            )
            self._owns_session = True
        return self._session

    def _get_default_headers(self) -> dict[str, str]:
        """Get default HTTP headers."""
        return {
            "Accept": "application/json",
            "User-Agent": "LedgerHistory/1.0",
        }

    async def _request_json(
        self,
        url: str,
        params: Optional[dict[str, str]] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> Any:
        """
        GET a URL and decode its JSON body.

        Raises:
            UpstreamFetchError: On transport errors, non-2xx status, undecodable
                body or bad JSON
        """
        session = await self._get_session()
        self._request_count += 1

        start_time = time.time()
        try:
            async with session.get(url, params=params, headers=headers) as response:
                self._last_latency_ms = (time.time() - start_time) * 1000
                body = await response.text()

                if response.status < 200 or response.status >= 300:
                    raise UpstreamFetchError(
                        message=f"HTTP {response.status}: {body[:200]}",
                        source_name=self.name,
                        status_code=response.status,
                        response_body=body[:500],
                        request_url=url,
                    )
        except aiohttp.ClientError as e:
            raise UpstreamFetchError(
                message=f"Connection error: {e}",
                source_name=self.name,
                request_url=url,
                original_error=e,
            )
        except asyncio.TimeoutError as e:
            raise UpstreamFetchError(
                message="Request timed out",
                source_name=self.name,
                request_url=url,
                original_error=e,
            )
        except UnicodeDecodeError as e:
            raise UpstreamFetchError(
                message="Bad payload encoding",
                source_name=self.name,
                request_url=url,
                original_error=e,
            )

        logger.debug(f"[{self.name}] GET {url} in {self._last_latency_ms:.1f}ms")

        try:
            return json.loads(body)
        except ValueError as e:
            raise UpstreamFetchError(
                message=f"Bad JSON: {body[:200]}",
                source_name=self.name,
                response_body=body[:500],
                request_url=url,
                original_error=e,
            )

    # ─────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────

    async def close(self) -> None:
        """Close resources."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> "BaseHttpSource":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(name={self.name}, requests={self._request_count})>"


class BaseLedgerSource(BaseHttpSource):
    """Provider of paginated account records from a ledger-query API."""

    @abstractmethod
    async def fetch_page(
        self,
        address: str,
        kind: RecordKind,
        window: FetchWindow,
    ) -> list[LedgerRecord]:
        """
        Fetch one page of records inside a block window.

        Args:
            address: Account to query
            kind: Native or internal records
            window: Block range and page parameters

        Returns:
            Records in upstream order (newest first); empty when none exist

        Raises:
            UpstreamFetchError: If the page cannot be retrieved
        """
        pass


class BasePriceSource(BaseHttpSource):
    """Provider of historical USD prices."""

    @abstractmethod
    async def fetch_range(
        self,
        start_seconds: int,
        end_seconds: int,
    ) -> list[tuple[int, float]]:
        """
        Fetch (timestamp_ms, price_usd) samples for a unix-second range.

        Raises:
            PriceUnavailableError: If the series cannot be retrieved
        """
        pass
