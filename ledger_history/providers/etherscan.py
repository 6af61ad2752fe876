"""
Etherscan Ledger Source - account history via the Etherscan V2 API.

Endpoints used:
- module=account, action=txlist          (native transactions)
- module=account, action=txlistinternal  (internal trace transfers)

Limits:
- At most 10,000 records per page
- 5 calls/second with an API key; much lower without
"""

import logging
from typing import Optional

import aiohttp

from ledger_history.base import BaseLedgerSource
from ledger_history.config import ETHERSCAN_V2_API_URL
from ledger_history.envelope import (
    EnvelopeEmpty,
    EnvelopeFailure,
    parse_envelope,
)
from ledger_history.exceptions import UpstreamFetchError
from ledger_history.models import FetchWindow, LedgerRecord, RecordKind


logger = logging.getLogger(__name__)


class EtherscanLedgerSource(BaseLedgerSource):
    """
    Etherscan V2 (unified multichain) ledger source.

    One instance serves one chain, selected by chain_id.
    """

    def __init__(
        self,
        api_key: str = "",
        chain_id: int = 1,
        api_url: str = ETHERSCAN_V2_API_URL,
        timeout: float = 30.0,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        super().__init__(timeout=timeout, session=session)
        self._api_key = api_key.strip()
        self._chain_id = chain_id
        self._api_url = api_url

    @property
    def name(self) -> str:
        """Unique identifier."""
        return "etherscan"

    @property
    def chain_id(self) -> int:
        return self._chain_id

    def build_params(
        self,
        address: str,
        kind: RecordKind,
        window: FetchWindow,
    ) -> dict[str, str]:
        """Query parameters for one page request."""
        params = {
            "chainid": str(self._chain_id),
            "module": "account",
            "action": kind.action,
            "address": address,
        }
        params.update(window.to_params())
        if self._api_key:
            params["apikey"] = self._api_key
        return params

    async def fetch_page(
        self,
        address: str,
        kind: RecordKind,
        window: FetchWindow,
    ) -> list[LedgerRecord]:
        """Fetch one page of records inside a block window."""
        params = self.build_params(address, kind, window)

        try:
            payload = await self._request_json(self._api_url, params=params)
        except UpstreamFetchError as e:
            e.record_kind = kind.value
            raise

        result = parse_envelope(payload)

        if isinstance(result, EnvelopeEmpty):
            logger.debug(
                f"[{self.name}] {kind.action} empty at endblock={window.endblock}: {result.message}"
            )
            return []

        if isinstance(result, EnvelopeFailure):
            raise UpstreamFetchError(
                message=f"Etherscan API error: {result.reason}",
                source_name=self.name,
                record_kind=kind.value,
                response_body=result.body,
                request_url=self._api_url,
            )

        return [LedgerRecord.from_raw(kind, raw) for raw in result.records]
