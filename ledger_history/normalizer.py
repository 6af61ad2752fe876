"""
Record normalization - raw ledger records to the canonical transaction schema.

Wei amounts are handled as Python ints end to end; floats appear only in
the USD valuation.
"""

import logging
from typing import Any, Optional

from ledger_history.models import (
    Direction,
    LedgerRecord,
    NormalizedTransaction,
    RecordKind,
    TransactionStatus,
    TransactionType,
)


logger = logging.getLogger(__name__)


WEI_PER_ETHER = 10 ** 18
ETHER_DECIMALS = 18
USD_DECIMALS = 2
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


def format_ether(wei: Any, decimals: int = 6) -> str:
    """
    Render a wei amount as an ether decimal string.

    Truncates toward zero to `decimals` places and strips trailing zeros.
    Unparsable input yields "0".

        >>> format_ether(1_500_000_000_000_000_000)
        '1.5'
        >>> format_ether("1000000000000000001")
        '1'
    """
    try:
        if isinstance(wei, bool):
            raise TypeError("bool is not a wei amount")
        amount = wei if isinstance(wei, int) else int(str(wei).strip())
    except (TypeError, ValueError):
        return "0"

    decimals = max(0, min(decimals, ETHER_DECIMALS))
    sign = "-" if amount < 0 else ""
    whole, fraction = divmod(abs(amount), WEI_PER_ETHER)
    fraction_text = str(fraction).rjust(ETHER_DECIMALS, "0")[:decimals].rstrip("0")
    if fraction_text:
        return f"{sign}{whole}.{fraction_text}"
    if whole == 0:
        return "0"
    return f"{sign}{whole}"


def compute_gas_fee(gas_used: Any, gas_price: Any, decimals: int = 6) -> str:
    """Gas fee in ether: gas_used * gas_price wei, formatted like format_ether."""
    try:
        fee_wei = int(str(gas_used).strip()) * int(str(gas_price).strip())
    except (TypeError, ValueError):
        return "0"
    return format_ether(fee_wei, decimals)


def status_of(record: LedgerRecord) -> TransactionStatus:
    """Execution status of a record."""
    errored = record.is_error == "1"

    if record.kind is RecordKind.INTERNAL:
        # Traces only exist for mined parents
        return TransactionStatus.FAILED if errored else TransactionStatus.SUCCESS

    if record.receipt_status == "1" and not errored:
        return TransactionStatus.SUCCESS
    if record.receipt_status == "0" or errored:
        return TransactionStatus.FAILED
    return TransactionStatus.PENDING


def _is_empty_destination(to_address: Optional[str]) -> bool:
    return not to_address or to_address.lower() in ("0x", ZERO_ADDRESS)


def classify_direction(
    address: str,
    from_address: Optional[str],
    to_address: Optional[str],
) -> Direction:
    """Direction of a transfer relative to the queried address."""
    address_lc = address.lower()
    from_lc = (from_address or "").lower()
    to_lc = (to_address or "").lower()

    if from_lc == address_lc and _is_empty_destination(to_address):
        return Direction.CONTRACT_CREATION
    if from_lc == address_lc and to_lc == address_lc:
        return Direction.SELF
    if to_lc == address_lc:
        return Direction.RECEIVED
    if from_lc == address_lc:
        return Direction.SENT
    return Direction.OTHER


def classify_type(address: str, record: LedgerRecord) -> TransactionType:
    """Classification label for a record."""
    direction = classify_direction(address, record.from_address, record.to_address)
    return TransactionType.of(record.kind, direction)


def value_in_usd(value_ether: str, price_usd: Optional[float]) -> Optional[float]:
    """USD value rounded to cents, or None without a price."""
    if price_usd is None:
        return None
    try:
        return round(float(value_ether) * price_usd, USD_DECIMALS)
    except ValueError:
        return None


class RecordNormalizer:
    """
    Builds NormalizedTransaction rows for one queried address.

    Usage:
        normalizer = RecordNormalizer(address)
        row = normalizer.normalize(record, price_usd=3120.5)
    """

    def __init__(
        self,
        address: str,
        decimals: int = 8,
        explorer_tx_url: str = "https://etherscan.io/tx/",
    ) -> None:
        self._address = address
        self._decimals = decimals
        self._explorer_tx_url = explorer_tx_url

    @property
    def address(self) -> str:
        return self._address

    def normalize(
        self,
        record: LedgerRecord,
        price_usd: Optional[float] = None,
    ) -> NormalizedTransaction:
        """Convert one raw record, valued at `price_usd` per ether."""
        value_ether = format_ether(record.value, self._decimals)

        gas_fee_ether: Optional[str] = None
        if record.kind is RecordKind.NATIVE:
            gas_fee_ether = compute_gas_fee(record.gas_used, record.gas_price, self._decimals)

        return NormalizedTransaction(
            kind=record.kind,
            hash=record.hash,
            timestamp=record.timestamp,
            status=status_of(record),
            type=classify_type(self._address, record),
            from_address=record.from_address,
            to_address=record.to_address or "",
            value_ether=value_ether,
            value_usd=value_in_usd(value_ether, price_usd),
            gas_fee_ether=gas_fee_ether,
            explorer_url=f"{self._explorer_tx_url}{record.hash}",
        )
