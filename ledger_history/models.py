"""
Ledger History Data Models - Raw ledger records and the normalized report schema.

Raw records are parsed once from the upstream payload and discarded after
normalization. Normalized transactions are immutable.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional


CHAIN_TIP_BLOCK = 99999999
DEFAULT_PAGE_SIZE = 10000


class RecordKind(Enum):
    """Kinds of ledger records retrievable for an account."""
    NATIVE = "native"
    INTERNAL = "internal"

    @property
    def action(self) -> str:
        """Ledger-query API action for this kind."""
        return "txlist" if self is RecordKind.NATIVE else "txlistinternal"


class TransactionStatus(Enum):
    """Execution outcome of a transaction."""
    SUCCESS = "Success"
    FAILED = "Failed"
    PENDING = "Pending"


class Direction(Enum):
    """Relationship between a record's endpoints and the queried address."""
    RECEIVED = "received"
    SENT = "sent"
    SELF = "self"
    CONTRACT_CREATION = "contract_creation"
    OTHER = "other"


class TransactionType(Enum):
    """Closed set of classification labels: record kind x direction."""
    RECEIVED = "Received"
    SENT = "Sent"
    SELF = "Self"
    CONTRACT_CREATION = "Contract Creation"
    OTHER = "Other"
    INTERNAL_RECEIVED = "Internal Received"
    INTERNAL_SENT = "Internal Sent"
    INTERNAL_SELF = "Internal Self"
    INTERNAL_CONTRACT_CREATION = "Internal Contract Creation"
    INTERNAL_OTHER = "Internal"

    @classmethod
    def of(cls, kind: RecordKind, direction: Direction) -> "TransactionType":
        """Label for a direction within a record kind."""
        return _TYPE_TABLE[(kind, direction)]


_TYPE_TABLE: dict[tuple[RecordKind, Direction], TransactionType] = {
    (RecordKind.NATIVE, Direction.RECEIVED): TransactionType.RECEIVED,
    (RecordKind.NATIVE, Direction.SENT): TransactionType.SENT,
    (RecordKind.NATIVE, Direction.SELF): TransactionType.SELF,
    (RecordKind.NATIVE, Direction.CONTRACT_CREATION): TransactionType.CONTRACT_CREATION,
    (RecordKind.NATIVE, Direction.OTHER): TransactionType.OTHER,
    (RecordKind.INTERNAL, Direction.RECEIVED): TransactionType.INTERNAL_RECEIVED,
    (RecordKind.INTERNAL, Direction.SENT): TransactionType.INTERNAL_SENT,
    (RecordKind.INTERNAL, Direction.SELF): TransactionType.INTERNAL_SELF,
    (RecordKind.INTERNAL, Direction.CONTRACT_CREATION): TransactionType.INTERNAL_CONTRACT_CREATION,
    (RecordKind.INTERNAL, Direction.OTHER): TransactionType.INTERNAL_OTHER,
}


def _to_int(value: Any) -> int:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return 0


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value)
    return text if text != "" else None


@dataclass(frozen=True)
class LedgerRecord:
    """
    Raw ledger record for one account, either a mined transaction or an
    internal trace transfer.

    Wei amounts stay as integer strings; conversion happens during
    normalization.
    """
    kind: RecordKind
    block_number: int
    timestamp: int
    hash: str
    from_address: str
    to_address: Optional[str]
    value: str

    # Native-only
    gas_used: Optional[str] = None
    gas_price: Optional[str] = None
    receipt_status: Optional[str] = None

    # Both kinds
    is_error: Optional[str] = None

    # Internal-only: distinguishes sibling sub-calls of one parent transaction
    trace_id: Optional[str] = None

    @classmethod
    def from_raw(cls, kind: RecordKind, raw: dict[str, Any]) -> "LedgerRecord":
        """Parse one upstream record dict."""
        is_native = kind is RecordKind.NATIVE
        return cls(
            kind=kind,
            block_number=_to_int(raw.get("blockNumber")),
            timestamp=_to_int(raw.get("timeStamp")),
            hash=str(raw.get("hash") or ""),
            from_address=str(raw.get("from") or ""),
            to_address=_optional_str(raw.get("to")),
            value=str(raw.get("value") or "0"),
            gas_used=_optional_str(raw.get("gasUsed")) if is_native else None,
            gas_price=_optional_str(raw.get("gasPrice")) if is_native else None,
            receipt_status=_optional_str(raw.get("txreceipt_status")) if is_native else None,
            is_error=_optional_str(raw.get("isError")),
            trace_id=None if is_native else _optional_str(raw.get("traceId")),
        )

    def identity(self) -> tuple:
        """
        Key under which this record is unique within its stream.

        Native records are unique by hash. Internal records are not: sibling
        sub-calls of one parent transaction share its hash, so they are keyed
        by (hash, traceId), or by every transfer field when traceId is absent.
        """
        if self.kind is RecordKind.NATIVE:
            return (self.kind, self.hash)
        if self.trace_id is not None:
            return (self.kind, self.hash, self.trace_id)
        return (
            self.kind,
            self.hash,
            self.from_address.lower(),
            (self.to_address or "").lower(),
            self.value,
            self.is_error,
        )


@dataclass
class FetchWindow:
    """
    Block window for one ledger page request.

    Only the fetcher mutates it; endblock moves strictly downward.
    """
    endblock: int = CHAIN_TIP_BLOCK
    startblock: int = 0
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE
    sort_order: str = "desc"

    def advance(self, last_block_number: int) -> None:
        """Move the window below the last block already seen."""
        next_end = last_block_number - 1
        if next_end >= self.endblock:
            raise ValueError(
                f"endblock must decrease: {self.endblock} -> {next_end}"
            )
        self.endblock = next_end

    def to_params(self) -> dict[str, str]:
        """Query parameters understood by the ledger-query API."""
        return {
            "startblock": str(self.startblock),
            "endblock": str(self.endblock),
            "page": str(self.page),
            "offset": str(self.page_size),
            "sort": self.sort_order,
        }


@dataclass(frozen=True)
class NormalizedTransaction:
    """
    Canonical transaction row - STRICT schema.

    Every field is derived from one LedgerRecord plus its resolved price.
    """
    kind: RecordKind
    hash: str
    timestamp: int
    status: TransactionStatus
    type: TransactionType
    from_address: str
    to_address: str
    value_ether: str
    value_usd: Optional[float]
    gas_fee_ether: Optional[str]
    explorer_url: str

    @property
    def datetime_utc(self) -> str:
        """ISO-8601 rendering of the timestamp in UTC."""
        moment = datetime.fromtimestamp(self.timestamp, tz=timezone.utc)
        return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")

    def to_dict(self) -> dict[str, Any]:
        """Convert to the report's wire format."""
        return {
            "kind": self.kind.value,
            "hash": self.hash,
            "timeStamp": self.timestamp,
            "dateTimeUtc": self.datetime_utc,
            "status": self.status.value,
            "type": self.type.value,
            "from": self.from_address,
            "to": self.to_address,
            "valueEth": self.value_ether,
            "valueUsd": self.value_usd,
            "gasFeeEth": self.gas_fee_ether,
            "explorerUrl": self.explorer_url,
        }


@dataclass(frozen=True)
class AggregatedReport:
    """Bounded transaction history for one address, newest first."""
    address: str
    rows: tuple[NormalizedTransaction, ...] = field(default_factory=tuple)

    @property
    def count(self) -> int:
        return len(self.rows)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "address": self.address,
            "count": self.count,
            "rows": [row.to_dict() for row in self.rows],
        }
