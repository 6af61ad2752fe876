"""
Ledger envelope parsing.

The ledger-query API wraps every answer in {"status", "message", "result"}.
parse_envelope() validates that shape once and returns exactly one of
EnvelopeRecords, EnvelopeEmpty or EnvelopeFailure.
"""

from dataclasses import dataclass
from typing import Any, Union


NO_RECORDS_MESSAGE = "No transactions found"


@dataclass(frozen=True)
class EnvelopeRecords:
    """Page of raw record dicts."""
    records: tuple[dict[str, Any], ...]


@dataclass(frozen=True)
class EnvelopeEmpty:
    """Upstream reported that no records exist in the window."""
    message: str = NO_RECORDS_MESSAGE


@dataclass(frozen=True)
class EnvelopeFailure:
    """Upstream reported an error or sent something unusable."""
    reason: str
    body: str = ""


EnvelopeResult = Union[EnvelopeRecords, EnvelopeEmpty, EnvelopeFailure]


def _excerpt(payload: Any, limit: int = 500) -> str:
    return str(payload)[:limit]


def parse_envelope(payload: Any) -> EnvelopeResult:
    """
    Classify a decoded ledger-query response.

    A status of "0" still counts as success when result is an array; the
    service uses that shape for some valid answers.
    """
    if not isinstance(payload, dict):
        return EnvelopeFailure("Unexpected ledger response", _excerpt(payload))

    status = str(payload.get("status", ""))
    message = str(payload.get("message") or "")
    result = payload.get("result")

    if message == NO_RECORDS_MESSAGE:
        return EnvelopeEmpty(message)

    if isinstance(result, list):
        if not all(isinstance(item, dict) for item in result):
            return EnvelopeFailure("Malformed record in ledger result", _excerpt(payload))
        if not result:
            return EnvelopeEmpty(message or NO_RECORDS_MESSAGE)
        return EnvelopeRecords(tuple(result))

    if status != "1":
        if isinstance(result, str) and result:
            reason = result
        elif message:
            reason = message
        else:
            reason = "Unexpected ledger response"
        return EnvelopeFailure(reason, _excerpt(payload))

    # status "1" without an array carries no records
    return EnvelopeEmpty(message)
