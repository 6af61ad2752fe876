"""
Ledger History Exceptions - Custom exception hierarchy.

LedgerHistoryError (base)
├── InvalidAddressError      rejected before any network call (HTTP 400)
├── UpstreamFetchError       ledger retrieval failed (HTTP 502)
├── PriceUnavailableError    price series could not be loaded (degrades, never surfaces)
└── ConfigurationError       invalid service settings
"""

from datetime import datetime, timezone
from typing import Any, Optional


class LedgerHistoryError(Exception):
    """Base exception for all ledger history errors."""

    def __init__(
        self,
        message: str,
        source_name: Optional[str] = None,
        original_error: Optional[Exception] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.source_name = source_name
        self.original_error = original_error
        self.context = context or {}
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "source_name": self.source_name,
            "original_error": str(self.original_error) if self.original_error else None,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
        }

    def __str__(self) -> str:
        parts = [f"{self.__class__.__name__}: {self.message}"]
        if self.source_name:
            parts.append(f"[source={self.source_name}]")
        if self.original_error:
            parts.append(f"(caused by: {self.original_error})")
        return " ".join(parts)


class InvalidAddressError(LedgerHistoryError):
    """Queried account identifier is not a well-formed address."""

    def __init__(
        self,
        message: str,
        address: Optional[str] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, None, None, context)
        self.address = address

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data["address"] = self.address
        return data


class UpstreamFetchError(LedgerHistoryError):
    """Ledger-query service returned a failure, bad payload or transport error."""

    def __init__(
        self,
        message: str,
        source_name: Optional[str] = None,
        record_kind: Optional[str] = None,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
        request_url: Optional[str] = None,
        original_error: Optional[Exception] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, source_name, original_error, context)
        self.record_kind = record_kind
        self.status_code = status_code
        self.response_body = response_body
        self.request_url = request_url

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data.update({
            "record_kind": self.record_kind,
            "status_code": self.status_code,
            "response_body": self.response_body,
            "request_url": self.request_url,
        })
        return data


class PriceUnavailableError(LedgerHistoryError):
    """Historical price series could not be retrieved."""

    def __init__(
        self,
        message: str,
        source_name: Optional[str] = None,
        range_start: Optional[int] = None,
        range_end: Optional[int] = None,
        original_error: Optional[Exception] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, source_name, original_error, context)
        self.range_start = range_start
        self.range_end = range_end

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data.update({
            "range_start": self.range_start,
            "range_end": self.range_end,
        })
        return data


class ConfigurationError(LedgerHistoryError):
    """Invalid service configuration."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        original_error: Optional[Exception] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, None, original_error, context)
        self.config_key = config_key

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data["config_key"] = self.config_key
        return data
