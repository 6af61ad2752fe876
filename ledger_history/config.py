"""
Ledger History - Configuration.

============================================================
SETTINGS
============================================================
Configuration can be loaded from:
- Default values
- Environment variables
- A .env file in the working directory (python-dotenv)

============================================================
"""

import logging
import os
from dataclasses import dataclass, replace
from typing import Any, Callable, Optional

from dotenv import load_dotenv

from ledger_history.exceptions import ConfigurationError


logger = logging.getLogger(__name__)


ETHERSCAN_V2_API_URL = "https://api.etherscan.io/v2/api"
COINGECKO_RANGE_URL = "https://api.coingecko.com/api/v3/coins/ethereum/market_chart/range"
ETHERSCAN_TX_URL = "https://etherscan.io/tx/"


@dataclass(frozen=True)
class ServiceConfig:
    """Settings for the ledger history pipeline and its HTTP server."""

    # Ledger-query service
    etherscan_api_url: str = ETHERSCAN_V2_API_URL
    etherscan_api_key: str = ""
    chain_id: int = 1

    # Price service
    coingecko_api_url: str = COINGECKO_RANGE_URL
    coingecko_api_key: str = ""

    # Retrieval bounds
    record_limit: int = 1000  # per stream, before merging
    page_size: int = 10000
    max_chunks: int = 1000
    min_request_interval: float = 0.22

    # Transport
    http_timeout: float = 30.0

    # Output
    explorer_tx_url: str = ETHERSCAN_TX_URL
    ether_decimals: int = 8

    # Server
    log_level: str = "INFO"
    log_format: str = "text"
    host: str = "0.0.0.0"
    port: int = 8000

    def __post_init__(self) -> None:
        """Validate settings."""
        if self.record_limit < 1:
            raise ConfigurationError("record_limit must be >= 1", config_key="record_limit")
        if self.page_size < 1:
            raise ConfigurationError("page_size must be >= 1", config_key="page_size")
        if self.max_chunks < 1:
            raise ConfigurationError("max_chunks must be >= 1", config_key="max_chunks")
        if self.min_request_interval < 0:
            raise ConfigurationError(
                "min_request_interval must be >= 0",
                config_key="min_request_interval",
            )
        if self.http_timeout <= 0:
            raise ConfigurationError("http_timeout must be > 0", config_key="http_timeout")
        if not 0 <= self.ether_decimals <= 18:
            raise ConfigurationError("ether_decimals must be 0-18", config_key="ether_decimals")
        if self.log_format not in ("text", "json"):
            raise ConfigurationError("log_format must be 'text' or 'json'", config_key="log_format")

    @classmethod
    def from_env(cls, dotenv: bool = True) -> "ServiceConfig":
        """Build configuration from environment variables."""
        if dotenv:
            load_dotenv()

        defaults = cls()
        return cls(
            etherscan_api_url=os.getenv("ETHERSCAN_API_URL", defaults.etherscan_api_url),
            etherscan_api_key=os.getenv("ETHERSCAN_API_KEY", "").strip(),
            chain_id=_env("LEDGER_CHAIN_ID", int, defaults.chain_id),
            coingecko_api_url=os.getenv("COINGECKO_API_URL", defaults.coingecko_api_url),
            coingecko_api_key=os.getenv("COINGECKO_API_KEY", "").strip(),
            record_limit=_env("LEDGER_RECORD_LIMIT", int, defaults.record_limit),
            page_size=_env("LEDGER_PAGE_SIZE", int, defaults.page_size),
            max_chunks=_env("LEDGER_MAX_CHUNKS", int, defaults.max_chunks),
            min_request_interval=_env(
                "LEDGER_MIN_INTERVAL_SECONDS", float, defaults.min_request_interval
            ),
            http_timeout=_env("HTTP_TIMEOUT_SECONDS", float, defaults.http_timeout),
            explorer_tx_url=os.getenv("EXPLORER_TX_URL", defaults.explorer_tx_url),
            log_level=os.getenv("LOG_LEVEL", defaults.log_level).upper(),
            log_format=os.getenv("LOG_FORMAT", defaults.log_format).lower(),
            host=os.getenv("LEDGER_HOST", defaults.host),
            port=_env("LEDGER_PORT", int, defaults.port),
        )

    def with_overrides(self, **overrides: Any) -> "ServiceConfig":
        """Copy with selected fields replaced; None values are ignored."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary with secrets masked."""
        return {
            "etherscan_api_url": self.etherscan_api_url,
            "etherscan_api_key": "***" if self.etherscan_api_key else "",
            "chain_id": self.chain_id,
            "coingecko_api_url": self.coingecko_api_url,
            "coingecko_api_key": "***" if self.coingecko_api_key else "",
            "record_limit": self.record_limit,
            "page_size": self.page_size,
            "max_chunks": self.max_chunks,
            "min_request_interval": self.min_request_interval,
            "http_timeout": self.http_timeout,
            "explorer_tx_url": self.explorer_tx_url,
            "ether_decimals": self.ether_decimals,
            "log_level": self.log_level,
            "log_format": self.log_format,
            "host": self.host,
            "port": self.port,
        }


def _env(name: str, cast: Callable[[str], Any], default: Any) -> Any:
    raw: Optional[str] = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw.strip())
    except ValueError as e:
        raise ConfigurationError(
            f"Invalid value for {name}: {raw!r}",
            config_key=name,
            original_error=e,
        )
