"""
Providers package - Ledger and price source implementations.
"""

from ledger_history.providers.coingecko import CoinGeckoPriceSource
from ledger_history.providers.etherscan import EtherscanLedgerSource


__all__ = [
    "CoinGeckoPriceSource",
    "EtherscanLedgerSource",
]
