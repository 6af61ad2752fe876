"""
Ledger History API Server Runner.

Usage:
    ledger-history
    ledger-history --port 9000 --log-level DEBUG
    python -m ledger_history.server --reload
"""

import argparse
import logging
import sys
from typing import List, Optional

import uvicorn

from ledger_history.config import ServiceConfig
from ledger_history.exceptions import ConfigurationError
from ledger_history.logging_config import setup_logging


logger = logging.getLogger(__name__)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="ledger-history",
        description="Serve account transaction history reports over HTTP",
    )
    parser.add_argument("--host", help="Bind address (env: LEDGER_HOST)")
    parser.add_argument("--port", type=int, help="Bind port (env: LEDGER_PORT)")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (env: LOG_LEVEL)",
    )
    parser.add_argument(
        "--log-format",
        choices=["text", "json"],
        help="Log output format (env: LOG_FORMAT)",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Reload on code changes (development only)",
    )
    return parser


def build_config(args: argparse.Namespace) -> ServiceConfig:
    """Environment settings overlaid with CLI flags."""
    return ServiceConfig.from_env().with_overrides(
        host=args.host,
        port=args.port,
        log_level=args.log_level,
        log_format=args.log_format,
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Run the API server."""
    args = create_parser().parse_args(argv)

    try:
        config = build_config(args)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    setup_logging(config.log_level, config.log_format)
    logger.info(f"Starting Ledger History API on {config.host}:{config.port}")

    uvicorn.run(
        "ledger_history.api:create_app",
        factory=True,
        host=config.host,
        port=config.port,
        reload=args.reload,
        log_config=None,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
