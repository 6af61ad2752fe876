"""
Transaction Report API.

GET /api/txs?address=0x...&includeInternal=1

Responses are never cached and may be called cross-origin. Failures use
{"error": "..."} with 400 (invalid address), 502 (ledger retrieval failed)
or 500 (anything else).
"""

import logging
from typing import AsyncIterator, Optional

from fastapi import APIRouter, Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ledger_history.aggregator import TransactionReportService
from ledger_history.config import ServiceConfig
from ledger_history.exceptions import InvalidAddressError, UpstreamFetchError
from ledger_history.schemas import ErrorResponse, HealthResponse, TransactionReportResponse


logger = logging.getLogger(__name__)


TRUTHY_FLAGS = ("1", "true", "yes", "on")

router = APIRouter(tags=["Transactions"])


def parse_flag(value: Optional[str]) -> bool:
    """Interpret a query-string boolean."""
    return (value or "").strip().lower() in TRUTHY_FLAGS


def get_config(request: Request) -> ServiceConfig:
    return request.app.state.config


async def get_report_service(
    config: ServiceConfig = Depends(get_config),
) -> AsyncIterator[TransactionReportService]:
    service = TransactionReportService.from_config(config)
    try:
        yield service
    finally:
        await service.close()


def error_response(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.get(
    "/api/txs",
    response_model=TransactionReportResponse,
    responses={
        400: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
)
async def get_transactions(
    address: Optional[str] = Query(None),
    include_internal: Optional[str] = Query(None, alias="includeInternal"),
    service: TransactionReportService = Depends(get_report_service),
):
    """
    Most recent transactions for an address, newest first, with USD values.
    """
    try:
        report = await service.build_report(address or "", parse_flag(include_internal))
    except InvalidAddressError as e:
        return error_response(e.message, 400)
    except UpstreamFetchError as e:
        logger.warning(f"Ledger retrieval failed for {address}: {e}")
        return error_response(e.message, 502)
    except Exception:
        logger.exception(f"Unexpected error building report for {address}")
        return error_response("Server error", 500)

    return report.to_dict()


@router.get("/health", response_model=HealthResponse)
def health():
    return {"status": "ok"}


def create_app(config: Optional[ServiceConfig] = None) -> FastAPI:
    """Build the FastAPI application."""
    app = FastAPI(
        title="Ledger History API",
        description="Account transaction history with historical USD valuations.",
        version="1.0.0",
    )
    app.state.config = config or ServiceConfig.from_env()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    @app.middleware("http")
    async def no_store(request: Request, call_next):
        response = await call_next(request)
        response.headers["Cache-Control"] = "no-store"
        return response

    app.include_router(router)
    return app
