"""
Pydantic schemas for the transaction report API.
"""
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class TransactionRow(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    kind: str  # native, internal
    hash: str
    time_stamp: int = Field(alias="timeStamp")
    date_time_utc: str = Field(alias="dateTimeUtc")
    status: str  # Success, Failed, Pending
    type: str
    from_address: str = Field(alias="from")
    to_address: str = Field(alias="to")
    value_eth: str = Field(alias="valueEth")
    value_usd: Optional[float] = Field(default=None, alias="valueUsd")
    gas_fee_eth: Optional[str] = Field(default=None, alias="gasFeeEth")
    explorer_url: str = Field(alias="explorerUrl")


class TransactionReportResponse(BaseModel):
    address: str
    count: int
    rows: List[TransactionRow]


class ErrorResponse(BaseModel):
    error: str


class HealthResponse(BaseModel):
    status: str
