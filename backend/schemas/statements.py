"""Pydantic schemas for statement upload and holdings."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict


class HoldingResponse(BaseModel):
    """Schema for Holding API response."""

    id: str
    account_id: str
    symbol: str
    isin: Optional[str] = None
    instrument_name: Optional[str] = None
    asset_type: str
    asset_category: Optional[str] = None
    quantity: Decimal
    price: Decimal
    currency: str
    value_usd: Decimal
    value_base: Decimal
    statement_date: date
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SuggestedMatch(BaseModel):
    target_id: str
    asset_type: str
    asset_category: Optional[str] = None
    symbol: Optional[str] = None
    score: int
    match_reason: str


class UnmatchedHoldingResponse(BaseModel):
    """A stored holding no target claimed, with ranked suggestions."""

    holding: HoldingResponse
    symbol: str
    suggested_asset_type: str
    suggested_matches: list[SuggestedMatch]


class StatementUploadResponse(BaseModel):
    message: str
    account_id: str
    broker_account_id: str
    statement_date: date
    file_type: str
    base_currency: str
    cash: Decimal
    total_value: Decimal
    holdings_count: int
    holdings: list[HoldingResponse]
    unmatched_count: int
    unmatched_holdings: list[UnmatchedHoldingResponse]
