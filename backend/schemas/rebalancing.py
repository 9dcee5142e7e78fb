"""Pydantic schemas for rebalancing plans."""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict


class RebalancingActionResponse(BaseModel):
    symbol: str
    action: str  # BUY or SELL
    quantity: Decimal
    amount: Decimal
    current_allocation: Decimal
    target_allocation: Decimal
    deviation: Decimal
    status: str
    asset_type: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class AssetStatusResponse(BaseModel):
    symbol: str
    current_allocation: Decimal
    target_allocation: Decimal
    deviation: Decimal
    status: str
    current_value: Decimal
    target_value: Decimal
    adjustment_needed: Decimal
    has_target: bool
    mapped_target_symbol: Optional[str] = None
    asset_type: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class RebalancingPlanResponse(BaseModel):
    """Schema for a computed rebalancing plan."""

    actions: list[RebalancingActionResponse]
    all_assets: list[AssetStatusResponse]
    total_value: Decimal
    total_buy: Decimal
    total_sell: Decimal
    net_cash_needed: Decimal
    tolerance: Decimal
    message: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
