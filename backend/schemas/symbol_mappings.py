"""Pydantic schemas for per-account symbol mappings."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

MatchType = Literal["exact", "same_basket"]


class SymbolMappingSave(BaseModel):
    """Create, update or clear (``target_id`` = null) a mapping."""

    account_id: str
    holding_symbol: str = Field(min_length=1)
    target_id: Optional[str] = None
    match_type: Optional[MatchType] = None

    @model_validator(mode="after")
    def require_match_type_with_target(self) -> "SymbolMappingSave":
        self.holding_symbol = self.holding_symbol.strip()
        if not self.holding_symbol:
            raise ValueError("holding_symbol must not be blank")
        if self.target_id is not None and self.match_type is None:
            raise ValueError("match_type is required when target_id is provided")
        return self


class SymbolMappingResponse(BaseModel):
    """Schema for SymbolMapping API response, with target details."""

    id: str
    account_id: str
    holding_symbol: str
    target_id: str
    match_type: MatchType
    created_at: datetime
    updated_at: datetime
    target_symbol: Optional[str] = None
    asset_type: Optional[str] = None
    asset_category: Optional[str] = None
    target_isin: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class SymbolMappingSaveResponse(BaseModel):
    message: str
    mapping: Optional[SymbolMappingResponse] = None
