"""Pydantic schemas for target allocations, history and target-file imports."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class TargetBase(BaseModel):
    """Shared target fields.

    Commit payloads from the import preview may name the ticker ``ticker``
    or ``main_ticker`` and the alternatives ``other_tickers``.
    """

    asset_type: str = Field(min_length=1)
    asset_category: Optional[str] = None
    symbol: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("symbol", "ticker", "main_ticker")
    )
    alternative_tickers: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("alternative_tickers", "other_tickers"),
    )
    isin: Optional[str] = None
    instrument_name: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("instrument_name", "instrument")
    )
    target_percentage: Decimal = Field(ge=0, le=100)
    bucket: Optional[str] = None

    @field_validator("asset_type", mode="before")
    @classmethod
    def strip_asset_type(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("asset_category", "symbol", "isin", "instrument_name", "bucket", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        """Trim strings; empty strings become None."""
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value

    @field_validator("alternative_tickers", mode="before")
    @classmethod
    def clean_tickers(cls, value):
        """Accept None; drop blanks and duplicates, keep order."""
        if value is None:
            return []
        if isinstance(value, list):
            cleaned = [str(t).strip() for t in value if t is not None and str(t).strip()]
            return list(dict.fromkeys(cleaned))
        return value


class TargetCreate(TargetBase):
    """Schema for creating (or upserting) a target allocation."""

    pass


class TargetUpdate(BaseModel):
    """Schema for changing a target's percentage."""

    target_percentage: Decimal = Field(ge=0, le=100)


class TargetResponse(TargetBase):
    """Schema for TargetAllocation API response."""

    id: str
    sort_order: int = 0
    created_at: datetime
    updated_at: datetime
    name: Optional[str] = None  # display name from holdings or lookup

    model_config = ConfigDict(from_attributes=True)


class TargetHistoryResponse(BaseModel):
    """Schema for TargetHistory API response."""

    id: str
    target_allocation_id: Optional[str] = None
    target_percentage: Decimal
    asset_type: Optional[str] = None
    asset_category: Optional[str] = None
    symbol: Optional[str] = None
    isin: Optional[str] = None
    bucket: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TargetCommitRequest(BaseModel):
    """Replace the whole target set."""

    targets: list[TargetCreate]


class TargetCommitResponse(BaseModel):
    message: str
    targets: list[TargetResponse]
    targets_count: int
    total_percentage: Decimal
    mappings_remapped: int = 0
    mappings_removed: int = 0


class TickerCandidateResponse(BaseModel):
    ticker: str
    exchange: Optional[str] = None
    name: Optional[str] = None
    confidence: str

    model_config = ConfigDict(from_attributes=True)


class PreviewTarget(BaseModel):
    """A parsed target row annotated with validation results."""

    asset_type: str
    asset_category: Optional[str] = None
    target_percentage: Decimal
    instrument: Optional[str] = None
    isin: Optional[str] = None
    ticker: Optional[str] = None
    alternative_tickers: list[str] = Field(default_factory=list)
    bucket: Optional[str] = None
    needs_auto_detect: bool = False
    missing_fields: list[str] = Field(default_factory=list)
    validation_errors: list[str] = Field(default_factory=list)
    validation_warnings: list[str] = Field(default_factory=list)
    auto_detect_suggestions: Optional[list[TickerCandidateResponse]] = None


class ValidationSummaryResponse(BaseModel):
    total: int
    valid: int
    complete: int
    needs_auto_detect: int

    model_config = ConfigDict(from_attributes=True)


class TargetPreviewResponse(BaseModel):
    """Result of parsing (not saving) a target file."""

    targets: list[PreviewTarget] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    total_percentage: Decimal = Decimal("0")
    targets_count: int = 0
    validation_summary: Optional[ValidationSummaryResponse] = None
    all_complete: bool = False
    needs_auto_detect: bool = False
    available_sheets: list[str] = Field(default_factory=list)
    selected_sheet: Optional[str] = None
    has_multiple_sheets: bool = False
