"""TargetAllocation model - desired portfolio weight for a ticker or category."""

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import JSON, Column, DateTime, Integer, Numeric, String, UniqueConstraint

from database import Base
from models.utils import generate_uuid


class TargetAllocation(Base):
    """A target percentage.

    Ticker-level targets carry a symbol and/or alternative tickers (the
    same fund listed on other exchanges). Targets with neither are
    category-level and match holdings by asset type and category.
    """

    __tablename__ = "target_allocations"
    __table_args__ = (
        UniqueConstraint(
            "asset_type", "asset_category", "symbol", "isin", "bucket",
            name="uix_target_identity",
        ),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    asset_type = Column(String, nullable=False)
    asset_category = Column(String, nullable=True)
    symbol = Column(String, nullable=True)
    alternative_tickers = Column(JSON, nullable=False, default=list)
    isin = Column(String, nullable=True)
    instrument_name = Column(String, nullable=True)
    target_percentage = Column(Numeric(7, 4), nullable=False, default=Decimal("0"))
    bucket = Column(String, nullable=True)  # informational: short / medium / long term
    sort_order = Column(Integer, nullable=False, default=0)  # import order; first wins on ties
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    def identity_key(self) -> tuple:
        """Fields that identify a target across target-set replacements."""
        return (self.asset_type, self.asset_category, self.symbol, self.isin, self.bucket)
