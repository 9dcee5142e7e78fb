"""SymbolMapping model - per-account holding symbol to target override."""

from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import relationship

from database import Base
from models.utils import generate_uuid

MATCH_TYPE_EXACT = "exact"  # same ISIN / ticker listed elsewhere
MATCH_TYPE_SAME_BASKET = "same_basket"  # different fund, same exposure
MATCH_TYPES = (MATCH_TYPE_EXACT, MATCH_TYPE_SAME_BASKET)


class SymbolMapping(Base):
    """Routes a holding symbol to a target when tickers differ."""

    __tablename__ = "symbol_mappings"
    __table_args__ = (
        UniqueConstraint("account_id", "holding_symbol", name="uix_mapping_account_symbol"),
        CheckConstraint(
            "match_type IN ('exact', 'same_basket')", name="ck_mapping_match_type"
        ),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    account_id = Column(String(36), ForeignKey("accounts.id"), nullable=False, index=True)
    holding_symbol = Column(String, nullable=False)
    target_id = Column(
        String(36), ForeignKey("target_allocations.id"), nullable=False, index=True
    )
    match_type = Column(String, nullable=False, default=MATCH_TYPE_EXACT)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    account = relationship("Account", back_populates="symbol_mappings")
    target = relationship("TargetAllocation")
