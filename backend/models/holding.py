"""Holding model - one symbol in one account on one statement date."""

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import Column, Date, DateTime, ForeignKey, Index, Numeric, String, UniqueConstraint
from sqlalchemy.orm import relationship

from database import Base
from models.utils import generate_uuid


class Holding(Base):
    """A position reported by a statement.

    Re-importing a statement for the same account and date replaces all
    of that date's rows.
    """

    __tablename__ = "holdings"
    __table_args__ = (
        UniqueConstraint(
            "account_id", "symbol", "statement_date",
            name="uix_holding_account_symbol_date",
        ),
        Index("ix_holdings_account_date", "account_id", "statement_date"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    account_id = Column(String(36), ForeignKey("accounts.id"), nullable=False)
    symbol = Column(String, nullable=False, index=True)
    isin = Column(String, nullable=True)
    instrument_name = Column(String, nullable=True)
    asset_type = Column(String, nullable=False, default="Unknown")  # Stock, Bond, Cash, ...
    asset_category = Column(String, nullable=True)  # e.g. "US Stock market"
    quantity = Column(Numeric(18, 8), nullable=False, default=Decimal("0"))
    price = Column(Numeric(18, 6), nullable=False, default=Decimal("0"))
    currency = Column(String(3), nullable=False, default="USD")  # Trading currency
    value_usd = Column(Numeric(18, 2), nullable=False, default=Decimal("0"))
    value_base = Column(Numeric(18, 2), nullable=False, default=Decimal("0"))  # Account base currency
    statement_date = Column(Date, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    # Relationships
    account = relationship("Account", back_populates="holdings")
