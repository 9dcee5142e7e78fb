"""Account model - a brokerage account that statements are imported into."""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String
from sqlalchemy.orm import relationship

from database import Base
from models.utils import generate_uuid


class Account(Base):
    """A brokerage account.

    ``broker_account_id`` is the identifier printed on statements
    (e.g. "U1234567" or a masked "U***4567").
    """

    __tablename__ = "accounts"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String, nullable=False)
    broker_account_id = Column(String, nullable=False, unique=True)
    base_currency = Column(String(3), nullable=False, default="USD")
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    holdings = relationship("Holding", back_populates="account")
    symbol_mappings = relationship("SymbolMapping", back_populates="account")
