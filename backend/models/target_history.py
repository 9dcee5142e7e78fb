"""TargetHistory model - append-only log of target percentages."""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Numeric, String

from database import Base
from models.utils import generate_uuid


class TargetHistory(Base):
    """A recorded target percentage.

    ``target_allocation_id`` is deliberately not a foreign key: history
    rows outlive the targets they describe when the target set is replaced.
    """

    __tablename__ = "target_history"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    target_allocation_id = Column(String(36), nullable=True, index=True)
    target_percentage = Column(Numeric(7, 4), nullable=False)
    asset_type = Column(String, nullable=True)
    asset_category = Column(String, nullable=True)
    symbol = Column(String, nullable=True)
    isin = Column(String, nullable=True)
    bucket = Column(String, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), index=True)
