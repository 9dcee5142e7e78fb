"""Shared API helpers for route handlers.

Lookups and response builders used across multiple route files.
"""

from typing import TypeVar

from fastapi import HTTPException
from sqlalchemy.orm import Session

from database import Base
from models import Holding
from services.holding_matcher import UnmatchedHolding

T = TypeVar("T", bound=Base)


def get_or_404(db: Session, model: type[T], entity_id: str, detail: str = "Not found") -> T:
    """Fetch a single entity by primary key or raise 404.

    Args:
        db: Database session.
        model: SQLAlchemy model class.
        entity_id: Primary key value.
        detail: Error message for the 404 response.

    Returns:
        The entity instance.

    Raises:
        HTTPException: 404 if the entity doesn't exist.
    """
    entity = db.query(model).filter(model.id == entity_id).first()
    if not entity:
        raise HTTPException(status_code=404, detail=detail)
    return entity


def unmatched_holding_dict(item: UnmatchedHolding, stored: Holding) -> dict:
    """Build an UnmatchedHoldingResponse-compatible dict.

    Args:
        item: Matcher output for the holding.
        stored: The persisted Holding row for the same symbol.
    """
    return {
        "holding": stored,
        "symbol": stored.symbol,
        "suggested_asset_type": item.inferred_asset_type,
        "suggested_matches": [
            {
                "target_id": s.target.id,
                "asset_type": s.target.asset_type,
                "asset_category": s.target.asset_category,
                "symbol": s.target.symbol,
                "score": s.score,
                "match_reason": s.reason,
            }
            for s in item.suggestions
        ],
    }
