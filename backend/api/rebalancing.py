"""Rebalancing API endpoints."""

from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from config import settings
from database import get_db
from schemas.rebalancing import RebalancingPlanResponse
from services.rebalancing_service import RebalancingService

router = APIRouter(prefix="/api/rebalancing", tags=["rebalancing"])
service = RebalancingService()


@router.get("", response_model=RebalancingPlanResponse)
def get_rebalancing_plan(
    tolerance: Optional[Decimal] = Query(
        None, ge=0, le=1, description="Balanced band as a fraction (0.01 = 1 percentage point)"
    ),
    account_id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    """
    Compute buy/sell suggestions against the target allocations.

    Uses each account's latest statement (or only ``account_id``'s) and
    that account's symbol mappings.
    """
    if tolerance is None:
        tolerance = Decimal(str(settings.REBALANCE_TOLERANCE))
    return service.get_plan(db, tolerance=tolerance, account_id=account_id)
