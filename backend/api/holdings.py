"""Holdings API endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from api.helpers import get_or_404
from database import get_db
from models import Account
from schemas.statements import HoldingResponse
from services.holding_service import HoldingService

router = APIRouter(prefix="/api/holdings", tags=["holdings"])
service = HoldingService()


@router.get("/latest", response_model=list[HoldingResponse])
def list_latest_holdings(
    account_id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    """
    Holdings from the most recent statement of each account.

    Args:
        account_id: Restrict to one account (optional)
    """
    if account_id:
        get_or_404(db, Account, account_id, "Account not found")
    return service.get_latest_holdings(db, account_id)
