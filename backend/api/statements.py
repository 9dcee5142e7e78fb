"""Statement upload API endpoints."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.orm import Session

from api.helpers import unmatched_holding_dict
from database import get_db
from schemas.statements import StatementUploadResponse
from services.lookup_services import get_currency_service
from services.statement_import_service import StatementImportService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/statements", tags=["statements"])

# Dependency injection for testing
_import_service_override: Optional[StatementImportService] = None


def get_statement_import_service() -> StatementImportService:
    """Get StatementImportService instance, allowing for test overrides."""
    if _import_service_override is not None:
        return _import_service_override
    return StatementImportService(currency_service=get_currency_service())


def set_statement_import_service_override(service: Optional[StatementImportService]) -> None:
    """Set a StatementImportService override for testing."""
    global _import_service_override
    _import_service_override = service


@router.post("/upload", response_model=StatementUploadResponse)
def upload_statement(
    statement: UploadFile = File(...),
    account_id: str = Form(...),
    db: Session = Depends(get_db),
    service: StatementImportService = Depends(get_statement_import_service),
):
    """
    Upload an Interactive Brokers statement (PDF or CSV).

    Replaces the account's holdings for the statement date, tags them with
    asset types from matching targets and returns the holdings no target
    claimed, with suggestions.
    """
    content = statement.file.read()
    logger.info(
        "Statement upload: %s (%d bytes) for account %s",
        statement.filename, len(content), account_id,
    )
    result = service.import_statement(db, account_id, statement.filename, content)

    stored_by_symbol = {h.symbol: h for h in result.holdings}
    unmatched = [
        unmatched_holding_dict(item, stored_by_symbol[item.holding.symbol])
        for item in result.unmatched
    ]

    return {
        "message": "Statement parsed successfully",
        "account_id": result.account.id,
        "broker_account_id": result.statement.account_id,
        "statement_date": result.statement_date,
        "file_type": result.file_type,
        "base_currency": result.statement.base_currency,
        "cash": result.statement.cash,
        "total_value": result.statement.total_value,
        "holdings_count": len(result.holdings),
        "holdings": result.holdings,
        "unmatched_count": len(unmatched),
        "unmatched_holdings": unmatched,
    }
