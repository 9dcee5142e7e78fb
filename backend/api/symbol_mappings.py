"""Symbol mappings API endpoints."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from api.helpers import get_or_404
from database import get_db
from models import Account
from schemas.symbol_mappings import (
    SymbolMappingResponse,
    SymbolMappingSave,
    SymbolMappingSaveResponse,
)
from services.symbol_mapping_service import SymbolMappingService, mapping_response_dict

router = APIRouter(prefix="/api/symbol-mappings", tags=["symbol-mappings"])
service = SymbolMappingService()


@router.get("", response_model=list[SymbolMappingResponse])
def list_symbol_mappings(account_id: str = Query(...), db: Session = Depends(get_db)):
    """List an account's mappings with their target's symbol, type and category."""
    get_or_404(db, Account, account_id, "Account not found")
    return [mapping_response_dict(m) for m in service.list_for_account(db, account_id)]


@router.post("", response_model=SymbolMappingSaveResponse)
def save_symbol_mapping(data: SymbolMappingSave, db: Session = Depends(get_db)):
    """
    Create or update the mapping for (account, holding symbol).

    A null ``target_id`` clears the mapping.
    """
    mapping = service.save(db, data.account_id, data.holding_symbol, data.target_id, data.match_type)
    if mapping is None:
        return {"message": "Symbol mapping cleared successfully"}
    return {"message": "Symbol mapping saved successfully", "mapping": mapping_response_dict(mapping)}


@router.delete("/{mapping_id}", status_code=204)
def delete_symbol_mapping(mapping_id: str, db: Session = Depends(get_db)):
    """Delete a mapping."""
    service.delete(db, mapping_id)
