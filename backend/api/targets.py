"""Target allocation API endpoints."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.orm import Session

from database import get_db
from schemas.targets import (
    TargetCommitRequest,
    TargetCommitResponse,
    TargetCreate,
    TargetHistoryResponse,
    TargetPreviewResponse,
    TargetResponse,
    TargetUpdate,
)
from services.lookup_services import get_name_lookup_service
from services.name_lookup_service import NameLookupService
from services.target_import_service import TargetImportService
from services.target_service import TargetService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/targets", tags=["targets"])
service = TargetService()

# Dependency injection for testing
_name_lookup_override: Optional[NameLookupService] = None


def get_name_lookup() -> NameLookupService:
    """Get NameLookupService instance, allowing for test overrides."""
    if _name_lookup_override is not None:
        return _name_lookup_override
    return get_name_lookup_service()


def set_name_lookup_override(service: Optional[NameLookupService]) -> None:
    """Set a NameLookupService override for testing."""
    global _name_lookup_override
    _name_lookup_override = service


@router.get("", response_model=list[TargetResponse])
async def list_targets(
    db: Session = Depends(get_db),
    lookup: NameLookupService = Depends(get_name_lookup),
):
    """
    List all target allocations in stored order.

    Each target carries a display name from imported holdings or, failing
    that, from the lookup services.
    """
    return await service.list_with_names(db, lookup)


@router.post("", response_model=TargetResponse)
def upsert_target(data: TargetCreate, db: Session = Depends(get_db)):
    """
    Create a target, or update the one with the same
    (asset type, category, symbol, ISIN, bucket).
    """
    return service.upsert(db, data)


@router.get("/history", response_model=list[TargetHistoryResponse])
def get_history(db: Session = Depends(get_db)):
    """Most recent 500 history entries, newest first."""
    return service.get_history(db)


@router.post("/upload-preview", response_model=TargetPreviewResponse)
async def upload_preview(
    file: UploadFile = File(...),
    sheet_name: Optional[str] = Form(None),
    lookup: NameLookupService = Depends(get_name_lookup),
):
    """
    Parse an Excel (.xlsx/.xls) or CSV target file without saving it.

    Rows are validated against the lookup services; rows missing a ticker
    get auto-detect suggestions from their ISIN or instrument name.
    """
    content = await file.read()
    return await TargetImportService(lookup).preview(file.filename, content, sheet_name)


@router.post("/commit", response_model=TargetCommitResponse)
def commit_targets(data: TargetCommitRequest, db: Session = Depends(get_db)):
    """
    Replace the whole target set.

    The previous targets are archived to history first; symbol mappings
    follow targets whose identity is unchanged.
    """
    result = service.replace_all(db, data.targets)
    targets = result["targets"]
    return {
        "message": "Targets committed successfully",
        "targets": targets,
        "targets_count": len(targets),
        "total_percentage": sum((t.target_percentage for t in targets), 0),
        "mappings_remapped": result["mappings_remapped"],
        "mappings_removed": result["mappings_removed"],
    }


@router.put("/{target_id}", response_model=TargetResponse)
def update_target(target_id: str, data: TargetUpdate, db: Session = Depends(get_db)):
    """Change a target's percentage (old and new values go to history)."""
    return service.update_percentage(db, target_id, data.target_percentage)


@router.delete("/{target_id}", status_code=204)
def delete_target(target_id: str, db: Session = Depends(get_db)):
    """Delete a target. Its history is kept."""
    service.delete(db, target_id)


@router.get("/{target_id}/history", response_model=list[TargetHistoryResponse])
def get_target_history(target_id: str, db: Session = Depends(get_db)):
    """History of one target, newest first. Works for deleted targets too."""
    return service.get_target_history(db, target_id)
