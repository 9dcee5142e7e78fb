"""Service for per-account holding-symbol -> target overrides."""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session, joinedload

from models import Account, SymbolMapping, TargetAllocation

logger = logging.getLogger(__name__)


def mapping_response_dict(mapping: SymbolMapping) -> dict:
    """Build a SymbolMappingResponse-compatible dict (target loaded)."""
    target = mapping.target
    return {
        "id": mapping.id,
        "account_id": mapping.account_id,
        "holding_symbol": mapping.holding_symbol,
        "target_id": mapping.target_id,
        "match_type": mapping.match_type,
        "created_at": mapping.created_at,
        "updated_at": mapping.updated_at,
        "target_symbol": target.symbol if target else None,
        "asset_type": target.asset_type if target else None,
        "asset_category": target.asset_category if target else None,
        "target_isin": target.isin if target else None,
    }


class SymbolMappingService:
    """CRUD for symbol mappings. One mapping per (account, holding symbol)."""

    def list_for_account(self, db: Session, account_id: str) -> list[SymbolMapping]:
        return (
            db.query(SymbolMapping)
            .options(joinedload(SymbolMapping.target))
            .filter(SymbolMapping.account_id == account_id)
            .order_by(SymbolMapping.holding_symbol)
            .all()
        )

    def get_by_id(self, db: Session, mapping_id: str) -> Optional[SymbolMapping]:
        return db.query(SymbolMapping).filter_by(id=mapping_id).first()

    def save(
        self,
        db: Session,
        account_id: str,
        holding_symbol: str,
        target_id: Optional[str],
        match_type: Optional[str],
    ) -> Optional[SymbolMapping]:
        """
        Create or update a mapping; a null ``target_id`` clears it.

        Returns:
            The saved mapping, or None when cleared

        Raises:
            HTTPException: 404 if the account doesn't exist, 400 if the
                target doesn't exist
        """
        if not db.query(Account).filter_by(id=account_id).first():
            raise HTTPException(status_code=404, detail="Account not found")

        existing = (
            db.query(SymbolMapping)
            .filter_by(account_id=account_id, holding_symbol=holding_symbol)
            .first()
        )

        if target_id is None:
            if existing:
                db.delete(existing)
                db.commit()
                logger.info("Symbol mapping cleared: %s (account %s)", holding_symbol, account_id)
            return None

        if not db.query(TargetAllocation).filter_by(id=target_id).first():
            raise HTTPException(status_code=400, detail="Invalid target_id")

        if existing:
            existing.target_id = target_id
            existing.match_type = match_type
            mapping = existing
        else:
            mapping = SymbolMapping(
                account_id=account_id,
                holding_symbol=holding_symbol,
                target_id=target_id,
                match_type=match_type,
            )
            db.add(mapping)
        db.commit()
        db.refresh(mapping)
        logger.info(
            "Symbol mapping saved: %s -> target %s (%s, account %s)",
            holding_symbol, target_id, match_type, account_id,
        )
        return mapping

    def delete(self, db: Session, mapping_id: str) -> None:
        """
        Raises:
            HTTPException: If the mapping is not found
        """
        mapping = self.get_by_id(db, mapping_id)
        if not mapping:
            raise HTTPException(status_code=404, detail="Symbol mapping not found")
        db.delete(mapping)
        db.commit()
        logger.info("Symbol mapping deleted: %s", mapping_id)
