"""Service for target allocations and their history."""

import logging
from decimal import Decimal
from typing import Optional

from fastapi import HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session

from models import SymbolMapping, TargetAllocation, TargetHistory
from schemas.targets import TargetCreate, TargetResponse
from services.holding_service import HoldingService
from services.name_lookup_service import NameLookupService, NameRequest

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 500


def identity_key(asset_type, asset_category, symbol, isin, bucket) -> tuple:
    """Identity of a target across replacements (matches the unique constraint)."""
    return (asset_type, asset_category or None, symbol or None, isin or None, bucket or None)


def _nullable_eq(column, value):
    return column.is_(None) if value is None else column == value


class TargetService:
    """Service for managing target allocations."""

    def list_all(self, db: Session) -> list[TargetAllocation]:
        """All targets in stored order (import order, then creation time)."""
        return (
            db.query(TargetAllocation)
            .order_by(TargetAllocation.sort_order, TargetAllocation.created_at)
            .all()
        )

    def get_by_id(self, db: Session, target_id: str) -> Optional[TargetAllocation]:
        return db.query(TargetAllocation).filter_by(id=target_id).first()

    def _find_by_identity(self, db: Session, data: TargetCreate) -> Optional[TargetAllocation]:
        return (
            db.query(TargetAllocation)
            .filter(
                TargetAllocation.asset_type == data.asset_type,
                _nullable_eq(TargetAllocation.asset_category, data.asset_category),
                _nullable_eq(TargetAllocation.symbol, data.symbol),
                _nullable_eq(TargetAllocation.isin, data.isin),
                _nullable_eq(TargetAllocation.bucket, data.bucket),
            )
            .first()
        )

    @staticmethod
    def _record_history(db: Session, target: TargetAllocation, percentage: Decimal) -> None:
        db.add(
            TargetHistory(
                target_allocation_id=target.id,
                target_percentage=percentage,
                asset_type=target.asset_type,
                asset_category=target.asset_category,
                symbol=target.symbol,
                isin=target.isin,
                bucket=target.bucket,
            )
        )

    def upsert(self, db: Session, data: TargetCreate) -> TargetAllocation:
        """
        Create a target, or update the one with the same identity.

        Identity is (asset_type, asset_category, symbol, isin, bucket). On
        update the previous percentage is recorded in history before the
        new one.

        Args:
            db: Database session
            data: Target fields

        Returns:
            The created or updated TargetAllocation
        """
        target = self._find_by_identity(db, data)
        if target is not None:
            self._record_history(db, target, target.target_percentage)
            target.target_percentage = data.target_percentage
            target.alternative_tickers = list(data.alternative_tickers)
            if data.instrument_name:
                target.instrument_name = data.instrument_name
            action = "updated"
        else:
            next_order = (db.query(func.max(TargetAllocation.sort_order)).scalar() or 0) + 1
            target = TargetAllocation(
                asset_type=data.asset_type,
                asset_category=data.asset_category,
                symbol=data.symbol,
                alternative_tickers=list(data.alternative_tickers),
                isin=data.isin,
                instrument_name=data.instrument_name,
                target_percentage=data.target_percentage,
                bucket=data.bucket,
                sort_order=next_order,
            )
            db.add(target)
            db.flush()
            action = "created"

        self._record_history(db, target, data.target_percentage)
        db.commit()
        db.refresh(target)
        logger.info(
            "Target %s: %s/%s %s = %s%%",
            action, target.asset_type, target.asset_category, target.symbol, target.target_percentage,
        )
        return target

    def update_percentage(self, db: Session, target_id: str, percentage: Decimal) -> TargetAllocation:
        """
        Change a target's percentage, recording old and new values in history.

        Raises:
            HTTPException: If the target is not found
        """
        target = self.get_by_id(db, target_id)
        if not target:
            raise HTTPException(status_code=404, detail="Target allocation not found")

        self._record_history(db, target, target.target_percentage)
        target.target_percentage = percentage
        self._record_history(db, target, percentage)
        db.commit()
        db.refresh(target)
        logger.info("Target %s percentage set to %s%%", target_id, percentage)
        return target

    def delete(self, db: Session, target_id: str) -> None:
        """
        Delete a target and the symbol mappings that point at it.

        History rows are kept.

        Raises:
            HTTPException: If the target is not found
        """
        target = self.get_by_id(db, target_id)
        if not target:
            raise HTTPException(status_code=404, detail="Target allocation not found")

        removed = (
            db.query(SymbolMapping)
            .filter(SymbolMapping.target_id == target_id)
            .delete(synchronize_session=False)
        )
        db.delete(target)
        db.commit()
        logger.info("Target deleted: %s (%d symbol mappings removed)", target_id, removed)

    def replace_all(self, db: Session, targets: list[TargetCreate]) -> dict:
        """
        Replace the entire target set in one transaction.

        Every existing target is archived to history, then deleted, and the
        new set is inserted in the given order (``sort_order`` = position).
        Symbol mappings are re-pointed at the new target with the same
        identity; mappings without a successor are removed.

        Args:
            db: Database session
            targets: The new target set

        Returns:
            Dict with ``targets``, ``mappings_remapped`` and ``mappings_removed``

        Raises:
            HTTPException: 400 if two new targets share an identity
        """
        seen: set[tuple] = set()
        for index, data in enumerate(targets, start=1):
            key = identity_key(data.asset_type, data.asset_category, data.symbol, data.isin, data.bucket)
            if key in seen:
                raise HTTPException(
                    status_code=400,
                    detail=(
                        f"Duplicate target at position {index}: {data.asset_type} / "
                        f"{data.asset_category or '-'} / {data.symbol or '-'} / {data.isin or '-'}"
                    ),
                )
            seen.add(key)

        try:
            existing = db.query(TargetAllocation).all()
            old_keys = {t.id: t.identity_key() for t in existing}
            for target in existing:
                self._record_history(db, target, target.target_percentage)

            # Mappings are re-created after the targets they reference are replaced
            mappings = db.query(SymbolMapping).all()
            saved_mappings = [
                {
                    "account_id": m.account_id,
                    "holding_symbol": m.holding_symbol,
                    "match_type": m.match_type,
                    "created_at": m.created_at,
                    "old_key": old_keys.get(m.target_id),
                }
                for m in mappings
            ]
            for mapping in mappings:
                db.delete(mapping)
            for target in existing:
                db.delete(target)
            db.flush()

            new_targets = []
            for index, data in enumerate(targets):
                target = TargetAllocation(
                    asset_type=data.asset_type,
                    asset_category=data.asset_category,
                    symbol=data.symbol,
                    alternative_tickers=list(data.alternative_tickers),
                    isin=data.isin,
                    instrument_name=data.instrument_name,
                    target_percentage=data.target_percentage,
                    bucket=data.bucket,
                    sort_order=index,
                )
                db.add(target)
                new_targets.append(target)
            db.flush()

            new_ids = {t.identity_key(): t.id for t in new_targets}
            for target in new_targets:
                self._record_history(db, target, target.target_percentage)

            remapped = removed = 0
            for saved in saved_mappings:
                new_id = new_ids.get(saved["old_key"])
                if new_id is None:
                    removed += 1
                    logger.warning(
                        "Symbol mapping %s -> %s removed: target no longer exists",
                        saved["holding_symbol"], saved["old_key"],
                    )
                    continue
                db.add(
                    SymbolMapping(
                        account_id=saved["account_id"],
                        holding_symbol=saved["holding_symbol"],
                        target_id=new_id,
                        match_type=saved["match_type"],
                        created_at=saved["created_at"],
                    )
                )
                remapped += 1

            db.commit()
        except Exception:
            db.rollback()
            logger.error("Target set replacement failed; previous targets kept", exc_info=True)
            raise

        logger.info(
            "Target set replaced: %d archived, %d inserted, %d mappings remapped, %d removed",
            len(existing), len(new_targets), remapped, removed,
        )
        return {
            "targets": self.list_all(db),
            "mappings_remapped": remapped,
            "mappings_removed": removed,
        }

    def get_history(self, db: Session, limit: int = HISTORY_LIMIT) -> list[TargetHistory]:
        """Most recent history entries across all targets, including deleted ones."""
        return (
            db.query(TargetHistory)
            .order_by(TargetHistory.created_at.desc())
            .limit(limit)
            .all()
        )

    def get_target_history(self, db: Session, target_id: str) -> list[TargetHistory]:
        return (
            db.query(TargetHistory)
            .filter(TargetHistory.target_allocation_id == target_id)
            .order_by(TargetHistory.created_at.desc())
            .all()
        )

    async def list_with_names(
        self,
        db: Session,
        lookup: NameLookupService,
        holding_service: Optional[HoldingService] = None,
    ) -> list[dict]:
        """
        All targets with a display ``name``.

        Names come from the target itself, then from imported holdings with
        the same symbol or ISIN, then from the lookup service (batched and
        best-effort; a failed lookup leaves the name empty).
        """
        holding_service = holding_service or HoldingService()
        targets = self.list_all(db)
        known = holding_service.get_instrument_names(db)

        rows = []
        pending = []
        for target in targets:
            name = target.instrument_name
            if not name and target.symbol:
                name = known.get(target.symbol.upper())
            if not name and target.isin:
                name = known.get(target.isin.upper())
            row = {**TargetResponse.model_validate(target).model_dump(), "name": name}
            rows.append(row)
            if not name and (target.symbol or target.isin):
                pending.append(NameRequest(key=target.id, symbol=target.symbol, isin=target.isin))

        if pending:
            names = await lookup.lookup_names(pending)
            for row in rows:
                if names.get(row["id"]):
                    row["name"] = names[row["id"]]
            logger.info(
                "Target names: %d looked up, %d resolved",
                len(pending), sum(1 for n in names.values() if n),
            )
        return rows
