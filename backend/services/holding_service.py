"""Service for statement holdings persistence."""

import logging
from datetime import date

from sqlalchemy import func
from sqlalchemy.orm import Session

from models import Holding

logger = logging.getLogger(__name__)


class HoldingService:
    """Reads and replaces the holdings of imported statements."""

    def get_latest_holdings(self, db: Session, account_id: str | None = None) -> list[Holding]:
        """Holdings of each account's most recent statement date.

        Args:
            db: Database session
            account_id: Restrict to one account (optional)

        Returns:
            Holdings ordered by value (USD), largest first
        """
        latest = db.query(
            Holding.account_id.label("account_id"),
            func.max(Holding.statement_date).label("max_date"),
        )
        if account_id:
            latest = latest.filter(Holding.account_id == account_id)
        latest = latest.group_by(Holding.account_id).subquery()

        return (
            db.query(Holding)
            .join(
                latest,
                (Holding.account_id == latest.c.account_id)
                & (Holding.statement_date == latest.c.max_date),
            )
            .order_by(Holding.value_usd.desc(), Holding.symbol)
            .all()
        )

    def get_statement_holdings(
        self, db: Session, account_id: str, statement_date: date
    ) -> list[Holding]:
        return (
            db.query(Holding)
            .filter(Holding.account_id == account_id, Holding.statement_date == statement_date)
            .order_by(Holding.value_usd.desc(), Holding.symbol)
            .all()
        )

    def replace_statement_holdings(
        self,
        db: Session,
        account_id: str,
        statement_date: date,
        holdings: list[Holding],
    ) -> list[Holding]:
        """Replace every holding of an account on a statement date.

        The delete and the inserts are committed together; on any error the
        session is rolled back and the previous holdings remain.

        Args:
            db: Database session
            account_id: Account the statement belongs to
            statement_date: Statement date being replaced
            holdings: New, unsaved Holding rows (account and date are set here)

        Returns:
            The stored holdings, largest value first
        """
        try:
            deleted = (
                db.query(Holding)
                .filter(Holding.account_id == account_id, Holding.statement_date == statement_date)
                .delete(synchronize_session=False)
            )
            # Flush the delete first so re-inserted symbols don't hit the unique constraint
            db.flush()
            for holding in holdings:
                holding.account_id = account_id
                holding.statement_date = statement_date
                db.add(holding)
            db.commit()
        except Exception:
            db.rollback()
            logger.error(
                "Failed to replace holdings for account %s on %s", account_id, statement_date,
                exc_info=True,
            )
            raise

        logger.info(
            "Replaced holdings for account %s on %s: %d removed, %d stored",
            account_id, statement_date, deleted, len(holdings),
        )
        return self.get_statement_holdings(db, account_id, statement_date)

    def get_instrument_names(self, db: Session) -> dict[str, str]:
        """Symbol/ISIN (upper-cased) -> instrument name; most recent statement wins."""
        rows = (
            db.query(Holding.symbol, Holding.isin, Holding.instrument_name)
            .filter(Holding.instrument_name.isnot(None), Holding.instrument_name != "")
            .order_by(Holding.statement_date.desc(), Holding.created_at.desc())
            .all()
        )
        names: dict[str, str] = {}
        for symbol, isin, name in rows:
            if symbol:
                names.setdefault(symbol.upper(), name)
            if isin:
                names.setdefault(isin.upper(), name)
        return names
