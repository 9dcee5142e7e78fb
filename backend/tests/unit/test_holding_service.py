"""Tests for HoldingService."""

from datetime import date
from decimal import Decimal
from unittest.mock import patch

import pytest

from models import Holding
from services.holding_service import HoldingService
from tests.fixtures import STATEMENT_DATE, create_holdings


def new_holding(symbol, value, **kwargs) -> Holding:
    return Holding(
        symbol=symbol,
        quantity=Decimal("1"),
        price=Decimal(value),
        value_usd=Decimal(value),
        value_base=Decimal(value),
        **kwargs,
    )


class TestGetLatestHoldings:
    """Tests for latest-statement selection."""

    def test_only_latest_statement_per_account(self, db, account, eur_account):
        create_holdings(db, account, [("OLD", "100")], statement_date=date(2025, 9, 30))
        create_holdings(db, account, [("VTI", "300"), ("TLT", "700")])
        create_holdings(db, eur_account, [("IWDA", "500")], statement_date=date(2025, 8, 31))

        holdings = HoldingService().get_latest_holdings(db)

        assert [h.symbol for h in holdings] == ["TLT", "IWDA", "VTI"]

    def test_filtered_by_account(self, db, account, eur_account):
        create_holdings(db, account, [("VTI", "300")])
        create_holdings(db, eur_account, [("IWDA", "500")])

        holdings = HoldingService().get_latest_holdings(db, account_id=eur_account.id)

        assert [h.symbol for h in holdings] == ["IWDA"]

    def test_empty(self, db, account):
        assert HoldingService().get_latest_holdings(db) == []


class TestReplaceStatementHoldings:
    """Tests for replacing one statement's holdings."""

    def test_replaces_same_date_only(self, db, account):
        create_holdings(db, account, [("VTI", "300"), ("TLT", "700")])
        create_holdings(db, account, [("VTI", "100")], statement_date=date(2025, 9, 30))

        stored = HoldingService().replace_statement_holdings(
            db, account.id, STATEMENT_DATE, [new_holding("VTI", "400"), new_holding("GLD", "50")]
        )

        assert [h.symbol for h in stored] == ["VTI", "GLD"]
        assert all(h.account_id == account.id for h in stored)
        assert db.query(Holding).filter_by(statement_date=date(2025, 9, 30)).count() == 1

    def test_failure_keeps_previous_holdings(self, db, account):
        create_holdings(db, account, [("VTI", "300")])
        service = HoldingService()

        with patch.object(db, "commit", side_effect=RuntimeError("disk full")):
            with pytest.raises(RuntimeError):
                service.replace_statement_holdings(
                    db, account.id, STATEMENT_DATE, [new_holding("GLD", "50")]
                )

        assert [h.symbol for h in service.get_latest_holdings(db)] == ["VTI"]


class TestInstrumentNames:
    """Tests for the symbol/ISIN -> name index."""

    def test_latest_statement_wins(self, db, account):
        db.add_all(
            [
                new_holding(
                    "IWDA", "1", account_id=account.id, isin="IE00B4L5Y983",
                    instrument_name="Old name", statement_date=date(2025, 9, 30),
                ),
                new_holding(
                    "IWDA", "1", account_id=account.id, isin="IE00B4L5Y983",
                    instrument_name="iShares Core MSCI World", statement_date=STATEMENT_DATE,
                ),
                new_holding("XYZ", "1", account_id=account.id, statement_date=STATEMENT_DATE),
            ]
        )
        db.commit()

        names = HoldingService().get_instrument_names(db)

        assert names == {
            "IWDA": "iShares Core MSCI World",
            "IE00B4L5Y983": "iShares Core MSCI World",
        }
