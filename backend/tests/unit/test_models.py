"""Unit tests for SQLAlchemy models."""

from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError

from models import Account, Holding, SymbolMapping, TargetHistory
from models.utils import generate_uuid
from tests.fixtures import STATEMENT_DATE, create_holdings


def test_account_creation(account):
    """Test Account model creation."""
    assert account.name == "IB Main"
    assert account.broker_account_id == "U1234567"
    assert account.base_currency == "USD"
    assert account.created_at is not None


def test_broker_account_id_unique(db, account):
    """Two accounts cannot share a statement account number."""
    db.add(Account(name="Duplicate", broker_account_id="U1234567"))
    with pytest.raises(IntegrityError):
        db.commit()


def test_holding_defaults(db, account):
    """Test Holding model defaults."""
    holding = Holding(account_id=account.id, symbol="VTI", statement_date=STATEMENT_DATE)
    db.add(holding)
    db.commit()
    db.refresh(holding)

    assert holding.asset_type == "Unknown"
    assert holding.currency == "USD"
    assert holding.quantity == Decimal("0")
    assert holding.account.name == "IB Main"


def test_holding_unique_per_statement_date(db, account):
    """A symbol appears once per account and statement date."""
    create_holdings(db, account, [("VTI", "100")])
    db.add(Holding(account_id=account.id, symbol="VTI", statement_date=STATEMENT_DATE))
    with pytest.raises(IntegrityError):
        db.commit()


def test_target_identity_key(targets):
    """Test TargetAllocation identity key."""
    assert targets[0].identity_key() == ("Stock", "US Stock market", "VTI", "US9229087690", None)
    assert targets[1].identity_key() == ("Stock", "World stock market", None, None, None)


def test_target_alternative_tickers_roundtrip(db, targets):
    """Alternative tickers are stored as a JSON list."""
    db.expire_all()
    assert targets[0].alternative_tickers == ["ITOT"]
    assert targets[2].alternative_tickers == []


def test_symbol_mapping_relationships(symbol_mapping, account):
    """Test SymbolMapping relationships."""
    assert symbol_mapping.target.symbol == "VTI"
    assert symbol_mapping.account.id == account.id
    assert account.symbol_mappings == [symbol_mapping]


def test_symbol_mapping_match_type_checked(db, account, targets):
    """Only exact and same_basket are accepted."""
    db.add(
        SymbolMapping(
            account_id=account.id,
            holding_symbol="VUSA",
            target_id=targets[0].id,
            match_type="fuzzy",
        )
    )
    with pytest.raises(IntegrityError):
        db.commit()


def test_target_history_without_target(db):
    """History rows outlive their target."""
    entry = TargetHistory(
        target_allocation_id=generate_uuid(),
        target_percentage=Decimal("12.5"),
        asset_type="Stock",
        symbol="GONE",
    )
    db.add(entry)
    db.commit()

    assert entry.id is not None
    assert entry.created_at is not None
