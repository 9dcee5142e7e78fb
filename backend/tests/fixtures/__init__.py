"""Test fixtures and sample data."""
import pytest
from datetime import date
from decimal import Decimal

from models import Account, Holding, SymbolMapping, TargetAllocation
from sqlalchemy.orm import Session

STATEMENT_DATE = date(2025, 10, 31)


def create_holdings(
    db: Session,
    account: Account,
    holdings_data: list[tuple],
    statement_date: date = STATEMENT_DATE,
) -> list[Holding]:
    """Create statement holdings for an account.

    Args:
        db: Database session
        account: Account the holdings belong to
        holdings_data: (symbol, value_usd) or (symbol, value_usd, asset_type,
            asset_category) tuples; quantity is 10 and price is value / 10
        statement_date: Statement date for every row

    Returns:
        The created holdings
    """
    created = []
    for row in holdings_data:
        symbol, value = row[0], Decimal(str(row[1]))
        asset_type = row[2] if len(row) > 2 else "Stock"
        asset_category = row[3] if len(row) > 3 else None
        holding = Holding(
            account_id=account.id,
            symbol=symbol,
            asset_type=asset_type,
            asset_category=asset_category,
            quantity=Decimal("10"),
            price=value / 10,
            currency="USD",
            value_usd=value,
            value_base=value,
            statement_date=statement_date,
        )
        db.add(holding)
        created.append(holding)
    db.commit()
    return created


def create_target(db: Session, **fields) -> TargetAllocation:
    """Create a target allocation (helper, not a fixture)."""
    fields.setdefault("asset_type", "Stock")
    fields.setdefault("target_percentage", Decimal("10"))
    target = TargetAllocation(**fields)
    db.add(target)
    db.commit()
    db.refresh(target)
    return target


@pytest.fixture
def account(db: Session) -> Account:
    """Create a test account."""
    acc = Account(
        name="IB Main",
        broker_account_id="U1234567",
        base_currency="USD",
    )
    db.add(acc)
    db.commit()
    db.refresh(acc)
    return acc


@pytest.fixture
def eur_account(db: Session) -> Account:
    """Create a test account with a EUR base currency."""
    acc = Account(
        name="IB Europe",
        broker_account_id="U7654321",
        base_currency="EUR",
    )
    db.add(acc)
    db.commit()
    db.refresh(acc)
    return acc


@pytest.fixture
def targets(db: Session) -> list[TargetAllocation]:
    """A small target set: two ticker targets, one category target and a bond."""
    rows = [
        TargetAllocation(
            asset_type="Stock",
            asset_category="US Stock market",
            symbol="VTI",
            alternative_tickers=["ITOT"],
            isin="US9229087690",
            instrument_name="Vanguard Total Stock Market ETF",
            target_percentage=Decimal("38"),
            sort_order=0,
        ),
        TargetAllocation(
            asset_type="Stock",
            asset_category="World stock market",
            target_percentage=Decimal("23"),
            sort_order=1,
        ),
        TargetAllocation(
            asset_type="Bond",
            asset_category="Long Term Government Bonds",
            symbol="TLT",
            target_percentage=Decimal("30"),
            sort_order=2,
        ),
        TargetAllocation(
            asset_type="Commodity",
            asset_category="Gold",
            symbol="GLD",
            target_percentage=Decimal("9"),
            sort_order=3,
        ),
    ]
    db.add_all(rows)
    db.commit()
    for row in rows:
        db.refresh(row)
    return rows


@pytest.fixture
def holdings(db: Session, account: Account, targets) -> list[Holding]:
    """Holdings on the latest statement of ``account`` (total 10,000 USD)."""
    return create_holdings(
        db,
        account,
        [
            ("VTI", "5000", "Stock", "US Stock market"),
            ("VXUS", "2000", "Stock", "World stock market"),
            ("TLT", "2500", "Bond", "Long Term Government Bonds"),
            ("XYZ", "500", "Stock", None),
        ],
    )


@pytest.fixture
def symbol_mapping(db: Session, account: Account, targets) -> SymbolMapping:
    """Map the London-listed VUSA onto the VTI target."""
    mapping = SymbolMapping(
        account_id=account.id,
        holding_symbol="VUSA",
        target_id=targets[0].id,
        match_type="same_basket",
    )
    db.add(mapping)
    db.commit()
    db.refresh(mapping)
    return mapping
