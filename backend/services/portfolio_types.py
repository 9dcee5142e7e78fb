"""In-memory records consumed by the matching and rebalancing engine.

The engine works on these plain dataclasses rather than ORM rows so it
stays pure: services convert models with ``from_model`` before calling it.
"""

from dataclasses import dataclass, field
from decimal import Decimal

UNKNOWN_ASSET_TYPE = "Unknown"


@dataclass
class HoldingRecord:
    """A valued holding (one symbol in one account on one date)."""

    symbol: str
    value_usd: Decimal
    quantity: Decimal = Decimal("0")
    price: Decimal = Decimal("0")
    asset_type: str = UNKNOWN_ASSET_TYPE
    asset_category: str | None = None
    isin: str | None = None
    currency: str = "USD"
    instrument_name: str | None = None
    id: str | None = None

    @classmethod
    def from_model(cls, holding) -> "HoldingRecord":
        return cls(
            id=holding.id,
            symbol=holding.symbol,
            value_usd=holding.value_usd,
            quantity=holding.quantity,
            price=holding.price,
            asset_type=holding.asset_type,
            asset_category=holding.asset_category,
            isin=holding.isin,
            currency=holding.currency,
            instrument_name=holding.instrument_name,
        )


@dataclass
class TargetRecord:
    """A target allocation.

    A target with neither a symbol nor alternative tickers is a
    category-level target matched by (asset_type, asset_category).
    """

    id: str
    asset_type: str
    target_percentage: Decimal
    asset_category: str | None = None
    symbol: str | None = None
    alternative_tickers: list[str] = field(default_factory=list)
    isin: str | None = None
    bucket: str | None = None

    @property
    def is_category_target(self) -> bool:
        return not self.symbol and not self.alternative_tickers

    @property
    def tickers(self) -> list[str]:
        """Primary ticker (if any) followed by the alternatives."""
        tickers = [self.symbol] if self.symbol else []
        tickers.extend(t for t in self.alternative_tickers if t)
        return tickers

    @classmethod
    def from_model(cls, target) -> "TargetRecord":
        return cls(
            id=target.id,
            asset_type=target.asset_type,
            target_percentage=target.target_percentage,
            asset_category=target.asset_category,
            symbol=target.symbol,
            alternative_tickers=list(target.alternative_tickers or []),
            isin=target.isin,
            bucket=target.bucket,
        )
