"""Indexed view over a target set.

Targets are indexed three ways: by ticker (primary and alternatives), by
ISIN, and by (asset_type, asset_category) for category-level targets. Keys
are trimmed and upper-cased. When several targets share a key, the one with
the lowest input index wins; the index is stored alongside each entry so
the rule does not depend on iteration order.
"""

from dataclasses import dataclass

from services.portfolio_types import TargetRecord

CategoryKey = tuple[str, str]


def normalize_key(value: str | None) -> str:
    """Trim and upper-case a lookup key; None becomes ""."""
    return (value or "").strip().upper()


def category_key(asset_type: str | None, asset_category: str | None) -> CategoryKey:
    return normalize_key(asset_type), normalize_key(asset_category)


@dataclass(frozen=True)
class _IndexedTarget:
    index: int
    target: TargetRecord


class TargetAllocationModel:
    """Lookup structures over an ordered list of targets."""

    def __init__(self, targets: list[TargetRecord]):
        self._by_symbol: dict[str, _IndexedTarget] = {}
        self._by_isin: dict[str, _IndexedTarget] = {}
        self._by_category: dict[CategoryKey, _IndexedTarget] = {}

        for index, target in enumerate(targets):
            entry = _IndexedTarget(index, target)
            for ticker in target.tickers:
                self._register(self._by_symbol, normalize_key(ticker), entry)
            if target.isin:
                self._register(self._by_isin, normalize_key(target.isin), entry)
            if target.is_category_target:
                self._register(
                    self._by_category,
                    category_key(target.asset_type, target.asset_category),
                    entry,
                )

    @staticmethod
    def _register(index: dict, key, entry: _IndexedTarget) -> None:
        if not key:
            return
        existing = index.get(key)
        if existing is None or entry.index < existing.index:
            index[key] = entry

    def find_by_symbol(self, symbol: str | None) -> TargetRecord | None:
        entry = self._by_symbol.get(normalize_key(symbol))
        return entry.target if entry else None

    def find_by_isin(self, isin: str | None) -> TargetRecord | None:
        entry = self._by_isin.get(normalize_key(isin))
        return entry.target if entry else None

    def find_by_category(
        self, asset_type: str | None, asset_category: str | None
    ) -> TargetRecord | None:
        entry = self._by_category.get(category_key(asset_type, asset_category))
        return entry.target if entry else None
