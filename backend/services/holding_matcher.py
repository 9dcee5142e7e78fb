"""Match holdings to target allocations.

Each holding is resolved with a strict priority: exact ticker (primary or
alternative), then exact ISIN, then the category-level target for its
(asset_type, asset_category). Matched holdings take the target's asset type
and category. Unmatched holdings get ranked target suggestions and an asset
type inferred from symbol/category heuristics.
"""

import logging
from dataclasses import dataclass, field, replace

from services.portfolio_types import HoldingRecord, TargetRecord
from services.target_allocation_model import TargetAllocationModel

logger = logging.getLogger(__name__)

MATCH_EXACT_SYMBOL = "exact_symbol"
MATCH_EXACT_ISIN = "exact_isin"
MATCH_CATEGORY = "category"

MAX_SUGGESTIONS = 5
SCORE_EXACT_SYMBOL = 100
SCORE_PARTIAL_SYMBOL = 50
SCORE_EXACT_ISIN = 100
SCORE_CATEGORY = 30


@dataclass
class MatchedHolding:
    """A holding re-tagged from the target it matched."""

    holding: HoldingRecord
    target_id: str
    match_type: str


@dataclass
class TargetSuggestion:
    target: TargetRecord
    score: int
    reason: str


@dataclass
class UnmatchedHolding:
    holding: HoldingRecord
    suggestions: list[TargetSuggestion] = field(default_factory=list)
    inferred_asset_type: str = "Stock"


@dataclass
class MatchResult:
    matched: list[MatchedHolding] = field(default_factory=list)
    unmatched: list[UnmatchedHolding] = field(default_factory=list)


def _resolve(
    holding: HoldingRecord, model: TargetAllocationModel
) -> tuple[TargetRecord, str] | None:
    target = model.find_by_symbol(holding.symbol)
    if target is not None:
        return target, MATCH_EXACT_SYMBOL
    if holding.isin:
        target = model.find_by_isin(holding.isin)
        if target is not None:
            return target, MATCH_EXACT_ISIN
    target = model.find_by_category(holding.asset_type, holding.asset_category)
    if target is not None:
        return target, MATCH_CATEGORY
    return None


def suggest_targets(
    holding: HoldingRecord, targets: list[TargetRecord], limit: int = MAX_SUGGESTIONS
) -> list[TargetSuggestion]:
    """Score every target against an unmatched holding.

    Symbol equality scores 100 and containment in either direction 50;
    ISIN equality adds 100; a case-insensitive category match adds 30.
    Only positive scores are kept, highest first, ties in target order.
    """
    suggestions: list[TargetSuggestion] = []
    holding_symbol = (holding.symbol or "").upper()
    holding_isin = (holding.isin or "").upper()
    holding_category = (holding.asset_category or "").lower()

    for target in targets:
        score = 0
        reason = ""

        if holding_symbol and target.symbol:
            target_symbol = target.symbol.upper()
            if holding_symbol == target_symbol:
                score += SCORE_EXACT_SYMBOL
                reason = "Exact symbol match"
            elif holding_symbol in target_symbol or target_symbol in holding_symbol:
                score += SCORE_PARTIAL_SYMBOL
                reason = "Partial symbol match"

        if holding_isin and target.isin and holding_isin == target.isin.upper():
            score += SCORE_EXACT_ISIN
            reason = "Exact ISIN match"

        if holding_category and target.asset_category:
            if holding_category == target.asset_category.lower():
                score += SCORE_CATEGORY
                reason = f"{reason}, category match" if reason else "Category match"

        if score > 0:
            suggestions.append(TargetSuggestion(target=target, score=score, reason=reason))

    # sorted() is stable, so equal scores keep target order
    suggestions = sorted(suggestions, key=lambda s: -s.score)
    return suggestions[:limit]


def infer_asset_type(symbol: str, asset_category: str | None = None) -> str:
    """Guess an asset type when no target claims the holding."""
    sym = (symbol or "").upper()
    category = (asset_category or "").lower()

    if "BTC" in sym or "ETH" in sym or sym in ("COIN", "GBTC"):
        return "Crypto"
    if any(s in sym for s in ("BND", "TIP", "AGG")) or "bond" in category:
        return "Bond"
    if any(s in sym for s in ("REIT", "VNQ", "REET")) or "reit" in category or "real estate" in category:
        return "REIT"
    if any(s in sym for s in ("GLD", "SLV", "USAG")) or any(
        c in category for c in ("commodity", "gold", "silver")
    ):
        return "Commodity"
    if "cash" in category or "money market" in category or "SGOV" in sym or "CSH" in sym:
        return "Cash"
    return "Stock"


def match_holdings_to_targets(
    holdings: list[HoldingRecord], targets: list[TargetRecord]
) -> MatchResult:
    """Resolve every holding against the target set.

    Args:
        holdings: Holdings to classify. Inputs are not modified.
        targets: Target set in its stored order.

    Returns:
        MatchResult with re-tagged matched holdings and annotated
        unmatched holdings, each in input order.
    """
    model = TargetAllocationModel(targets)
    result = MatchResult()

    for holding in holdings:
        resolved = _resolve(holding, model)
        if resolved is None:
            result.unmatched.append(
                UnmatchedHolding(
                    holding=holding,
                    suggestions=suggest_targets(holding, targets),
                    inferred_asset_type=infer_asset_type(holding.symbol, holding.asset_category),
                )
            )
            continue

        target, match_type = resolved
        retagged = replace(
            holding,
            asset_type=target.asset_type,
            asset_category=target.asset_category or holding.asset_category,
        )
        result.matched.append(
            MatchedHolding(holding=retagged, target_id=target.id, match_type=match_type)
        )

    logger.info(
        "Matched %d of %d holdings to targets",
        len(result.matched), len(holdings),
    )
    return result
