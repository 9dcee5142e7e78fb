"""Rebalancing engine.

Compares current allocation per symbol with its target percentage and
produces BUY/SELL suggestions for positions outside the tolerance band.

Tolerance is a fraction of the portfolio: 0.01 means a deviation of up to
one percentage point (inclusive) counts as balanced.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal

from sqlalchemy.orm import Session

from models import SymbolMapping, TargetAllocation
from services.holding_service import HoldingService
from services.portfolio_types import HoldingRecord, TargetRecord
from services.target_allocation_model import TargetAllocationModel, normalize_key
from utils.ticker import is_cash_symbol

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")
ZERO = Decimal("0")

STATUS_NEEDS_BUY = "needs_buy"
STATUS_NEEDS_SELL = "needs_sell"
STATUS_BALANCED = "balanced"

ACTION_BUY = "BUY"
ACTION_SELL = "SELL"

_STATUS_ORDER = {STATUS_NEEDS_BUY: 0, STATUS_NEEDS_SELL: 1, STATUS_BALANCED: 2}


@dataclass
class RebalancingAction:
    """A suggested trade. ``deviation`` is always the positive gap size."""

    symbol: str
    action: str
    quantity: Decimal
    amount: Decimal
    current_allocation: Decimal
    target_allocation: Decimal
    deviation: Decimal
    status: str
    asset_type: str | None = None


@dataclass
class AssetStatus:
    """Allocation status of one effective symbol (signed deviation)."""

    symbol: str
    current_allocation: Decimal
    target_allocation: Decimal
    deviation: Decimal
    status: str
    current_value: Decimal
    target_value: Decimal
    adjustment_needed: Decimal
    has_target: bool = True
    mapped_target_symbol: str | None = None
    asset_type: str | None = None


@dataclass
class RebalancingPlan:
    actions: list[RebalancingAction] = field(default_factory=list)
    all_assets: list[AssetStatus] = field(default_factory=list)
    total_value: Decimal = ZERO
    total_buy: Decimal = ZERO
    total_sell: Decimal = ZERO
    net_cash_needed: Decimal = ZERO
    tolerance: Decimal = Decimal("0.01")
    message: str | None = None


@dataclass
class _Position:
    """Holdings aggregated under one effective symbol."""

    holding: HoldingRecord  # first holding seen; supplies symbol, price, type
    allocation: Decimal
    value: Decimal
    mapped_symbol: str | None


def _aggregate_positions(
    holdings: list[HoldingRecord],
    total_value: Decimal,
    symbol_mappings: dict[str, str],
) -> dict[str, _Position]:
    positions: dict[str, _Position] = {}
    for holding in holdings:
        if is_cash_symbol(holding.symbol):
            continue
        holding_symbol = normalize_key(holding.symbol)
        mapped = symbol_mappings.get(holding_symbol)
        key = mapped or holding_symbol
        allocation = holding.value_usd / total_value * HUNDRED

        position = positions.get(key)
        if position is None:
            positions[key] = _Position(holding, allocation, holding.value_usd, mapped)
        else:
            position.allocation += allocation
            position.value += holding.value_usd
    return positions


def _resolve_target_percentage(
    key: str, position: _Position, model: TargetAllocationModel
) -> Decimal | None:
    """Effective symbol, then the raw holding symbol, then the category target."""
    target = model.find_by_symbol(key) or model.find_by_symbol(position.holding.symbol)
    if target is None:
        target = model.find_by_category(
            position.holding.asset_type, position.holding.asset_category
        )
    return target.target_percentage if target is not None else None


def _classify(
    has_target: bool, current_pct: Decimal, target_pct: Decimal, band: Decimal
) -> str:
    deviation = current_pct - target_pct
    if not has_target and current_pct > 0:
        return STATUS_NEEDS_SELL
    if target_pct == 0 and current_pct == 0:
        return STATUS_BALANCED
    if abs(deviation) <= band:
        return STATUS_BALANCED
    if deviation < 0:
        return STATUS_NEEDS_BUY
    return STATUS_NEEDS_SELL


def _units(amount: Decimal, price: Decimal) -> Decimal:
    return amount / price if price else ZERO


def calculate_rebalancing(
    holdings: list[HoldingRecord],
    targets: list[TargetRecord],
    total_value: Decimal,
    tolerance: Decimal = Decimal("0.01"),
    symbol_mappings: dict[str, str] | None = None,
) -> RebalancingPlan:
    """Build a rebalancing plan.

    Args:
        holdings: Current holdings with ``value_usd``. ``CASH`` is ignored.
        targets: Full target set in stored order.
        total_value: Portfolio value the allocations are measured against.
        tolerance: Balanced band as a fraction (0.01 = 1 percentage point).
        symbol_mappings: Holding symbol -> target symbol overrides.

    Returns:
        RebalancingPlan. A zero or negative total value yields an empty plan.
    """
    total_value = Decimal(str(total_value))
    tolerance = Decimal(str(tolerance))
    if total_value <= 0:
        logger.info("Rebalancing skipped: portfolio total value is %s", total_value)
        return RebalancingPlan(total_value=total_value, tolerance=tolerance)

    band = tolerance * HUNDRED
    mappings = {
        normalize_key(k): normalize_key(v) for k, v in (symbol_mappings or {}).items() if v
    }
    model = TargetAllocationModel(targets)
    positions = _aggregate_positions(holdings, total_value, mappings)

    plan = RebalancingPlan(total_value=total_value, tolerance=tolerance)
    for key, position in positions.items():
        holding = position.holding
        resolved = _resolve_target_percentage(key, position, model)
        has_target = resolved is not None
        target_pct = resolved if has_target else ZERO
        current_pct = position.allocation
        deviation = current_pct - target_pct
        current_value = position.value
        target_value = target_pct / HUNDRED * total_value
        adjustment = target_value - current_value
        status = _classify(has_target, current_pct, target_pct, band)

        plan.all_assets.append(
            AssetStatus(
                symbol=holding.symbol,
                current_allocation=current_pct,
                target_allocation=target_pct,
                deviation=deviation,
                status=status,
                current_value=current_value,
                target_value=target_value,
                adjustment_needed=adjustment,
                has_target=has_target,
                mapped_target_symbol=position.mapped_symbol,
                asset_type=holding.asset_type,
            )
        )

        if status == STATUS_BALANCED:
            continue

        if not has_target:
            action, amount, gap = ACTION_SELL, current_value, current_pct
        elif adjustment > 0:
            action, amount, gap = ACTION_BUY, adjustment, -deviation
        else:
            action, amount, gap = ACTION_SELL, -adjustment, deviation

        if action == ACTION_BUY:
            plan.total_buy += amount
        else:
            plan.total_sell += amount
        plan.actions.append(
            RebalancingAction(
                symbol=holding.symbol,
                action=action,
                quantity=_units(amount, holding.price),
                amount=amount,
                current_allocation=current_pct,
                target_allocation=target_pct,
                deviation=gap,
                status=STATUS_NEEDS_BUY if action == ACTION_BUY else STATUS_NEEDS_SELL,
                asset_type=holding.asset_type,
            )
        )

    plan.actions.sort(key=lambda a: -abs(a.deviation))
    plan.all_assets.sort(key=lambda a: (_STATUS_ORDER[a.status], -abs(a.deviation)))
    plan.net_cash_needed = plan.total_buy - plan.total_sell

    logger.info(
        "Rebalancing plan: %d positions, %d actions, buy=%s sell=%s",
        len(plan.all_assets), len(plan.actions), plan.total_buy, plan.total_sell,
    )
    return plan


class RebalancingService:
    """Builds rebalancing plans from the stored holdings, targets and mappings."""

    def __init__(self, holding_service: HoldingService | None = None):
        self._holding_service = holding_service or HoldingService()

    def get_symbol_mappings(self, db: Session, account_id: str | None = None) -> dict[str, str]:
        """Holding symbol -> target symbol overrides.

        Mappings to category-level targets (no symbol) do not rename the
        holding and are left out. Without an account filter the mappings of
        every account are merged; when two accounts map the same symbol
        differently the newest mapping wins and the conflict is logged.
        """
        query = db.query(SymbolMapping.holding_symbol, TargetAllocation.symbol).join(
            TargetAllocation, SymbolMapping.target_id == TargetAllocation.id
        )
        if account_id:
            query = query.filter(SymbolMapping.account_id == account_id)
        query = query.order_by(SymbolMapping.created_at)

        mappings: dict[str, str] = {}
        for holding_symbol, target_symbol in query.all():
            if not target_symbol:
                continue
            key = normalize_key(holding_symbol)
            mapped = normalize_key(target_symbol)
            previous = mappings.get(key)
            if previous is not None and previous != mapped:
                logger.warning(
                    "Conflicting symbol mappings for %s: %s and %s; using %s",
                    key, previous, mapped, mapped,
                )
            mappings[key] = mapped
        return mappings

    def get_plan(
        self,
        db: Session,
        tolerance: Decimal = Decimal("0.01"),
        account_id: str | None = None,
    ) -> RebalancingPlan:
        """Plan against the latest statement of each account (or one account).

        The total value includes the CASH holding so that cash dilutes the
        invested allocations.
        """
        targets = [
            TargetRecord.from_model(t)
            for t in db.query(TargetAllocation)
            .order_by(TargetAllocation.sort_order, TargetAllocation.created_at)
            .all()
        ]
        if not targets:
            return RebalancingPlan(tolerance=tolerance, message="No target allocations configured")

        holdings = [
            HoldingRecord.from_model(h)
            for h in self._holding_service.get_latest_holdings(db, account_id)
        ]
        total_value = sum((h.value_usd for h in holdings), ZERO)
        mappings = self.get_symbol_mappings(db, account_id)
        return calculate_rebalancing(holdings, targets, total_value, tolerance, mappings)
