"""API route handlers."""
from . import holdings, rebalancing, statements, symbol_mappings, targets

__all__ = ["holdings", "rebalancing", "statements", "symbol_mappings", "targets"]
