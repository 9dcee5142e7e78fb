"""SQLAlchemy ORM models."""

from .account import Account
from .holding import Holding
from .symbol_mapping import SymbolMapping
from .target_allocation import TargetAllocation
from .target_history import TargetHistory
from .utils import generate_uuid

__all__ = ["Account", "Holding", "SymbolMapping", "TargetAllocation", "TargetHistory", "generate_uuid"]
