"""Economy ledger: balances, append-only transactions, entitlements and levels."""

from .economy_domain import EconomyService
from .economy_models import TransactionMeta
from .levels import LIVE_LEVEL_THRESHOLDS, WEALTH_LEVEL_THRESHOLDS, compute_level

__all__ = [
    "LIVE_LEVEL_THRESHOLDS",
    "WEALTH_LEVEL_THRESHOLDS",
    "EconomyService",
    "TransactionMeta",
    "compute_level",
]
