"""Ledger module holding per-tab activity records."""

from tabkeeper.ledger.records import TabRecord, TabState
from tabkeeper.ledger.store import ActivityLedger

__all__ = ["ActivityLedger", "TabRecord", "TabState"]
