"""
Ledger sync: polling schedulers, the shared poller hub and resource fetchers.
"""

from backend_charity.sync.hub import Subscription, SyncHub
from backend_charity.sync.resources import LedgerViews, ResourceSpec
from backend_charity.sync.scheduler import Snapshot, SyncScheduler, SyncState

__all__ = [
    "LedgerViews",
    "ResourceSpec",
    "Snapshot",
    "Subscription",
    "SyncHub",
    "SyncScheduler",
    "SyncState",
]
