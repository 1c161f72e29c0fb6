"""Persistence bridge and session coordination."""

from goldengoose.sync.bridge import PersistenceBridge, SyncStatus
from goldengoose.sync.session import SessionCoordinator

__all__ = [
    "PersistenceBridge",
    "SessionCoordinator",
    "SyncStatus",
]
