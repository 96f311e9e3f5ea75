"""
gsuite_dirsync.sync - Reconciliation

Record models and the engine that plans and applies sync operations.
"""

from gsuite_dirsync.sync.contact import DirectoryUser, SharedContact, index_by_key
from gsuite_dirsync.sync.engine import (
    ContactDeletion,
    ContactUpdate,
    SyncEngine,
    SyncPlan,
    SyncResult,
    SyncStats,
)

__all__ = [
    "DirectoryUser",
    "SharedContact",
    "index_by_key",
    "ContactDeletion",
    "ContactUpdate",
    "SyncEngine",
    "SyncPlan",
    "SyncResult",
    "SyncStats",
]
