"""
Database package for ranked pair snapshot persistence.
"""

from .models import Base, PairSnapshotDB
from .async_session import AsyncSnapshotStore, get_snapshot_store

__all__ = [
    "Base",
    "PairSnapshotDB",
    "AsyncSnapshotStore",
    "get_snapshot_store",
]
