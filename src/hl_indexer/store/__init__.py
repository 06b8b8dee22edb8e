"""
In-memory indexed record store.

Primary tables per entity type, secondary indexes, recent views, the
snapshot document, and retention.
"""

from .indexed_store import IndexedStore, StoreStats
from .recent_view import RecentView
from .retention import RetentionManager
from .snapshot import NextIds, StoreSnapshot
from .table import EntityTable

__all__ = [
    "EntityTable",
    "IndexedStore",
    "NextIds",
    "RecentView",
    "RetentionManager",
    "StoreSnapshot",
    "StoreStats",
]
