"""
Read-only access to the operational record store.

The predictive core and the anomaly engine only ever ask for the full
collection of one entity; all filtering happens on the caller's side.
"""

from .database import PostgresRecordStore
from .models import ENTITY_TABLES, RecordStoreConfig
from .store import InMemoryRecordStore, RecordStore

__all__ = [
    "RecordStore",
    "InMemoryRecordStore",
    "PostgresRecordStore",
    "RecordStoreConfig",
    "ENTITY_TABLES",
]
