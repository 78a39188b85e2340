"""Record store backends"""

from ngurra_search.store.base import RecordStore, StoreQuery
from ngurra_search.store.memory import InMemoryRecordStore
from ngurra_search.store.postgres import PostgresRecordStore

__all__ = ["RecordStore", "StoreQuery", "InMemoryRecordStore", "PostgresRecordStore"]
