"""
In-memory record store.

Backs tests and local development; behaves like the PostgreSQL store for
the reduced query contract (case-insensitive substring text match,
equality / membership predicates, recency ordering).
"""

import threading
from copy import deepcopy
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from loguru import logger

from ngurra_search.content_types import ContentType
from ngurra_search.schemas.analytics import SearchLogEntry
from ngurra_search.store.base import RecordStore, StoreQuery


class InMemoryRecordStore(RecordStore):
    """Dictionary-backed store keyed by content type and record id."""

    def __init__(self, records: Optional[Dict[ContentType, Iterable[Dict[str, Any]]]] = None):
        self._records: Dict[ContentType, Dict[str, Dict[str, Any]]] = {
            content_type: {} for content_type in ContentType
        }
        self.search_logs: List[SearchLogEntry] = []
        self._lock = threading.Lock()

        for content_type, rows in (records or {}).items():
            self.add_records(content_type, rows)

    def add_records(self, content_type, rows: Iterable[Dict[str, Any]]) -> None:
        with self._lock:
            table = self._records[ContentType(content_type)]
            for row in rows:
                table[str(row["id"])] = dict(row)

    def add_record(self, content_type, row: Dict[str, Any]) -> None:
        self.add_records(content_type, [row])

    def remove_record(self, content_type, record_id: Any) -> None:
        with self._lock:
            self._records[ContentType(content_type)].pop(str(record_id), None)

    def fetch_records(self, content_type) -> Iterator[Dict[str, Any]]:
        with self._lock:
            rows = deepcopy(list(self._records[ContentType(content_type)].values()))
        return iter(rows)

    def fetch_record(self, content_type, record_id: Any) -> Optional[Dict[str, Any]]:
        with self._lock:
            row = self._records[ContentType(content_type)].get(str(record_id))
        return deepcopy(row) if row is not None else None

    def find(self, query: StoreQuery) -> Tuple[List[Dict[str, Any]], int]:
        needle = query.text.casefold()

        def matches(row: Dict[str, Any]) -> bool:
            if needle and not any(
                needle in str(row.get(column) or "").casefold()
                for column in query.text_columns
            ):
                return False
            for column, value in query.equals.items():
                if row.get(column) != value:
                    return False
            for column, values in query.any_of.items():
                if row.get(column) not in values:
                    return False
            return True

        with self._lock:
            hits = [deepcopy(row) for row in self._records[query.content_type].values() if matches(row)]

        # None sorts last regardless of direction
        present = [row for row in hits if row.get(query.order_by) is not None]
        missing = [row for row in hits if row.get(query.order_by) is None]
        present.sort(key=lambda row: row[query.order_by], reverse=query.descending)
        ordered = present + missing

        page = ordered[query.offset:query.offset + query.limit]
        logger.debug(f"In-memory find {query.content_type.value}: {len(page)}/{len(ordered)} rows")
        return page, len(ordered)

    def append_search_log(self, entry: SearchLogEntry) -> None:
        with self._lock:
            self.search_logs.append(entry)
