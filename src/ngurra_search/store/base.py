"""
Record store interface.

The store is the authoritative source of truth. This layer only reads
from it (projection sources and degraded-mode queries) and appends to the
search log.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple

from ngurra_search.content_types import ContentType
from ngurra_search.schemas.analytics import SearchLogEntry


@dataclass
class StoreQuery:
    """Reduced query the store can answer without the search engine."""

    content_type: ContentType
    text: str = ""
    text_columns: Tuple[str, ...] = ()
    equals: Dict[str, Any] = field(default_factory=dict)
    any_of: Dict[str, List[Any]] = field(default_factory=dict)
    order_by: str = "created_at"
    descending: bool = True
    offset: int = 0
    limit: int = 10


class RecordStore(ABC):
    """Read API over the authoritative records, one shape per content type."""

    @abstractmethod
    def fetch_records(self, content_type: ContentType) -> Iterator[Dict[str, Any]]:
        """
        Every record of a content type, with joined attributes needed for
        projection (organization names, skill names, counts).
        """
        pass

    @abstractmethod
    def fetch_record(self, content_type: ContentType, record_id: Any) -> Optional[Dict[str, Any]]:
        """One fully joined record, or None if it does not exist"""
        pass

    @abstractmethod
    def find(self, query: StoreQuery) -> Tuple[List[Dict[str, Any]], int]:
        """
        Answer a reduced query.

        Returns:
            Tuple of (page of rows, total matching rows)
        """
        pass

    @abstractmethod
    def append_search_log(self, entry: SearchLogEntry) -> None:
        """Append one search log entry"""
        pass

    def close(self) -> None:
        """Release resources held by the store"""
        pass
