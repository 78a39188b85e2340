"""
Search analytics.

Appends one entry per user-facing search to the store's search log.
Logging must never affect the search itself, so failures are swallowed.
"""

from typing import Optional

from loguru import logger

from ngurra_search.schemas.analytics import SearchLogEntry
from ngurra_search.store.base import RecordStore


class SearchAnalytics:
    """Best-effort search log writer."""

    def __init__(self, store: RecordStore):
        self.store = store

    def log_search(
        self,
        content_type,
        query_text: str,
        result_count: int,
        actor_id: Optional[str] = None,
        degraded: bool = False,
        duration_ms: Optional[int] = None,
    ) -> bool:
        """
        Append a search log entry.

        Args:
            content_type: Content type searched
            query_text: Free text (truncated to 500 characters)
            result_count: Total matches reported to the caller
            actor_id: Identifier of the searching user, if known
            degraded: Whether the result came from the fallback path
            duration_ms: Wall time of the search

        Returns:
            True if the entry was written
        """
        try:
            entry = SearchLogEntry(
                content_type=getattr(content_type, "value", str(content_type)),
                query_text=query_text,
                result_count=max(int(result_count), 0),
                actor_id=actor_id,
                degraded=degraded,
                duration_ms=duration_ms,
            )
            self.store.append_search_log(entry)
        except Exception as e:
            logger.debug(f"Search log write failed (ignored): {type(e).__name__}: {e}")
            return False

        return True
