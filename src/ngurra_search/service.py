"""
Search service facade.

Single entry point for the route layer and content-management flows.
Wires one connection handle, one catalog and one record store into every
component and exposes typed results only.

Usage:
    service = SearchService.from_settings()
    service.start()
    result = service.search("jobs", {"free_text": "nurse", "filters": {"state": ["NT"]}})
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from loguru import logger

from ngurra_search.analytics import SearchAnalytics
from ngurra_search.catalog import IndexCatalog
from ngurra_search.config import Settings, settings as default_settings
from ngurra_search.engine import (
    ConnectionManager,
    DocumentWriter,
    IndexLifecycleManager,
    SearchExecutor,
    SuggestionService,
)
from ngurra_search.exceptions import StoreError, UnknownContentTypeError
from ngurra_search.fallback import FallbackSearchEngine
from ngurra_search.schemas.documents import IndexableDocument
from ngurra_search.schemas.outcomes import BulkWriteOutcome, HealthStatus, WriteResult
from ngurra_search.schemas.search import SearchHit, SearchRequest, SearchResult
from ngurra_search.store import PostgresRecordStore, RecordStore
from ngurra_search.sync import SyncJob


class SearchService:
    """Facade over connection, lifecycle, writes, queries and sync."""

    def __init__(
        self,
        store: RecordStore,
        connection: Optional[ConnectionManager] = None,
        catalog: Optional[IndexCatalog] = None,
        settings: Optional[Settings] = None,
    ):
        """
        Initialize service.

        Args:
            store: Authoritative record store
            connection: Engine connection handle (built from settings if omitted)
            catalog: Index catalog (built from settings if omitted)
            settings: Settings shared by every component
        """
        self.settings = settings or default_settings
        self.store = store
        self.connection = connection or ConnectionManager(self.settings)
        self.catalog = catalog or IndexCatalog(self.settings)

        self.lifecycle = IndexLifecycleManager(self.connection, self.catalog)
        self.writer = DocumentWriter(self.connection, self.catalog, self.settings)
        self.analytics = SearchAnalytics(self.store)
        self.fallback = FallbackSearchEngine(self.store, self.catalog)
        self.executor = SearchExecutor(
            self.connection,
            self.catalog,
            self.fallback,
            analytics=self.analytics,
            settings=self.settings,
        )
        self.suggestions = SuggestionService(self.connection, self.catalog, self.settings)
        self.sync = SyncJob(self.store, self.catalog, self.writer, self.settings)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "SearchService":
        """Service backed by PostgreSQL and a settings-built engine client"""
        settings = settings or default_settings
        return cls(PostgresRecordStore(settings), settings=settings)

    def start(self) -> bool:
        """
        Connect to the engine and create missing indices.

        Returns:
            True if the engine is up and every index exists
        """
        self.connection.connect()
        return self.lifecycle.ensure_indices()

    def ensure_indices(self) -> bool:
        return self.lifecycle.ensure_indices()

    def search(
        self,
        content_type,
        request: Optional[Union[SearchRequest, Mapping[str, Any]]] = None,
    ) -> SearchResult:
        """
        Search one content type.

        Args:
            content_type: Content type key
            request: SearchRequest or a mapping of its fields

        Returns:
            SearchResult (degraded when served from the store)
        """
        if request is None or isinstance(request, Mapping):
            fields = {name: value for name, value in (request or {}).items() if value is not None}
            fields.setdefault("limit", self.settings.default_page_size)
            request = SearchRequest(**fields)
        return self.executor.search(content_type, request)

    def index_document(self, content_type, document_id, document: Mapping[str, Any]) -> WriteResult:
        return self.writer.index_document(content_type, document_id, document)

    def bulk_index(
        self,
        content_type,
        documents: Iterable[Union[IndexableDocument, Mapping[str, Any]]],
    ) -> BulkWriteOutcome:
        return self.writer.bulk_index(content_type, documents)

    def delete_document(self, content_type, document_id) -> WriteResult:
        return self.writer.delete_document(content_type, document_id)

    def resync(self, content_type) -> BulkWriteOutcome:
        """
        Resync one content type from the store.

        Unknown content types and unreadable stores are logged and reported
        as an empty outcome.
        """
        try:
            return self.sync.resync(content_type)
        except (UnknownContentTypeError, StoreError) as e:
            logger.error(f"Resync of {content_type} failed: {e}")
            return BulkWriteOutcome()

    def resync_all(self) -> Dict[str, BulkWriteOutcome]:
        return self.sync.resync_all()

    def reindex_record(self, content_type, record_id) -> WriteResult:
        return self.sync.reindex_record(content_type, record_id)

    def suggest(self, content_type, prefix: str, limit: int = 5) -> List[str]:
        return self.suggestions.suggest(content_type, prefix, limit)

    def find_similar(self, content_type, document_id, limit: int = 5) -> List[SearchHit]:
        return self.suggestions.find_similar(content_type, document_id, limit)

    def health(self) -> HealthStatus:
        """
        Engine health with per-index statistics when the engine is up.

        Returns:
            HealthStatus whose status is the cluster colour, or
            unavailable / error
        """
        health = self.connection.cluster_health()
        if health.status in ("unavailable", "error"):
            return health

        detail = dict(health.detail)
        detail["indices"] = self.lifecycle.index_stats()
        return HealthStatus(status=health.status, detail=detail)

    def close(self) -> None:
        """Release the engine client and the store"""
        self.connection.close()
        self.store.close()
