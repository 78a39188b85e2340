"""
Search executor.

Runs built queries against the engine and normalizes responses. Any engine
failure (transport, timeout, API error, malformed response) sends the same
request to the fallback engine instead of surfacing to the caller.
"""

import time
from typing import Any, Dict, List, Mapping, Optional

from loguru import logger

from ngurra_search.analytics import SearchAnalytics
from ngurra_search.catalog import IndexCatalog, IndexDefinition
from ngurra_search.config import Settings, settings as default_settings
from ngurra_search.engine.connection import ENGINE_ERRORS, ConnectionManager, as_dict
from ngurra_search.engine.query_builder import QueryBuilder
from ngurra_search.exceptions import UnknownContentTypeError
from ngurra_search.fallback import FallbackSearchEngine
from ngurra_search.schemas.search import FacetBucket, SearchHit, SearchRequest, SearchResult

# Raised while reading a response that does not have the expected shape.
MALFORMED_RESPONSE_ERRORS = (KeyError, TypeError, ValueError, AttributeError)


def normalize_hits(response: Mapping[str, Any]) -> List[SearchHit]:
    """SearchHits from a raw hits block"""
    return [
        SearchHit(
            id=str(hit["_id"]),
            score=hit.get("_score"),
            source=hit.get("_source") or {},
            highlights=hit.get("highlight") or {},
        )
        for hit in response["hits"].get("hits", [])
    ]


def hits_total(response: Mapping[str, Any]) -> int:
    total = response["hits"].get("total", 0)
    if isinstance(total, Mapping):
        return int(total["value"])
    return int(total)


class SearchExecutor:
    """Engine-first search with transparent degradation."""

    def __init__(
        self,
        connection: ConnectionManager,
        catalog: IndexCatalog,
        fallback: FallbackSearchEngine,
        analytics: Optional[SearchAnalytics] = None,
        settings: Optional[Settings] = None,
    ):
        self.connection = connection
        self.catalog = catalog
        self.fallback = fallback
        self.analytics = analytics
        self.settings = settings or default_settings

    def search(self, content_type, request: Optional[SearchRequest] = None) -> SearchResult:
        """
        Search one content type.

        Args:
            content_type: Content type key
            request: Search request (defaults to an empty request)

        Returns:
            SearchResult; degraded=True when served by the fallback engine,
            error set when the content type is unknown
        """
        try:
            definition = self.catalog.resolve(content_type)
        except UnknownContentTypeError as e:
            logger.error(str(e))
            return SearchResult.empty(error=str(e))

        request = (request or SearchRequest()).clamped(self.settings.max_page_size)
        started = time.perf_counter()

        result = self._engine_search(definition, request)
        if result is None:
            result = self.fallback.search(definition.key, request)

        duration_ms = int((time.perf_counter() - started) * 1000)
        if self.analytics is not None and request.free_text:
            self.analytics.log_search(
                definition.key,
                request.free_text,
                result.total,
                actor_id=request.actor_id,
                degraded=result.degraded,
                duration_ms=duration_ms,
            )

        return result

    def _engine_search(
        self,
        definition: IndexDefinition,
        request: SearchRequest,
    ) -> Optional[SearchResult]:
        """Engine result, or None when the fallback must answer"""
        es = self.connection.get_client()
        if es is None:
            logger.debug(f"Engine unavailable, degrading search on {definition.key.value}")
            return None

        params = QueryBuilder(definition, self.settings.highlight_fragment_size).build(request)

        try:
            response = as_dict(es.search(**params))
        except ENGINE_ERRORS as e:
            self.connection.report_failure(e)
            logger.warning(f"Search failed on {definition.physical_name}, using fallback: {e}")
            return None

        try:
            return self._normalize(definition, request, response)
        except MALFORMED_RESPONSE_ERRORS as e:
            logger.warning(
                f"Malformed search response from {definition.physical_name}, using fallback: "
                f"{type(e).__name__}: {e}"
            )
            return None

    def _normalize(
        self,
        definition: IndexDefinition,
        request: SearchRequest,
        response: Mapping[str, Any],
    ) -> SearchResult:
        facets: Dict[str, List[FacetBucket]] = {}

        if request.want_facets:
            aggregations = response.get("aggregations") or {}
            for facet in definition.profile.facets:
                scoped = aggregations.get(facet.name)
                if not scoped:
                    continue
                buckets = scoped.get(facet.name, scoped).get("buckets", [])
                facets[facet.name] = [
                    FacetBucket(
                        value=bucket.get("key_as_string", bucket.get("key")),
                        count=bucket.get("doc_count", 0),
                    )
                    for bucket in buckets
                ]

        return SearchResult(
            total=hits_total(response),
            items=normalize_hits(response),
            facets=facets,
            elapsed_ms=int(response.get("took", 0)),
            degraded=False,
        )
