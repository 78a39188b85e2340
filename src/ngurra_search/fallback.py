"""
Degraded-mode search against the record store.

Used whenever the search engine is unreachable or returns something
unusable. The store can only answer a reduced query (substring text match,
equality and membership on mapped columns), so relevance ranking, facets,
range and geo filters are not available here.
"""

import time
from typing import Optional

from loguru import logger

from ngurra_search.catalog import IndexCatalog
from ngurra_search.exceptions import ProjectionError
from ngurra_search.profiles import SearchProfile
from ngurra_search.schemas.search import SearchHit, SearchRequest, SearchResult
from ngurra_search.store.base import RecordStore, StoreQuery


class FallbackSearchEngine:
    """
    Answers search requests straight from the record store.

    Results are always marked degraded and never carry facets. Nothing
    here raises: any failure becomes an empty degraded result.
    """

    def __init__(self, store: RecordStore, catalog: IndexCatalog):
        self.store = store
        self.catalog = catalog

    def build_query(self, profile: SearchProfile, request: SearchRequest) -> StoreQuery:
        """
        Reduce a search request to what the store can evaluate.

        Args:
            profile: Search profile of the content type
            request: Original search request

        Returns:
            StoreQuery with text, equality and membership predicates
        """
        query = StoreQuery(
            content_type=profile.content_type,
            text=request.free_text,
            text_columns=tuple(profile.fallback_text_columns),
            order_by=profile.recency_column,
            descending=True,
            offset=request.offset,
            limit=request.limit,
        )

        for name, value in request.filters.items():
            column = profile.fallback_column(name)
            if column is None:
                logger.debug(f"Fallback drops filter on unmapped field '{name}'")
                continue

            if value.kind == "equals":
                query.equals[column] = value.value
            elif value.kind == "any_of":
                query.any_of[column] = list(value.values)
            else:
                logger.debug(f"Fallback drops {value.kind} filter on '{name}'")

        if profile.active_field not in request.filters:
            query.equals[profile.fallback_active_column] = True

        return query

    def search(self, content_type, request: Optional[SearchRequest] = None) -> SearchResult:
        """
        Run a degraded search.

        Args:
            content_type: Content type key
            request: Search request (defaults to an empty request)

        Returns:
            SearchResult with degraded=True and no facets
        """
        request = request or SearchRequest()
        started = time.perf_counter()

        try:
            profile = self.catalog.resolve(content_type).profile
            query = self.build_query(profile, request)
            rows, total = self.store.find(query)

            items = []
            for row in rows:
                try:
                    document = profile.project(row)
                except ProjectionError as e:
                    logger.warning(f"Fallback skipped unprojectable row: {e}")
                    continue
                items.append(SearchHit(id=document.id, score=None, source=document.body))
        except Exception as e:
            logger.error(f"Fallback search failed for {content_type}: {type(e).__name__}: {e}")
            return SearchResult.empty(degraded=True, error=str(e))

        elapsed_ms = int((time.perf_counter() - started) * 1000)
        logger.info(
            f"Fallback search {profile.key}: '{request.free_text}' -> {len(items)}/{total} "
            f"rows in {elapsed_ms}ms"
        )
        return SearchResult(
            total=total,
            items=items,
            facets={},
            elapsed_ms=elapsed_ms,
            degraded=True,
        )
