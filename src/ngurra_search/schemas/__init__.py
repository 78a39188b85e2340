"""Schemas package exports"""

from ngurra_search.schemas.search import (
    EqualsFilter,
    AnyOfFilter,
    RangeFilter,
    GeoRadiusFilter,
    FilterValue,
    SortSpec,
    SearchRequest,
    SearchHit,
    FacetBucket,
    SearchResult,
    coerce_filter,
)
from ngurra_search.schemas.documents import IndexableDocument
from ngurra_search.schemas.outcomes import (
    WriteStatus,
    WriteResult,
    BulkFailure,
    BulkWriteOutcome,
    HealthStatus,
)
from ngurra_search.schemas.analytics import SearchLogEntry

__all__ = [
    "EqualsFilter",
    "AnyOfFilter",
    "RangeFilter",
    "GeoRadiusFilter",
    "FilterValue",
    "SortSpec",
    "SearchRequest",
    "SearchHit",
    "FacetBucket",
    "SearchResult",
    "coerce_filter",
    "IndexableDocument",
    "WriteStatus",
    "WriteResult",
    "BulkFailure",
    "BulkWriteOutcome",
    "HealthStatus",
    "SearchLogEntry",
]
