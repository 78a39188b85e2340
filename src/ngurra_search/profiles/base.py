"""
Base search profile.

A profile bundles everything that differs between content types: the
index schema, weighted text fields, facets, default ordering, filter
aliases, the columns the store fallback can use, and the projection from
a store record to an index document. The query builder, fallback engine
and sync job only talk to this interface.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ngurra_search.content_types import ContentType
from ngurra_search.exceptions import ProjectionError
from ngurra_search.schemas.documents import IndexableDocument
from ngurra_search.schemas.search import RangeFilter

# Completion field fed from the profile's display field. The visibility
# context keeps inactive and unpublished documents out of suggestions.
SUGGEST_FIELD = "suggest"
VISIBILITY_CONTEXT = "visibility"
VISIBLE = "visible"
HIDDEN = "hidden"
SUGGEST_MAPPING = {
    "type": "completion",
    "contexts": [{"name": VISIBILITY_CONTEXT, "type": "category"}],
}


@dataclass(frozen=True)
class FacetDefinition:
    """One bucketed count breakdown."""

    name: str
    field: str
    size: int = 10
    ranges: Tuple[Dict[str, float], ...] = ()

    @property
    def is_range(self) -> bool:
        return bool(self.ranges)

    def aggregation(self) -> Dict[str, Any]:
        """Aggregation body for this facet"""
        if self.is_range:
            return {"range": {"field": self.field, "ranges": [dict(r) for r in self.ranges]}}
        return {"terms": {"field": self.field, "size": self.size}}


def keyword_text(analyzer: Optional[str] = None) -> Dict[str, Any]:
    """Text field with a keyword sub-field"""
    mapping: Dict[str, Any] = {"type": "text", "fields": {"keyword": {"type": "keyword"}}}
    if analyzer:
        mapping["analyzer"] = analyzer
    return mapping


class SearchProfile(ABC):
    """
    Per-content-type search behaviour.

    Subclasses declare their schema and tuning as class attributes and
    implement build_body() to project a store record.
    """

    content_type: ContentType

    # Index schema
    field_schema: Dict[str, Dict[str, Any]] = {}
    analysis: Optional[Dict[str, Any]] = None

    # Query tuning
    search_fields: Tuple[str, ...] = ("title^3", "description")
    highlight_fields: Tuple[str, ...] = ("title", "description")
    facets: Tuple[FacetDefinition, ...] = ()
    default_sort: Tuple[Tuple[str, str], ...] = ()
    active_field: str = "isActive"
    geo_field: Optional[str] = None
    suggest_source: str = "title"

    # Filter names that address a different index field.
    keyword_fields: Dict[str, str] = {}
    # Filter alias -> (index field, "min" | "max")
    range_aliases: Dict[str, Tuple[str, str]] = {}

    # Store fallback
    fallback_text_columns: Tuple[str, ...] = ("title", "description")
    fallback_columns: Dict[str, str] = {}
    fallback_active_column: str = "is_active"
    recency_column: str = "created_at"

    @property
    def key(self) -> str:
        return self.content_type.value

    def index_properties(self) -> Dict[str, Any]:
        """Mapping properties, including the completion field"""
        properties = dict(self.field_schema)
        properties[SUGGEST_FIELD] = SUGGEST_MAPPING
        return properties

    def text_fields(self) -> List[str]:
        """Search fields without boost suffixes"""
        return [f.split("^", 1)[0] for f in self.search_fields]

    def facet_fields(self) -> Dict[str, FacetDefinition]:
        """Facets keyed by the index field they count"""
        return {facet.field: facet for facet in self.facets}

    def index_field(self, name: str) -> str:
        """Index field addressed by a filter or sort name"""
        return self.keyword_fields.get(name, name)

    def resolve_filter(self, name: str, value):
        """
        Map a filter name and value to the index field it constrains.

        Range aliases (e.g. salaryMin) turn a scalar bound into a range
        filter on the underlying field.

        Returns:
            Tuple of (index field, filter value)
        """
        alias = self.range_aliases.get(name)
        if alias is not None and getattr(value, "kind", None) == "equals":
            target, bound = alias
            return target, RangeFilter(**{bound: value.value})
        return self.index_field(name), value

    def fallback_column(self, name: str) -> Optional[str]:
        """Store column for a filter name, or None if the store cannot filter on it"""
        return self.fallback_columns.get(name)

    def project(self, record: Mapping[str, Any]) -> IndexableDocument:
        """
        Project a store record into an index document.

        Args:
            record: Fully joined record as returned by the store

        Returns:
            IndexableDocument keyed by the record's primary key

        Raises:
            ProjectionError: If the record lacks an id or has unusable values
        """
        record_id = record.get("id")
        if record_id is None or record_id == "":
            raise ProjectionError(record_id, "record has no id")

        try:
            body = self.build_body(record)
        except (KeyError, TypeError, ValueError) as e:
            raise ProjectionError(record_id, f"{type(e).__name__}: {e}") from e

        body[SUGGEST_FIELD] = {
            "input": [body[self.suggest_source]],
            "contexts": {VISIBILITY_CONTEXT: [VISIBLE if body.get(self.active_field) else HIDDEN]},
        }
        return IndexableDocument(id=record_id, body=body)

    @abstractmethod
    def build_body(self, record: Mapping[str, Any]) -> Dict[str, Any]:
        """Flatten a record into index fields"""
        pass


# Projection helpers

def split_csv(value: Any) -> List[str]:
    """Comma-separated string (or list) to a clean list of strings"""
    if not value:
        return []
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    return [str(part).strip() for part in value if part and str(part).strip()]


def as_int(value: Any, default: int = 0) -> int:
    return default if value is None or value == "" else int(value)


def as_float(value: Any, default: float = 0.0) -> float:
    return default if value is None or value == "" else float(value)


def as_bool(value: Any, default: bool = False) -> bool:
    return default if value is None else bool(value)


def as_date(value: Any) -> Optional[str]:
    """ISO-8601 string for dates/datetimes, passthrough for strings"""
    if value is None or value == "":
        return None
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def require_text(record: Mapping[str, Any], key: str) -> str:
    value = record.get(key)
    if value is None or not str(value).strip():
        raise ValueError(f"missing required field '{key}'")
    return str(value)
