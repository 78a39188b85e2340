"""
Search request and result models.

Requests arrive from the route layer already shape-validated, but every
optional field may still be missing or empty, so raw filter values are
coerced into one of the typed filter variants here.
"""

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import (
    BaseModel,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    ValidationInfo,
    field_validator,
)


Scalar = Union[StrictBool, StrictInt, StrictFloat, str]


class EqualsFilter(BaseModel):
    """Exact match on a single value"""
    
    kind: Literal["equals"] = "equals"
    value: Scalar


class AnyOfFilter(BaseModel):
    """Set membership: any of the values matches (OR)"""
    
    kind: Literal["any_of"] = "any_of"
    values: List[Scalar] = Field(..., min_length=1)


class RangeFilter(BaseModel):
    """Numeric (or date) range with optional, independently inclusive bounds"""
    
    kind: Literal["range"] = "range"
    min: Optional[Union[StrictInt, StrictFloat, str]] = None
    max: Optional[Union[StrictInt, StrictFloat, str]] = None
    min_inclusive: bool = True
    max_inclusive: bool = True
    
    def bounds(self) -> Dict[str, Any]:
        """Bound operators in engine vocabulary (gte/gt/lte/lt)"""
        clause: Dict[str, Any] = {}
        if self.min is not None:
            clause["gte" if self.min_inclusive else "gt"] = self.min
        if self.max is not None:
            clause["lte" if self.max_inclusive else "lt"] = self.max
        return clause


class GeoRadiusFilter(BaseModel):
    """Documents within radius_km of a center point"""
    
    kind: Literal["geo_radius"] = "geo_radius"
    lat: float = Field(..., ge=-90.0, le=90.0)
    lon: float = Field(..., ge=-180.0, le=180.0)
    radius_km: float = Field(..., gt=0.0)


FilterValue = Annotated[
    Union[EqualsFilter, AnyOfFilter, RangeFilter, GeoRadiusFilter],
    Field(discriminator="kind"),
]


def coerce_filter(value: Any) -> Union[EqualsFilter, AnyOfFilter, RangeFilter, GeoRadiusFilter]:
    """
    Turn a raw filter value into a typed filter.
    
    Lists become set membership, mappings with min/max become ranges,
    mappings with a radius become geo filters and scalars become equality.
    
    Args:
        value: Raw value as parsed by the route layer
        
    Returns:
        Typed filter model
        
    Raises:
        ValueError: If a mapping matches none of the known shapes
    """
    if isinstance(value, (EqualsFilter, AnyOfFilter, RangeFilter, GeoRadiusFilter)):
        return value
    
    if isinstance(value, (list, tuple, set, frozenset)):
        return AnyOfFilter(values=list(value))
    
    if isinstance(value, dict):
        kind = value.get("kind")
        if kind == "equals":
            return EqualsFilter(**value)
        if kind == "any_of":
            return AnyOfFilter(**value)
        if kind == "range":
            return RangeFilter(**value)
        if kind == "geo_radius":
            return GeoRadiusFilter(**value)
        
        radius = value.get("radius_km", value.get("radiusKm"))
        if radius is not None:
            center = value.get("center") or value
            return GeoRadiusFilter(lat=center["lat"], lon=center["lon"], radius_km=radius)
        
        if "min" in value or "max" in value:
            return RangeFilter(**value)
        
        raise ValueError(f"Unrecognised filter shape: {sorted(value)}")
    
    return EqualsFilter(value=value)


class SortSpec(BaseModel):
    """Explicit sort on one field"""
    
    field: str = Field(..., min_length=1)
    direction: Literal["asc", "desc"] = "desc"
    
    @classmethod
    def parse(cls, raw: str) -> "SortSpec":
        """Parse 'field:direction' (direction defaults to desc)"""
        field, _, direction = raw.partition(":")
        return cls(field=field.strip(), direction=(direction.strip().lower() or "desc"))


class SearchRequest(BaseModel):
    """Generic search request for one content type."""
    
    free_text: str = ""
    filters: Dict[str, FilterValue] = Field(default_factory=dict)
    offset: int = 0
    limit: int = 10
    sort: Optional[SortSpec] = None
    want_facets: bool = True
    actor_id: Optional[str] = None
    
    @field_validator("free_text", mode="before")
    @classmethod
    def _normalize_text(cls, value):
        return (value or "").strip()
    
    @field_validator("filters", mode="before")
    @classmethod
    def _coerce_filters(cls, value):
        if not value:
            return {}
        return {
            name: coerce_filter(raw)
            for name, raw in value.items()
            if raw is not None and raw != "" and raw != []
        }
    
    @field_validator("offset", mode="before")
    @classmethod
    def _non_negative_offset(cls, value):
        return max(int(value or 0), 0)
    
    @field_validator("limit", "want_facets", mode="before")
    @classmethod
    def _default_when_missing(cls, value, info: ValidationInfo):
        if value is None:
            return cls.model_fields[info.field_name].default
        return value
    
    @field_validator("sort", mode="before")
    @classmethod
    def _parse_sort(cls, value):
        if isinstance(value, str):
            return SortSpec.parse(value) if value.strip() else None
        return value
    
    def clamped(self, max_limit: int) -> "SearchRequest":
        """Copy with limit forced into [1, max_limit]"""
        return self.model_copy(update={"limit": min(max(self.limit, 1), max_limit)})


class SearchHit(BaseModel):
    """One ranked result"""
    
    id: str
    score: Optional[float] = None
    source: Dict[str, Any] = Field(default_factory=dict)
    highlights: Dict[str, List[str]] = Field(default_factory=dict)


class FacetBucket(BaseModel):
    """Value and document count for one facet bucket"""
    
    value: Any
    count: int


class SearchResult(BaseModel):
    """
    Normalized search result.
    
    degraded is set when the result came from the record store instead of
    the search engine; facets are always empty in that case.
    """
    
    total: int = 0
    items: List[SearchHit] = Field(default_factory=list)
    facets: Dict[str, List[FacetBucket]] = Field(default_factory=dict)
    elapsed_ms: int = 0
    degraded: bool = False
    error: Optional[str] = None
    
    @classmethod
    def empty(cls, degraded: bool = False, error: Optional[str] = None) -> "SearchResult":
        return cls(degraded=degraded, error=error)
    
    @property
    def ids(self) -> List[str]:
        return [item.id for item in self.items]
