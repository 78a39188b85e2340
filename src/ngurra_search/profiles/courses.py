"""Training courses profile."""

from typing import Any, Dict, Mapping

from ngurra_search.content_types import ContentType
from ngurra_search.profiles.base import (
    FacetDefinition,
    SearchProfile,
    as_bool,
    as_date,
    as_float,
    as_int,
    keyword_text,
    require_text,
)


class CoursesProfile(SearchProfile):
    """Courses with provider name and skill tags."""

    content_type = ContentType.COURSES

    field_schema = {
        "title": keyword_text(analyzer="standard"),
        "description": {"type": "text"},
        "category": {"type": "keyword"},
        "provider": {"type": "keyword"},
        "providerId": {"type": "keyword"},
        "duration": {"type": "keyword"},
        "qualification": {"type": "keyword"},
        "skills": {"type": "keyword"},
        "priceInCents": {"type": "integer"},
        "isFree": {"type": "boolean"},
        "isOnline": {"type": "boolean"},
        "isAccredited": {"type": "boolean"},
        "isActive": {"type": "boolean"},
        "rating": {"type": "float"},
        "enrollmentCount": {"type": "integer"},
        "createdAt": {"type": "date"},
    }

    search_fields = ("title^3", "description", "category^2", "provider", "qualification")
    highlight_fields = ("title", "description")
    facets = (
        FacetDefinition("category", "category", size=20),
        FacetDefinition("provider", "provider", size=20),
        FacetDefinition("isOnline", "isOnline", size=2),
        FacetDefinition("isFree", "isFree", size=2),
        FacetDefinition("isAccredited", "isAccredited", size=2),
        FacetDefinition(
            "priceRanges",
            "priceInCents",
            ranges=(
                {"to": 1},
                {"from": 1, "to": 10000},
                {"from": 10000, "to": 50000},
                {"from": 50000},
            ),
        ),
    )
    default_sort = (("rating", "desc"), ("enrollmentCount", "desc"))

    keyword_fields = {"title": "title.keyword"}
    range_aliases = {"priceMax": ("priceInCents", "max")}

    fallback_text_columns = ("title", "description", "provider_name")
    fallback_columns = {
        "category": "category",
        "provider": "provider_name",
        "providerId": "provider_id",
        "qualification": "qualification",
        "isOnline": "is_online",
        "isAccredited": "is_accredited",
        "isActive": "is_active",
    }
    recency_column = "created_at"

    def build_body(self, record: Mapping[str, Any]) -> Dict[str, Any]:
        price = as_int(record.get("price_in_cents"))
        return {
            "title": require_text(record, "title"),
            "description": record.get("description") or "",
            "category": record.get("category"),
            "provider": record.get("provider_name"),
            "providerId": record.get("provider_id"),
            "duration": record.get("duration"),
            "qualification": record.get("qualification"),
            "skills": [s for s in (record.get("skills") or []) if s],
            "priceInCents": price,
            "isFree": price == 0,
            "isOnline": as_bool(record.get("is_online")),
            "isAccredited": as_bool(record.get("is_accredited")),
            "isActive": as_bool(record.get("is_active"), default=True),
            "rating": as_float(record.get("average_rating")),
            "enrollmentCount": as_int(record.get("enrollment_count")),
            "createdAt": as_date(record.get("created_at")),
        }
