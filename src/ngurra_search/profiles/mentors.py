"""Mentor profiles."""

from typing import Any, Dict, Mapping

from ngurra_search.content_types import ContentType
from ngurra_search.profiles.base import (
    FacetDefinition,
    SearchProfile,
    as_bool,
    as_float,
    as_int,
    keyword_text,
    require_text,
    split_csv,
)


class MentorsProfile(SearchProfile):
    """Mentor profiles; skills and specializations are stored as CSV."""

    content_type = ContentType.MENTORS

    field_schema = {
        "name": keyword_text(),
        "title": {"type": "text"},
        "bio": {"type": "text"},
        "skills": {"type": "keyword"},
        "industry": {"type": "keyword"},
        "location": keyword_text(),
        "yearsExperience": {"type": "integer"},
        "isActive": {"type": "boolean"},
        "isAvailable": {"type": "boolean"},
        "isFeatured": {"type": "boolean"},
        "rating": {"type": "float"},
        "sessionCount": {"type": "integer"},
        "specializations": {"type": "keyword"},
    }

    search_fields = ("name^3", "title^2", "bio", "skills^2", "industry")
    highlight_fields = ("name", "title", "bio")
    facets = (
        FacetDefinition("industry", "industry", size=20),
        FacetDefinition("skills", "skills", size=30),
        FacetDefinition("isAvailable", "isAvailable", size=2),
    )
    default_sort = (("isFeatured", "desc"), ("rating", "desc"))
    suggest_source = "name"

    keyword_fields = {"name": "name.keyword", "location": "location.keyword"}

    fallback_text_columns = ("name", "title", "bio")
    fallback_columns = {
        "industry": "industry",
        "location": "location",
        "isAvailable": "is_available",
        "isFeatured": "is_featured",
        "isActive": "is_active",
    }
    recency_column = "created_at"

    def build_body(self, record: Mapping[str, Any]) -> Dict[str, Any]:
        return {
            "name": require_text(record, "name"),
            "title": record.get("title"),
            "bio": record.get("bio") or "",
            "skills": split_csv(record.get("skills")),
            "industry": record.get("industry"),
            "location": record.get("location"),
            "yearsExperience": as_int(record.get("years_experience")),
            "isActive": as_bool(record.get("is_active"), default=True),
            "isAvailable": as_bool(record.get("is_available"), default=True),
            "isFeatured": as_bool(record.get("is_featured")),
            "rating": as_float(record.get("average_rating")),
            "sessionCount": as_int(record.get("session_count")),
            "specializations": split_csv(record.get("specializations")),
        }
