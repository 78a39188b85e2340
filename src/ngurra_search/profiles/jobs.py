"""Job listings profile."""

from typing import Any, Dict, Mapping

from ngurra_search.content_types import ContentType
from ngurra_search.profiles.base import (
    FacetDefinition,
    SearchProfile,
    as_bool,
    as_date,
    as_int,
    keyword_text,
    require_text,
)


class JobsProfile(SearchProfile):
    """Job listings flattened with the owning organization and skill tags."""

    content_type = ContentType.JOBS

    analysis = {
        "analyzer": {
            "job_analyzer": {
                "type": "custom",
                "tokenizer": "standard",
                "filter": ["lowercase", "english_stemmer", "english_stop"],
            }
        },
        "filter": {
            "english_stemmer": {"type": "stemmer", "language": "english"},
            "english_stop": {"type": "stop", "stopwords": "_english_"},
        },
    }

    field_schema = {
        "title": keyword_text(analyzer="job_analyzer"),
        "description": {"type": "text", "analyzer": "job_analyzer"},
        "company": {"type": "keyword"},
        "companyId": {"type": "keyword"},
        "location": keyword_text(),
        "state": {"type": "keyword"},
        "coordinates": {"type": "geo_point"},
        "employment": {"type": "keyword"},
        "salaryLow": {"type": "integer"},
        "salaryHigh": {"type": "integer"},
        "skills": {"type": "keyword"},
        "industry": {"type": "keyword"},
        "experienceLevel": {"type": "keyword"},
        "isRemote": {"type": "boolean"},
        "isIndigenousFocused": {"type": "boolean"},
        "isFeatured": {"type": "boolean"},
        "isActive": {"type": "boolean"},
        "postedAt": {"type": "date"},
        "expiresAt": {"type": "date"},
        "viewCount": {"type": "integer"},
        "applicationCount": {"type": "integer"},
    }

    search_fields = ("title^3", "description", "company^2", "location", "skills^2")
    highlight_fields = ("title", "description")
    facets = (
        FacetDefinition("employment", "employment", size=10),
        FacetDefinition("industry", "industry", size=20),
        FacetDefinition("location", "location.keyword", size=20),
        FacetDefinition("state", "state", size=10),
        FacetDefinition("experienceLevel", "experienceLevel", size=5),
        FacetDefinition("isRemote", "isRemote", size=2),
        FacetDefinition(
            "salaryRanges",
            "salaryLow",
            ranges=(
                {"to": 50000},
                {"from": 50000, "to": 75000},
                {"from": 75000, "to": 100000},
                {"from": 100000, "to": 150000},
                {"from": 150000},
            ),
        ),
    )
    default_sort = (("isFeatured", "desc"), ("postedAt", "desc"))
    geo_field = "coordinates"

    keyword_fields = {"location": "location.keyword", "title": "title.keyword"}
    range_aliases = {
        "salaryMin": ("salaryLow", "min"),
        "salaryMax": ("salaryHigh", "max"),
    }

    fallback_text_columns = ("title", "description", "company_name")
    fallback_columns = {
        "companyId": "company_id",
        "location": "location",
        "state": "state",
        "employment": "employment",
        "industry": "industry",
        "experienceLevel": "experience_level",
        "isRemote": "is_remote",
        "isIndigenousFocused": "is_indigenous_focused",
        "isFeatured": "is_featured",
        "isActive": "is_active",
    }
    recency_column = "posted_at"

    def build_body(self, record: Mapping[str, Any]) -> Dict[str, Any]:
        body = {
            "title": require_text(record, "title"),
            "description": record.get("description") or "",
            "company": record.get("company_name") or "Company",
            "companyId": record.get("company_id"),
            "location": record.get("location"),
            "state": record.get("state"),
            "employment": record.get("employment"),
            "salaryLow": as_int(record.get("salary_low"), default=None),
            "salaryHigh": as_int(record.get("salary_high"), default=None),
            "skills": [s for s in (record.get("skills") or []) if s],
            "industry": record.get("industry"),
            "experienceLevel": record.get("experience_level"),
            "isRemote": as_bool(record.get("is_remote")),
            "isIndigenousFocused": as_bool(record.get("is_indigenous_focused")),
            "isFeatured": as_bool(record.get("is_featured")),
            "isActive": as_bool(record.get("is_active"), default=True),
            "postedAt": as_date(record.get("posted_at") or record.get("created_at")),
            "expiresAt": as_date(record.get("expires_at")),
            "viewCount": as_int(record.get("view_count")),
            "applicationCount": as_int(record.get("application_count")),
        }

        lat, lon = record.get("latitude"), record.get("longitude")
        if lat is not None and lon is not None:
            body["coordinates"] = {"lat": float(lat), "lon": float(lon)}

        return body
