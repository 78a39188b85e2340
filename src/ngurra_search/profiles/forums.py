"""Discussion threads profile."""

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
    split_csv,
)


class ForumsProfile(SearchProfile):
    """Forum threads with author display name; visibility is isPublished."""

    content_type = ContentType.FORUMS

    field_schema = {
        "title": keyword_text(analyzer="standard"),
        "content": {"type": "text"},
        "category": {"type": "keyword"},
        "authorId": {"type": "keyword"},
        "authorName": keyword_text(),
        "tags": {"type": "keyword"},
        "isPinned": {"type": "boolean"},
        "isLocked": {"type": "boolean"},
        "isPublished": {"type": "boolean"},
        "viewCount": {"type": "integer"},
        "replyCount": {"type": "integer"},
        "likeCount": {"type": "integer"},
        "createdAt": {"type": "date"},
        "lastActivityAt": {"type": "date"},
    }

    search_fields = ("title^3", "content", "authorName", "tags^2")
    highlight_fields = ("title", "content")
    facets = (
        FacetDefinition("category", "category", size=20),
        FacetDefinition("tags", "tags", size=30),
    )
    default_sort = (("isPinned", "desc"), ("lastActivityAt", "desc"))
    active_field = "isPublished"

    keyword_fields = {"title": "title.keyword", "authorName": "authorName.keyword"}

    fallback_text_columns = ("title", "content")
    fallback_columns = {
        "category": "category",
        "authorId": "author_id",
        "isPinned": "is_pinned",
        "isLocked": "is_locked",
        "isPublished": "is_published",
    }
    fallback_active_column = "is_published"
    recency_column = "last_activity_at"

    def build_body(self, record: Mapping[str, Any]) -> Dict[str, Any]:
        created_at = as_date(record.get("created_at"))
        return {
            "title": require_text(record, "title"),
            "content": record.get("content") or "",
            "category": record.get("category"),
            "authorId": record.get("author_id"),
            "authorName": record.get("author_name") or "Anonymous",
            "tags": split_csv(record.get("tags")),
            "isPinned": as_bool(record.get("is_pinned")),
            "isLocked": as_bool(record.get("is_locked")),
            "isPublished": as_bool(record.get("is_published"), default=True),
            "viewCount": as_int(record.get("view_count")),
            "replyCount": as_int(record.get("reply_count")),
            "likeCount": as_int(record.get("like_count")),
            "createdAt": created_at,
            "lastActivityAt": as_date(record.get("last_activity_at")) or created_at,
        }
