"""
Type-ahead suggestions and similar-document lookup.

Both are convenience features: every failure returns an empty list.
"""

from typing import List, Optional

from loguru import logger

from ngurra_search.catalog import IndexCatalog
from ngurra_search.config import Settings, settings as default_settings
from ngurra_search.engine.connection import ENGINE_ERRORS, ConnectionManager, as_dict
from ngurra_search.engine.executor import MALFORMED_RESPONSE_ERRORS, normalize_hits
from ngurra_search.exceptions import UnknownContentTypeError
from ngurra_search.profiles.base import SUGGEST_FIELD, VISIBILITY_CONTEXT, VISIBLE
from ngurra_search.schemas.search import SearchHit

SUGGESTION_NAME = "suggestions"


class SuggestionService:
    """Completion suggestions and more-like-this queries."""

    def __init__(
        self,
        connection: ConnectionManager,
        catalog: IndexCatalog,
        settings: Optional[Settings] = None,
    ):
        self.connection = connection
        self.catalog = catalog
        self.settings = settings or default_settings

    def _limit(self, limit: int) -> int:
        return min(max(int(limit), 1), self.settings.max_page_size)

    def suggest(self, content_type, prefix: str, limit: int = 5) -> List[str]:
        """
        Completion suggestions for a prefix.

        Prefixes shorter than suggest_min_prefix (after trimming) return an
        empty list without calling the engine. Only documents whose active
        field is set contribute suggestions.

        Args:
            content_type: Content type key
            prefix: What the user has typed so far
            limit: Maximum number of suggestions

        Returns:
            Distinct suggestion strings, at most limit of them
        """
        prefix = (prefix or "").strip()
        if len(prefix) < self.settings.suggest_min_prefix:
            return []

        try:
            definition = self.catalog.resolve(content_type)
        except UnknownContentTypeError as e:
            logger.error(str(e))
            return []

        es = self.connection.get_client()
        if es is None:
            return []

        limit = self._limit(limit)
        try:
            response = as_dict(
                es.search(
                    index=definition.physical_name,
                    suggest={
                        SUGGESTION_NAME: {
                            "prefix": prefix,
                            "completion": {
                                "field": SUGGEST_FIELD,
                                "size": limit,
                                "skip_duplicates": True,
                                "contexts": {VISIBILITY_CONTEXT: [VISIBLE]},
                            },
                        }
                    },
                )
            )
        except ENGINE_ERRORS as e:
            self.connection.report_failure(e)
            logger.warning(f"Suggest failed on {definition.physical_name}: {e}")
            return []

        suggestions: List[str] = []
        try:
            for entry in response["suggest"][SUGGESTION_NAME]:
                for option in entry.get("options", []):
                    text = option.get("text")
                    if text and text not in suggestions:
                        suggestions.append(text)
        except MALFORMED_RESPONSE_ERRORS as e:
            logger.warning(f"Malformed suggest response from {definition.physical_name}: {e}")
            return []

        return suggestions[:limit]

    def find_similar(self, content_type, document_id, limit: int = 5) -> List[SearchHit]:
        """
        Documents similar to an indexed document.

        Seeds a more_like_this query with the document itself over the
        profile's text fields; the seed document is not returned and only
        active documents are considered.

        Args:
            content_type: Content type key
            document_id: Id of the seed document
            limit: Maximum number of hits

        Returns:
            Similar documents, best first
        """
        try:
            definition = self.catalog.resolve(content_type)
        except UnknownContentTypeError as e:
            logger.error(str(e))
            return []

        es = self.connection.get_client()
        if es is None:
            return []

        profile = definition.profile
        query = {
            "bool": {
                "must": [
                    {
                        "more_like_this": {
                            "fields": profile.text_fields(),
                            "like": [{"_index": definition.physical_name, "_id": str(document_id)}],
                            "min_term_freq": 1,
                            "min_doc_freq": 1,
                            "max_query_terms": 12,
                        }
                    }
                ],
                "filter": [{"term": {profile.active_field: True}}],
            }
        }

        try:
            response = as_dict(
                es.search(index=definition.physical_name, query=query, size=self._limit(limit))
            )
            return normalize_hits(response)
        except ENGINE_ERRORS as e:
            self.connection.report_failure(e)
            logger.warning(f"Similar lookup failed for {definition.key.value}/{document_id}: {e}")
            return []
        except MALFORMED_RESPONSE_ERRORS as e:
            logger.warning(f"Malformed similar response from {definition.physical_name}: {e}")
            return []
