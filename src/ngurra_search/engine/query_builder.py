"""
Query builder.

Translates a SearchRequest into keyword arguments for Elasticsearch.search()
using the content type's search profile.
"""

from typing import Any, Dict, List, Optional

from loguru import logger

from ngurra_search.catalog import IndexDefinition
from ngurra_search.schemas.search import SearchRequest


class QueryBuilder:
    """
    Builds engine queries for one index.

    Facet-aware filtering: filters on facet fields go to post_filter and
    every facet aggregation is scoped by all other facet filters, so
    selecting a value in a facet does not collapse that facet's own counts.
    """

    def __init__(self, definition: IndexDefinition, fragment_size: int = 150):
        self.definition = definition
        self.profile = definition.profile
        self.fragment_size = fragment_size

    def text_query(self, free_text: str) -> Dict[str, Any]:
        if not free_text:
            return {"match_all": {}}
        return {
            "multi_match": {
                "query": free_text,
                "fields": list(self.profile.search_fields),
                "type": "best_fields",
                "fuzziness": "AUTO",
                "prefix_length": 2,
            }
        }

    def filter_clause(self, field: str, value) -> Optional[Dict[str, Any]]:
        """
        Non-scoring clause for one typed filter.

        Returns:
            Clause dict, or None if the filter does not apply to this index
        """
        if value.kind == "equals":
            return {"term": {field: value.value}}
        if value.kind == "any_of":
            return {"terms": {field: list(value.values)}}
        if value.kind == "range":
            bounds = value.bounds()
            return {"range": {field: bounds}} if bounds else None
        if value.kind == "geo_radius":
            if not self.profile.geo_field:
                logger.debug(f"Geo filter ignored: {self.profile.key} has no coordinate field")
                return None
            return {
                "geo_distance": {
                    "distance": f"{value.radius_km}km",
                    self.profile.geo_field: {"lat": value.lat, "lon": value.lon},
                }
            }
        return None

    def sort_clause(self, request: SearchRequest) -> List[Dict[str, Any]]:
        if request.sort is not None:
            field = self.profile.index_field(request.sort.field)
            return [{field: {"order": request.sort.direction}}]
        if request.free_text:
            return [{"_score": {"order": "desc"}}]
        return [{field: {"order": direction}} for field, direction in self.profile.default_sort]

    def highlight_clause(self) -> Dict[str, Any]:
        fields: Dict[str, Any] = {}
        for position, field in enumerate(self.profile.highlight_fields):
            if position == 0:
                # Short title-like field: highlight the whole value
                fields[field] = {"number_of_fragments": 0}
            else:
                fields[field] = {"fragment_size": self.fragment_size, "number_of_fragments": 3}
        return {"pre_tags": ["<mark>"], "post_tags": ["</mark>"], "fields": fields}

    def build(self, request: SearchRequest) -> Dict[str, Any]:
        """
        Build search() keyword arguments.

        Args:
            request: Validated (and clamped) search request

        Returns:
            Dict with index, query, from_, size, sort and, when applicable,
            aggs, post_filter and highlight
        """
        facet_fields = self.profile.facet_fields()
        filters: List[Dict[str, Any]] = []
        facet_filters: Dict[str, Dict[str, Any]] = {}
        filtered_fields = set()

        for name, value in request.filters.items():
            field, value = self.profile.resolve_filter(name, value)
            filtered_fields.update((name, field))
            clause = self.filter_clause(field, value)
            if clause is None:
                continue
            if request.want_facets and field in facet_fields:
                facet_filters[field] = clause
            else:
                filters.append(clause)

        active_field = self.profile.active_field
        if active_field not in filtered_fields:
            filters.append({"term": {active_field: True}})

        params: Dict[str, Any] = {
            "index": self.definition.physical_name,
            "query": {"bool": {"must": [self.text_query(request.free_text)], "filter": filters}},
            "from_": request.offset,
            "size": request.limit,
            "sort": self.sort_clause(request),
            "track_total_hits": True,
        }

        if request.want_facets and self.profile.facets:
            aggs = {}
            for facet in self.profile.facets:
                others = [clause for field, clause in facet_filters.items() if field != facet.field]
                scope = {"bool": {"filter": others}} if others else {"match_all": {}}
                aggs[facet.name] = {"filter": scope, "aggs": {facet.name: facet.aggregation()}}
            params["aggs"] = aggs

        if facet_filters:
            params["post_filter"] = {"bool": {"filter": list(facet_filters.values())}}

        if request.free_text and self.profile.highlight_fields:
            params["highlight"] = self.highlight_clause()

        return params
