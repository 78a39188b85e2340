"""
Unit tests for the query builder.
"""

import pytest

from ngurra_search.engine.query_builder import QueryBuilder
from ngurra_search.schemas import SearchRequest


@pytest.fixture
def jobs_builder(catalog):
    return QueryBuilder(catalog.resolve("jobs"), fragment_size=150)


@pytest.fixture
def mentors_builder(catalog):
    return QueryBuilder(catalog.resolve("mentors"))


def filter_clauses(params):
    return params["query"]["bool"]["filter"]


class TestTextQuery:
    """Free text handling."""

    def test_free_text_multi_match(self, jobs_builder):
        params = jobs_builder.build(SearchRequest(free_text="nurse"))
        text = params["query"]["bool"]["must"][0]["multi_match"]
        assert text["query"] == "nurse"
        assert text["type"] == "best_fields"
        assert text["fuzziness"] == "AUTO"
        assert text["prefix_length"] == 2
        assert "title^3" in text["fields"]

    def test_no_text_matches_all(self, jobs_builder):
        params = jobs_builder.build(SearchRequest())
        assert params["query"]["bool"]["must"] == [{"match_all": {}}]
        assert "highlight" not in params

    def test_paging(self, jobs_builder):
        params = jobs_builder.build(SearchRequest(offset=20, limit=5))
        assert params["from_"] == 20
        assert params["size"] == 5
        assert params["index"] == "test_jobs"
        assert params["track_total_hits"] is True


class TestFilters:
    """Filter translation and the implicit active filter."""

    def test_implicit_active_filter(self, jobs_builder):
        assert {"term": {"isActive": True}} in filter_clauses(jobs_builder.build(SearchRequest()))

    def test_explicit_active_filter_replaces_implicit(self, jobs_builder):
        params = jobs_builder.build(SearchRequest(filters={"isActive": False}, want_facets=False))
        clauses = filter_clauses(params)
        assert {"term": {"isActive": False}} in clauses
        assert {"term": {"isActive": True}} not in clauses

    def test_forums_use_published_flag(self, catalog):
        params = QueryBuilder(catalog.resolve("forums")).build(SearchRequest())
        assert {"term": {"isPublished": True}} in filter_clauses(params)

    def test_equality_and_membership(self, mentors_builder):
        params = mentors_builder.build(
            SearchRequest(filters={"location": "Darwin", "specializations": ["careers", "health"]})
        )
        clauses = filter_clauses(params)
        assert {"term": {"location.keyword": "Darwin"}} in clauses
        assert {"terms": {"specializations": ["careers", "health"]}} in clauses

    def test_range_filter(self, mentors_builder):
        params = mentors_builder.build(SearchRequest(filters={"yearsExperience": {"min": 5, "max": 10}}))
        assert {"range": {"yearsExperience": {"gte": 5, "lte": 10}}} in filter_clauses(params)

    def test_salary_alias(self, jobs_builder):
        params = jobs_builder.build(SearchRequest(filters={"salaryMax": 90000}, want_facets=False))
        assert {"range": {"salaryHigh": {"lte": 90000}}} in filter_clauses(params)

    def test_geo_radius(self, jobs_builder):
        params = jobs_builder.build(
            SearchRequest(filters={"near": {"lat": -12.46, "lon": 130.84, "radius_km": 50}})
        )
        assert {
            "geo_distance": {"distance": "50.0km", "coordinates": {"lat": -12.46, "lon": 130.84}}
        } in filter_clauses(params)

    def test_geo_dropped_without_coordinates(self, mentors_builder):
        params = mentors_builder.build(
            SearchRequest(filters={"near": {"lat": -12.46, "lon": 130.84, "radius_km": 50}})
        )
        assert not any("geo_distance" in clause for clause in filter_clauses(params))


class TestFacets:
    """Facet aggregations and post_filter placement."""

    def test_facet_filter_goes_to_post_filter(self, jobs_builder):
        params = jobs_builder.build(SearchRequest(filters={"state": ["NT"]}))
        assert params["post_filter"] == {"bool": {"filter": [{"terms": {"state": ["NT"]}}]}}
        assert {"terms": {"state": ["NT"]}} not in filter_clauses(params)

    def test_facet_ignores_own_selection(self, jobs_builder):
        params = jobs_builder.build(SearchRequest(filters={"state": ["NT"], "employment": "FULL_TIME"}))
        aggs = params["aggs"]

        assert aggs["state"]["filter"] == {"bool": {"filter": [{"term": {"employment": "FULL_TIME"}}]}}
        assert aggs["employment"]["filter"] == {"bool": {"filter": [{"terms": {"state": ["NT"]}}]}}
        assert aggs["industry"]["filter"]["bool"]["filter"] == [
            {"terms": {"state": ["NT"]}},
            {"term": {"employment": "FULL_TIME"}},
        ]

    def test_unfiltered_facets_match_all(self, jobs_builder):
        aggs = jobs_builder.build(SearchRequest())["aggs"]
        assert aggs["industry"]["filter"] == {"match_all": {}}
        assert aggs["industry"]["aggs"]["industry"] == {"terms": {"field": "industry", "size": 20}}
        assert aggs["location"]["aggs"]["location"]["terms"]["field"] == "location.keyword"

    def test_salary_range_buckets(self, jobs_builder):
        salary = jobs_builder.build(SearchRequest())["aggs"]["salaryRanges"]["aggs"]["salaryRanges"]
        assert salary["range"]["field"] == "salaryLow"
        assert salary["range"]["ranges"][0] == {"to": 50000}

    def test_no_facets_requested(self, jobs_builder):
        params = jobs_builder.build(SearchRequest(filters={"state": ["NT"]}, want_facets=False))
        assert "aggs" not in params
        assert "post_filter" not in params
        assert {"terms": {"state": ["NT"]}} in filter_clauses(params)


class TestSortAndHighlight:
    """Ordering and highlight configuration."""

    def test_default_sort(self, jobs_builder):
        params = jobs_builder.build(SearchRequest())
        assert params["sort"] == [{"isFeatured": {"order": "desc"}}, {"postedAt": {"order": "desc"}}]

    def test_relevance_sort_with_text(self, jobs_builder):
        assert jobs_builder.build(SearchRequest(free_text="nurse"))["sort"] == [{"_score": {"order": "desc"}}]

    def test_explicit_sort(self, jobs_builder):
        params = jobs_builder.build(SearchRequest(free_text="nurse", sort="title:asc"))
        assert params["sort"] == [{"title.keyword": {"order": "asc"}}]

    def test_highlight_fields(self, jobs_builder):
        highlight = jobs_builder.build(SearchRequest(free_text="nurse"))["highlight"]
        assert highlight["fields"]["title"] == {"number_of_fragments": 0}
        assert highlight["fields"]["description"]["fragment_size"] == 150
