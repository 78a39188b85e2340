"""
Unit tests for the search executor and suggestions.
"""

import pytest

from ngurra_search.analytics import SearchAnalytics
from ngurra_search.engine.connection import ConnectionManager
from ngurra_search.engine.executor import SearchExecutor
from ngurra_search.engine.lifecycle import IndexLifecycleManager
from ngurra_search.engine.suggestions import SuggestionService
from ngurra_search.schemas import SearchRequest

from fakes import FakeElasticsearch, api_error, connection_error
from records import job_record


@pytest.fixture
def indexed(connection, catalog, writer):
    """Create indices and return a helper that indexes projected job rows"""
    assert IndexLifecycleManager(connection, catalog).ensure_indices()
    profile = catalog.resolve("jobs").profile

    def index_jobs(*rows):
        return writer.bulk_index("jobs", [profile.project(row) for row in rows])

    return index_jobs


@pytest.fixture
def analytics(store):
    return SearchAnalytics(store)


@pytest.fixture
def executor(connection, catalog, fallback, analytics, test_settings):
    return SearchExecutor(connection, catalog, fallback, analytics=analytics, settings=test_settings)


@pytest.fixture
def suggestions(connection, catalog, test_settings):
    return SuggestionService(connection, catalog, test_settings)


class TestEngineSearch:
    """Normal engine path."""

    def test_normalized_result(self, executor, indexed):
        indexed(job_record(1, "Remote Area Nurse"), job_record(2, "Welder"))
        result = executor.search("jobs", SearchRequest(free_text="nurse"))

        assert not result.degraded
        assert result.total == 1
        assert result.ids == ["1"]
        assert result.items[0].score > 0
        assert result.items[0].source["title"] == "Remote Area Nurse"
        assert "<mark>Nurse</mark>" in result.items[0].highlights["title"][0]
        assert result.elapsed_ms == 3

    def test_facets_normalized(self, executor, indexed):
        indexed(
            job_record(1, state="NT"),
            job_record(2, state="NT"),
            job_record(3, state="WA", is_remote=True),
        )
        result = executor.search("jobs", SearchRequest())
        assert {(b.value, b.count) for b in result.facets["state"]} == {("NT", 2), ("WA", 1)}
        assert {(b.value, b.count) for b in result.facets["isRemote"]} == {("false", 2), ("true", 1)}
        salary = {b.value: b.count for b in result.facets["salaryRanges"]}
        assert salary["50000.0-75000.0"] == 3

    def test_no_facets_when_not_wanted(self, executor, indexed):
        indexed(job_record(1))
        assert executor.search("jobs", SearchRequest(want_facets=False)).facets == {}

    def test_limit_clamped(self, executor, indexed, fake_es, test_settings):
        indexed(job_record(1))
        executor.search("jobs", SearchRequest(limit=10_000))
        assert fake_es.calls_to("search")[-1]["size"] == test_settings.max_page_size

    def test_unknown_content_type(self, executor, fake_es):
        before = len(fake_es.calls)
        result = executor.search("events", SearchRequest(free_text="x"))
        assert result.error == "Unknown content type: events"
        assert result.total == 0
        assert len(fake_es.calls) == before

    def test_logs_text_searches(self, executor, indexed, store):
        indexed(job_record(1))
        executor.search("jobs", SearchRequest(free_text="nurse", actor_id="u-7"))
        executor.search("jobs", SearchRequest())

        assert len(store.search_logs) == 1
        entry = store.search_logs[0]
        assert entry.content_type == "jobs"
        assert entry.query_text == "nurse"
        assert entry.result_count == 1
        assert entry.actor_id == "u-7"
        assert entry.degraded is False


class TestDegradation:
    """Engine failures fall back to the store."""

    def test_engine_unavailable(self, catalog, fallback, store, test_settings):
        store.add_record("jobs", job_record(1))
        manager = ConnectionManager(test_settings, client=FakeElasticsearch(reachable=False))
        executor = SearchExecutor(manager, catalog, fallback, settings=test_settings)

        result = executor.search("jobs", SearchRequest(free_text="nurse"))
        assert result.degraded
        assert result.ids == ["1"]

    def test_transport_error(self, executor, indexed, fake_es, store, connection):
        store.add_record("jobs", job_record(5))
        fake_es.errors["search"] = connection_error("timed out")

        result = executor.search("jobs", SearchRequest())
        assert result.degraded
        assert result.ids == ["5"]
        assert not connection.is_available()

    def test_api_error_keeps_availability(self, executor, indexed, fake_es, connection):
        fake_es.errors["search"] = api_error(status=400, error_type="search_phase_execution_exception")
        assert executor.search("jobs", SearchRequest()).degraded
        assert connection.is_available()

    def test_malformed_response(self, executor, indexed, fake_es):
        fake_es.responses["search"] = {"took": 1, "unexpected": True}
        assert executor.search("jobs", SearchRequest()).degraded

    def test_hits_block_of_wrong_shape(self, executor, indexed, fake_es, store):
        store.add_record("jobs", job_record(9))
        fake_es.responses["search"] = {"hits": [], "took": 1}

        result = executor.search("jobs", SearchRequest())
        assert result.degraded
        assert result.ids == ["9"]

    def test_aggregation_of_wrong_shape(self, executor, indexed, fake_es):
        fake_es.responses["search"] = {
            "took": 1,
            "hits": {"total": {"value": 0}, "hits": []},
            "aggregations": {"state": ["NT"]},
        }
        assert executor.search("jobs", SearchRequest()).degraded

    def test_degraded_search_logged(self, catalog, fallback, store, analytics, test_settings):
        manager = ConnectionManager(test_settings, client=FakeElasticsearch(reachable=False))
        executor = SearchExecutor(manager, catalog, fallback, analytics=analytics, settings=test_settings)
        executor.search("jobs", SearchRequest(free_text="ranger"))
        assert store.search_logs[0].degraded is True
        assert store.search_logs[0].zero_results


class TestSuggestions:
    """Completion suggestions and similar documents."""

    def test_suggest(self, suggestions, indexed):
        indexed(job_record(1, "Welder"), job_record(2, "Web Developer"), job_record(3, "Nurse"))
        assert suggestions.suggest("jobs", "we", 5) == ["Web Developer", "Welder"]

    def test_suggest_limit(self, suggestions, indexed):
        indexed(*[job_record(i, f"Welder {i}") for i in range(8)])
        assert len(suggestions.suggest("jobs", "wel", 5)) == 5

    def test_short_prefix_skips_engine(self, suggestions, fake_es):
        before = len(fake_es.calls)
        assert suggestions.suggest("jobs", " w ", 5) == []
        assert len(fake_es.calls) == before

    def test_suggest_request(self, suggestions, indexed, fake_es):
        suggestions.suggest("mentors", "au", 3)
        completion = fake_es.calls_to("search")[-1]["suggest"]["suggestions"]["completion"]
        assert completion == {
            "field": "suggest",
            "size": 3,
            "skip_duplicates": True,
            "contexts": {"visibility": ["visible"]},
        }

    def test_suggest_skips_inactive(self, suggestions, indexed):
        indexed(job_record(1, "Welder"), job_record(2, "Web Secret Role", is_active=False))
        assert suggestions.suggest("jobs", "we", 5) == ["Welder"]

    def test_suggest_malformed_response(self, suggestions, indexed, fake_es):
        fake_es.responses["search"] = {"suggest": {"suggestions": ["Welder"]}}
        assert suggestions.suggest("jobs", "we", 5) == []

    def test_suggest_failures_are_empty(self, suggestions, indexed, fake_es):
        assert suggestions.suggest("events", "we", 5) == []
        fake_es.errors["search"] = api_error(status=500)
        assert suggestions.suggest("jobs", "we", 5) == []

    def test_find_similar(self, suggestions, indexed):
        indexed(
            job_record(1, "Remote Area Nurse", description="nurse clinic remote community"),
            job_record(2, "Clinic Nurse", description="nurse clinic town"),
            job_record(
                3,
                "Diesel Mechanic",
                description="engines trucks",
                company_name="Outback Motors",
                location="Katherine",
                skills=["Diesel"],
            ),
            job_record(4, "Community Nurse", description="nurse community", is_active=False),
        )
        hits = suggestions.find_similar("jobs", 1, 5)
        assert [hit.id for hit in hits] == ["2"]

    def test_find_similar_unavailable(self, test_settings, catalog):
        manager = ConnectionManager(test_settings, client=FakeElasticsearch(reachable=False))
        assert SuggestionService(manager, catalog, test_settings).find_similar("jobs", 1) == []


class TestAnalytics:
    """Search log writes never fail the caller."""

    def test_failure_swallowed(self, store, mocker):
        mocker.patch.object(store, "append_search_log", side_effect=RuntimeError("disk full"))
        assert SearchAnalytics(store).log_search("jobs", "nurse", 3) is False

    def test_entry_written(self, store):
        assert SearchAnalytics(store).log_search("jobs", "nurse", 3, duration_ms=12)
        assert store.search_logs[0].duration_ms == 12
