"""
Unit tests for index lifecycle and document writes.
"""

import pytest

from ngurra_search.engine.connection import ConnectionManager
from ngurra_search.engine.lifecycle import IndexLifecycleManager
from ngurra_search.engine.writer import DocumentWriter
from ngurra_search.schemas import IndexableDocument, WriteStatus

from fakes import FakeElasticsearch, api_error, connection_error


@pytest.fixture
def lifecycle(connection, catalog):
    return IndexLifecycleManager(connection, catalog)


@pytest.fixture
def ready_writer(lifecycle, writer):
    """Writer over freshly created indices"""
    assert lifecycle.ensure_indices()
    return writer


@pytest.fixture
def down_writer(test_settings, catalog):
    manager = ConnectionManager(test_settings, client=FakeElasticsearch(reachable=False))
    return DocumentWriter(manager, catalog, test_settings)


def mentor_doc(doc_id, **overrides):
    body = {"name": f"Mentor {doc_id}", "yearsExperience": 5, "isActive": True}
    body.update(overrides)
    return {"id": doc_id, **body}


class TestEnsureIndices:
    """Idempotent index creation."""

    def test_creates_all_indices(self, lifecycle, fake_es):
        assert lifecycle.ensure_indices()
        assert set(fake_es.store) == {"test_jobs", "test_courses", "test_mentors", "test_forums"}
        mappings = fake_es.store["test_jobs"]["mappings"]["properties"]
        assert mappings["salaryLow"] == {"type": "integer"}

    def test_idempotent(self, lifecycle, fake_es):
        assert lifecycle.ensure_indices()
        assert lifecycle.ensure_indices()
        assert len(fake_es.calls_to("indices.create")) == 4

    def test_partial_failure_continues(self, lifecycle, fake_es):
        fake_es.errors["indices.create"] = api_error(status=400, error_type="illegal_argument_exception")
        assert lifecycle.ensure_indices() is False
        assert len(fake_es.calls_to("indices.create")) == 4

    def test_engine_unavailable(self, test_settings, catalog):
        manager = ConnectionManager(test_settings, client=FakeElasticsearch(reachable=False))
        assert IndexLifecycleManager(manager, catalog).ensure_indices() is False

    def test_index_stats(self, lifecycle, ready_writer):
        ready_writer.index_document("mentors", "m1", {"name": "Aunty June"})
        stats = lifecycle.index_stats()
        assert stats["mentors"]["doc_count"] == 1
        assert stats["jobs"]["doc_count"] == 0
        assert stats["mentors"]["index"] == "test_mentors"


class TestIndexDocument:
    """Single document upserts."""

    def test_index_waits_for_refresh(self, ready_writer, fake_es):
        result = ready_writer.index_document("mentors", 42, {"name": "Aunty June"})
        assert result
        assert result.document_id == "42"
        call = fake_es.calls_to("index")[-1]
        assert call["refresh"] == "wait_for"
        assert fake_es.docs("test_mentors")["42"] == {"name": "Aunty June"}

    def test_full_replace(self, ready_writer, fake_es):
        ready_writer.index_document("mentors", 1, {"name": "A", "industry": "Health"})
        ready_writer.index_document("mentors", 1, {"name": "B"})
        assert fake_es.docs("test_mentors")["1"] == {"name": "B"}

    def test_unknown_content_type(self, ready_writer, fake_es):
        before = len(fake_es.calls)
        result = ready_writer.index_document("events", 1, {})
        assert result.status == WriteStatus.UNKNOWN_CONTENT_TYPE
        assert not result
        assert len(fake_es.calls) == before

    def test_engine_unavailable(self, down_writer):
        result = down_writer.index_document("jobs", 1, {"title": "x"})
        assert result.status == WriteStatus.UNAVAILABLE

    def test_rejected_document(self, ready_writer):
        result = ready_writer.index_document("mentors", 1, {"name": "x", "yearsExperience": "lots"})
        assert result.status == WriteStatus.FAILED
        assert "yearsExperience" in result.reason

    def test_non_mapping_document(self, ready_writer, fake_es):
        before = len(fake_es.calls)
        result = ready_writer.index_document("mentors", 1, None)
        assert result.status == WriteStatus.FAILED
        assert result.reason == "invalid document"
        assert len(fake_es.calls) == before

    def test_transport_failure_flips_availability(self, ready_writer, fake_es, connection):
        fake_es.errors["index"] = connection_error()
        result = ready_writer.index_document("mentors", 1, {"name": "x"})
        assert result.status == WriteStatus.FAILED
        assert not connection.is_available()


class TestBulkIndex:
    """Batched upserts with per-item accounting."""

    def test_all_succeed_in_batches(self, ready_writer, fake_es):
        outcome = ready_writer.bulk_index("mentors", [mentor_doc(i) for i in range(5)])
        assert (outcome.succeeded, outcome.failed) == (5, 0)
        # batch size 2 in test settings
        assert len(fake_es.calls_to("bulk")) == 3
        assert all(call["refresh"] is False for call in fake_es.calls_to("bulk"))
        assert len(fake_es.calls_to("indices.refresh")) == 1
        assert len(fake_es.docs("test_mentors")) == 5

    def test_action_document_pairs(self, ready_writer, fake_es):
        ready_writer.bulk_index("mentors", [IndexableDocument(id="m1", body={"name": "A"})])
        operations = fake_es.calls_to("bulk")[0]["operations"]
        assert operations == [{"index": {"_index": "test_mentors", "_id": "m1"}}, {"name": "A"}]

    def test_per_item_failures(self, ready_writer):
        docs = [mentor_doc(i) for i in range(5)] + [mentor_doc("bad", yearsExperience="lots")]
        outcome = ready_writer.bulk_index("mentors", docs)
        assert (outcome.succeeded, outcome.failed) == (5, 1)
        assert outcome.failures[0].document_id == "bad"

    def test_document_without_id(self, ready_writer):
        outcome = ready_writer.bulk_index("mentors", [mentor_doc(1), {"name": "no id"}])
        assert (outcome.succeeded, outcome.failed) == (1, 1)
        assert outcome.failures[0].document_id == "None"

    def test_non_mapping_items_counted_as_failures(self, ready_writer):
        docs = [mentor_doc(1), None, "m2"]
        outcome = ready_writer.bulk_index("mentors", docs)
        assert (outcome.succeeded, outcome.failed) == (1, 2)
        assert outcome.succeeded + outcome.failed == len(docs)
        assert {(f.document_id, f.reason) for f in outcome.failures} == {("None", "invalid document")}

    def test_batch_failure_continues(self, ready_writer, fake_es):
        fake_es.errors["bulk"] = api_error(status=413, error_type="request_entity_too_large")
        outcome = ready_writer.bulk_index("mentors", [mentor_doc(i) for i in range(3)])
        assert (outcome.succeeded, outcome.failed) == (0, 3)
        assert len(fake_es.calls_to("bulk")) == 2

    def test_missing_items_counted_as_failures(self, ready_writer, fake_es):
        fake_es.responses["bulk"] = {"errors": True, "items": [{"index": {"status": 201}}]}
        outcome = ready_writer.bulk_index("mentors", [mentor_doc(1), mentor_doc(2)])
        assert (outcome.succeeded, outcome.failed) == (1, 1)
        assert outcome.failures[0].reason == "missing item in bulk response"

    def test_refresh_failure_not_counted(self, ready_writer, fake_es):
        fake_es.errors["indices.refresh"] = api_error(status=500)
        outcome = ready_writer.bulk_index("mentors", [mentor_doc(1)])
        assert (outcome.succeeded, outcome.failed) == (1, 0)

    def test_engine_unavailable(self, down_writer):
        outcome = down_writer.bulk_index("mentors", [mentor_doc(i) for i in range(4)])
        assert (outcome.succeeded, outcome.failed) == (0, 4)

    def test_unknown_content_type(self, ready_writer):
        outcome = ready_writer.bulk_index("events", [mentor_doc(1), mentor_doc(2)])
        assert outcome.failed == 2
        assert "Unknown content type" in outcome.failures[0].reason

    def test_empty_input(self, ready_writer, fake_es):
        outcome = ready_writer.bulk_index("mentors", [])
        assert outcome.total == 0
        assert fake_es.calls_to("bulk") == []


class TestDeleteDocument:
    """Deletes treat missing documents as success."""

    def test_delete_twice(self, ready_writer, fake_es):
        ready_writer.index_document("jobs", 9, {"title": "x"})
        first = ready_writer.delete_document("jobs", 9)
        second = ready_writer.delete_document("jobs", 9)
        assert first and second
        assert "9" not in fake_es.docs("test_jobs")
        assert fake_es.calls_to("delete")[0]["refresh"] == "wait_for"

    def test_delete_unavailable(self, down_writer):
        assert down_writer.delete_document("jobs", 9).status == WriteStatus.UNAVAILABLE

    def test_delete_failure(self, ready_writer, fake_es):
        fake_es.errors["delete"] = api_error(status=500)
        assert ready_writer.delete_document("jobs", 9).status == WriteStatus.FAILED
