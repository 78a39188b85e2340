"""
pytest configuration and shared fixtures.
"""

import pytest

from ngurra_search.catalog import IndexCatalog
from ngurra_search.config import Settings
from ngurra_search.engine.connection import ConnectionManager
from ngurra_search.engine.writer import DocumentWriter
from ngurra_search.fallback import FallbackSearchEngine
from ngurra_search.service import SearchService
from ngurra_search.store.memory import InMemoryRecordStore

from fakes import FakeElasticsearch


@pytest.fixture
def test_settings():
    """Settings isolated from the environment with fast probes"""
    return Settings(
        _env_file=None,
        index_prefix="test",
        probe_attempts=1,
        reconnect_interval=0.0,
        bulk_batch_size=2,
        max_page_size=50,
        max_workers=2,
    )


@pytest.fixture
def fake_es():
    """Reachable in-process Elasticsearch"""
    return FakeElasticsearch()


@pytest.fixture
def catalog(test_settings):
    return IndexCatalog(test_settings)


@pytest.fixture
def connection(test_settings, fake_es):
    """Connection manager bound to the fake client"""
    manager = ConnectionManager(test_settings, client=fake_es)
    manager.connect()
    return manager


@pytest.fixture
def store():
    return InMemoryRecordStore()


@pytest.fixture
def writer(connection, catalog, test_settings):
    return DocumentWriter(connection, catalog, test_settings)


@pytest.fixture
def fallback(store, catalog):
    return FallbackSearchEngine(store, catalog)


@pytest.fixture
def service(store, connection, catalog, test_settings):
    """Started service over the fake engine and the in-memory store"""
    svc = SearchService(store, connection=connection, catalog=catalog, settings=test_settings)
    assert svc.start()
    return svc
