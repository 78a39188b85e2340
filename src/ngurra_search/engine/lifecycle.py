"""
Index lifecycle manager.

Creates missing indices from the catalog. Each content type is handled
independently: one failed creation does not roll back the others.
"""

from typing import Any, Dict

from loguru import logger

from ngurra_search.catalog import IndexCatalog
from ngurra_search.engine.connection import ENGINE_ERRORS, ConnectionManager, as_dict


class IndexLifecycleManager:
    """Idempotent index creation and per-index statistics."""

    def __init__(self, connection: ConnectionManager, catalog: IndexCatalog):
        self.connection = connection
        self.catalog = catalog

    def ensure_indices(self) -> bool:
        """
        Create every catalog index that does not exist yet.

        Safe to call on every process start.

        Returns:
            True if every index exists afterwards, False if the engine is
            unavailable or any creation failed
        """
        es = self.connection.get_client()
        if es is None:
            logger.warning("Cannot ensure indices: Elasticsearch unavailable")
            return False

        all_ok = True
        for definition in self.catalog:
            try:
                if es.indices.exists(index=definition.physical_name):
                    continue
                body = definition.body()
                es.indices.create(
                    index=definition.physical_name,
                    settings=body["settings"],
                    mappings=body["mappings"],
                )
                logger.info(f"Created Elasticsearch index: {definition.physical_name}")
            except ENGINE_ERRORS as e:
                self.connection.report_failure(e)
                logger.error(f"Failed to create index {definition.physical_name}: {e}")
                all_ok = False

        return all_ok

    def index_stats(self) -> Dict[str, Dict[str, Any]]:
        """
        Document count and store size per physical index.

        Returns:
            Mapping of content type key -> stats; empty if unavailable
        """
        es = self.connection.get_client()
        if es is None:
            return {}

        stats: Dict[str, Dict[str, Any]] = {}
        for definition in self.catalog:
            try:
                raw = as_dict(es.indices.stats(index=definition.physical_name))
            except ENGINE_ERRORS as e:
                self.connection.report_failure(e)
                stats[definition.key.value] = {"index": definition.physical_name, "error": str(e)}
                continue

            primaries = raw.get("_all", {}).get("primaries", {})
            stats[definition.key.value] = {
                "index": definition.physical_name,
                "doc_count": primaries.get("docs", {}).get("count", 0),
                "store_size_bytes": primaries.get("store", {}).get("size_in_bytes", 0),
            }

        return stats
