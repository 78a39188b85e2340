"""Search engine integration: connection, index lifecycle, writes, queries"""

from ngurra_search.engine.connection import ConnectionManager
from ngurra_search.engine.executor import SearchExecutor
from ngurra_search.engine.lifecycle import IndexLifecycleManager
from ngurra_search.engine.query_builder import QueryBuilder
from ngurra_search.engine.suggestions import SuggestionService
from ngurra_search.engine.writer import DocumentWriter

__all__ = [
    "ConnectionManager",
    "IndexLifecycleManager",
    "DocumentWriter",
    "QueryBuilder",
    "SearchExecutor",
    "SuggestionService",
]
