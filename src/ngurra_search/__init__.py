"""
ngurra_search: search and indexing integration layer.

Keeps an Elasticsearch index in step with the authoritative record store,
runs faceted queries against it and falls back to the store when the
engine is unreachable.
"""

__version__ = "1.0.0"
