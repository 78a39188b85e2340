"""
Index catalog.
"""

from ngurra_search.catalog.index_catalog import IndexCatalog, IndexDefinition

__all__ = [
    "IndexCatalog",
    "IndexDefinition",
]
