"""Utils package exports"""

from ngurra_search.utils.logger import setup_logger

__all__ = [
    "setup_logger",
]
