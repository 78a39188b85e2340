"""CLI command groups"""


def build_service():
    """Service wired from environment settings"""
    from ...service import SearchService

    return SearchService.from_settings()
