"""
Index catalog.

Static map of content type -> physical index name, settings, mappings and
search profile. Built once at process start and shared read-only.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Union

from loguru import logger

from ngurra_search.config import Settings, settings as default_settings
from ngurra_search.content_types import ContentType
from ngurra_search.exceptions import UnknownContentTypeError
from ngurra_search.profiles import PROFILES, SearchProfile


@dataclass(frozen=True)
class IndexDefinition:
    """Immutable description of one physical index."""

    key: ContentType
    physical_name: str
    settings: Mapping[str, Any]
    field_schema: Mapping[str, Any]
    profile: SearchProfile

    def body(self) -> Dict[str, Any]:
        """Settings and mappings for index creation"""
        return {
            "settings": dict(self.settings),
            "mappings": {"properties": dict(self.field_schema)},
        }


class IndexCatalog:
    """
    Resolves content types to their index definitions.

    Unknown content types are programmer errors and raise
    UnknownContentTypeError before any network call is made.
    """

    def __init__(self, settings: Optional[Settings] = None):
        """
        Build definitions for every registered profile.

        Args:
            settings: Settings providing index prefix, shards and replicas
        """
        self.settings = settings or default_settings
        definitions = {}

        for profile_cls in PROFILES:
            profile = profile_cls()
            index_settings: Dict[str, Any] = {
                "number_of_shards": self.settings.index_shards,
                "number_of_replicas": self.settings.index_replicas,
            }
            if profile.analysis:
                index_settings["analysis"] = profile.analysis

            definitions[profile.content_type] = IndexDefinition(
                key=profile.content_type,
                physical_name=self.settings.physical_index_name(profile.key),
                settings=MappingProxyType(index_settings),
                field_schema=MappingProxyType(profile.index_properties()),
                profile=profile,
            )

        self._definitions = MappingProxyType(definitions)
        logger.debug(f"Index catalog loaded: {', '.join(d.physical_name for d in self)}")

    def resolve(self, content_type: Union[str, ContentType]) -> IndexDefinition:
        """
        Look up the definition for a content type.

        Args:
            content_type: Content type key (e.g. "jobs") or enum member

        Returns:
            IndexDefinition for the content type

        Raises:
            UnknownContentTypeError: If the key is not in the catalog
        """
        try:
            key = ContentType(content_type)
        except (TypeError, ValueError):
            raise UnknownContentTypeError(content_type) from None
        return self._definitions[key]

    def definitions(self) -> List[IndexDefinition]:
        """Every index definition, in registration order"""
        return list(self._definitions.values())

    def __contains__(self, content_type) -> bool:
        try:
            self.resolve(content_type)
        except UnknownContentTypeError:
            return False
        return True

    def __iter__(self) -> Iterator[IndexDefinition]:
        return iter(self._definitions.values())

    def __len__(self) -> int:
        return len(self._definitions)

    @property
    def content_types(self):
        return list(self._definitions.keys())
