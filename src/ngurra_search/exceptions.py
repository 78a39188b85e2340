"""
Custom exception hierarchy for ngurra search.

All exceptions inherit from NgurraSearchError base class.
"""


class NgurraSearchError(Exception):
    """Base exception for all ngurra search errors"""
    pass


class UnknownContentTypeError(NgurraSearchError):
    """Content type is not declared in the index catalog"""

    def __init__(self, content_type):
        self.content_type = content_type
        super().__init__(f"Unknown content type: {content_type}")


class EngineUnavailableError(NgurraSearchError):
    """Search engine could not be reached"""
    pass


class StoreError(NgurraSearchError):
    """Error while reading from or writing to the record store"""
    pass


class ProjectionError(NgurraSearchError):
    """Record could not be projected into an index document"""

    def __init__(self, record_id, reason: str):
        self.record_id = record_id
        self.reason = reason
        super().__init__(f"Cannot project record {record_id}: {reason}")


class ConfigurationError(NgurraSearchError):
    """Error in configuration"""
    pass
