"""Search analytics models."""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field, field_validator

MAX_QUERY_LENGTH = 500


class SearchLogEntry(BaseModel):
    """Append-only record of one user-facing search."""
    
    content_type: str
    query_text: str
    result_count: int = Field(0, ge=0)
    actor_id: Optional[str] = None
    degraded: bool = False
    duration_ms: Optional[int] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    
    @field_validator("query_text", mode="before")
    @classmethod
    def _truncate_query(cls, value):
        return (value or "")[:MAX_QUERY_LENGTH]
    
    @property
    def zero_results(self) -> bool:
        return self.result_count == 0
