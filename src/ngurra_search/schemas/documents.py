"""Index document model."""

from typing import Any, Dict

from pydantic import BaseModel, Field, field_validator


class IndexableDocument(BaseModel):
    """
    Flattened, denormalized projection of one authoritative record.
    
    The id is the record's own primary key; the engine never generates ids,
    so writing the same document twice is a full-replace upsert.
    """
    
    id: str = Field(..., min_length=1)
    body: Dict[str, Any] = Field(default_factory=dict)
    
    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value):
        return str(value) if value is not None else value
