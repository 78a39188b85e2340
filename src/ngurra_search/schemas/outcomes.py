"""
Typed outcomes for write operations and health checks.

Engine failures never propagate to callers as exceptions; they are
reported through these models instead so callers can branch on them.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class WriteStatus(str, Enum):
    """Outcome of a single-document write."""
    
    SUCCESS = "success"
    FAILED = "failed"                              # Engine rejected or transport error
    UNAVAILABLE = "unavailable"                    # Engine not connected
    UNKNOWN_CONTENT_TYPE = "unknown_content_type"  # Not in the catalog


class WriteResult(BaseModel):
    """Result of index_document / delete_document; truthy only on success."""
    
    status: WriteStatus
    content_type: str
    document_id: str
    reason: Optional[str] = None
    
    @property
    def ok(self) -> bool:
        return self.status == WriteStatus.SUCCESS
    
    def __bool__(self) -> bool:
        return self.ok


class BulkFailure(BaseModel):
    """One document that did not make it into the index."""
    
    document_id: str
    reason: str


class BulkWriteOutcome(BaseModel):
    """
    Per-call accounting for bulk_index.
    
    Invariant: succeeded + failed equals the number of submitted documents.
    """
    
    succeeded: int = 0
    failed: int = 0
    failures: List[BulkFailure] = Field(default_factory=list)
    
    @property
    def total(self) -> int:
        return self.succeeded + self.failed
    
    def record_success(self, count: int = 1) -> None:
        self.succeeded += count
    
    def record_failure(self, document_id: str, reason: str) -> None:
        self.failed += 1
        self.failures.append(BulkFailure(document_id=str(document_id), reason=reason))
    
    def merge(self, other: "BulkWriteOutcome") -> "BulkWriteOutcome":
        """Combine two outcomes into a new one"""
        return BulkWriteOutcome(
            succeeded=self.succeeded + other.succeeded,
            failed=self.failed + other.failed,
            failures=self.failures + other.failures,
        )
    
    @classmethod
    def all_failed(cls, document_ids: List[str], reason: str) -> "BulkWriteOutcome":
        outcome = cls()
        for document_id in document_ids:
            outcome.record_failure(document_id, reason)
        return outcome


class HealthStatus(BaseModel):
    """Engine health as reported to the route layer."""
    
    status: str  # green / yellow / red / unavailable / error
    detail: Dict[str, Any] = Field(default_factory=dict)
