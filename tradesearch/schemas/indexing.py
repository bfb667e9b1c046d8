"""Pydantic models for the indexing pipeline."""

from typing import Any, Dict, List

from pydantic import BaseModel, Field


class BulkDocument(BaseModel):
    """One document of a bulk write, addressed by its id."""

    id: str = Field(..., min_length=1)
    doc: Dict[str, Any]


class BulkItemFailure(BaseModel):
    id: str
    reason: str
    status: int = 0


class BulkWriteOutcome(BaseModel):
    """Partial-failure report of a bulk write.

    Never an all-or-nothing transaction: succeeded items stay written even
    when others fail, so a caller can retry only `failed`.
    """

    attempted: int = 0
    succeeded: int = 0
    failed: List[BulkItemFailure] = Field(default_factory=list)

    @property
    def has_failures(self) -> bool:
        return bool(self.failed)

    @property
    def failed_ids(self) -> List[str]:
        return [failure.id for failure in self.failed]

    def merge(self, other: "BulkWriteOutcome") -> "BulkWriteOutcome":
        return BulkWriteOutcome(
            attempted=self.attempted + other.attempted,
            succeeded=self.succeeded + other.succeeded,
            failed=self.failed + other.failed,
        )
