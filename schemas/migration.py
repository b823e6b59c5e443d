"""
Pydantic schemas for checkpoints, table statistics and run summaries
"""

from pydantic import BaseModel, Field, model_validator
from typing import Optional, List
from models.base import CheckpointStatus


class TableStats(BaseModel):
    """Row count and ID bounds of a source table"""
    count: int = Field(..., ge=0)
    min_id: Optional[int] = None
    max_id: Optional[int] = None

    @model_validator(mode="after")
    def check_bounds(self):
        if self.count > 0 and (self.min_id is None or self.max_id is None):
            raise ValueError("min_id and max_id are required for a non-empty table")
        if self.min_id is not None and self.max_id is not None and self.min_id > self.max_id:
            raise ValueError("min_id must not exceed max_id")
        return self


class Checkpoint(BaseModel):
    """
    One contiguous, inclusive ID range of a source table.

    Built from a row of the checkpoint table; the processor works on a copy
    and writes every status change back through the store.
    """
    id: int
    table_name: str
    start_id: int
    end_id: int
    records_processed: int = 0
    status: CheckpointStatus = CheckpointStatus.PENDING
    error_message: Optional[str] = None
    started_at: Optional[str] = None
    completed_at: Optional[str] = None
    created_at: Optional[str] = None

    @model_validator(mode="after")
    def check_range(self):
        if self.end_id < self.start_id:
            raise ValueError("end_id must not be lower than start_id")
        return self

    @property
    def width(self) -> int:
        return self.end_id - self.start_id + 1

    @property
    def label(self) -> str:
        return f"checkpoint {self.id} (IDs {self.start_id}-{self.end_id})"


class CheckpointFailure(BaseModel):
    checkpoint_id: int
    start_id: int
    end_id: int
    error_message: str


class VerificationResult(BaseModel):
    """Destination row count compared with the source row count"""
    source_count: int
    destination_count: int

    @property
    def matched(self) -> bool:
        return self.source_count == self.destination_count

    @property
    def missing(self) -> int:
        return self.source_count - self.destination_count


class MigrationSummary(BaseModel):
    """
    Outcome of one invocation of the processor loop.

    status values:
        - empty: the source table has no rows
        - already_completed: no eligible checkpoints were left
        - completed: every eligible checkpoint of this run completed
        - failed: at least one checkpoint failed
    """
    table_name: str
    status: str
    checkpoints_processed: int = 0
    total_processed: int = 0
    failures: List[CheckpointFailure] = Field(default_factory=list)
    verification: Optional[VerificationResult] = None

    @property
    def verified(self) -> bool:
        return self.verification is not None and self.verification.matched
