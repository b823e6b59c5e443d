"""
Pydantic schemas for API response models
"""

from pydantic import BaseModel, Field
from typing import Optional, List, Dict
from datetime import datetime, timezone
from models.base import CheckpointStatus


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


# ============================================================================
# Health Check Schemas
# ============================================================================

class HealthCheckResponse(BaseModel):
    """Health check response model"""
    status: str = Field(..., description="Overall status: healthy, degraded, unhealthy")
    timestamp: datetime = Field(default_factory=_utc_now)
    table_name: str
    destination_connected: bool
    source_connected: bool

    class Config:
        json_schema_extra = {
            "example": {
                "status": "healthy",
                "timestamp": "2024-01-15T10:30:00Z",
                "table_name": "camera_locations",
                "destination_connected": True,
                "source_connected": True
            }
        }


def overall_status(destination_connected: bool, source_connected: bool) -> str:
    if destination_connected and source_connected:
        return "healthy"
    if destination_connected or source_connected:
        return "degraded"
    return "unhealthy"


# ============================================================================
# Progress Schemas
# ============================================================================

class CheckpointInfo(BaseModel):
    """One checkpoint as shown in progress reports"""
    id: int
    start_id: int
    end_id: int
    status: CheckpointStatus
    records_processed: int
    error_message: Optional[str] = None
    started_at: Optional[str] = None
    completed_at: Optional[str] = None

    class Config:
        from_attributes = True
        use_enum_values = True


class ProgressResponse(BaseModel):
    """Checkpoint progress of one table"""
    table_name: str
    total_checkpoints: int
    status_counts: Dict[str, int]
    percent_complete: float
    records_processed: int
    last_completed: Optional[CheckpointInfo] = None
    failed: List[CheckpointInfo] = Field(default_factory=list)
    stuck: List[CheckpointInfo] = Field(default_factory=list)
