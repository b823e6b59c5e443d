"""
Checkpoint progress endpoint
"""

from fastapi import APIRouter, Depends, HTTPException
from api.dependencies import get_store
from core.exceptions import ConfigurationError, RemoteError
from migration.checkpoint_store import CheckpointStore
from migration.profiles import get_profile
from models.base import CheckpointStatus
from schemas.api import CheckpointInfo, ProgressResponse
import logging

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Progress"])


@router.get("/progress/{table_name}", response_model=ProgressResponse)
async def get_progress(table_name: str, store: CheckpointStore = Depends(get_store)):
    """
    Checkpoint progress for one table.

    Returns:
    - Number of checkpoints per status and percent completed
    - Records processed by completed checkpoints
    - Last completed range, failed ranges with their errors, stuck ranges
    """
    try:
        profile = get_profile(table_name)
    except ConfigurationError:
        raise HTTPException(status_code=404, detail=f"Unknown table: {table_name}")

    try:
        counts = await store.status_counts(profile.name)
        records = await store.records_completed(profile.name)
        last_completed = await store.last_completed(profile.name)
        failed = await store.list_by_status(profile.name, CheckpointStatus.FAILED)
        stuck = await store.list_by_status(profile.name, CheckpointStatus.IN_PROGRESS)
    except RemoteError as e:
        if e.is_missing_relation:
            counts = {status.value: 0 for status in CheckpointStatus}
            records, last_completed, failed, stuck = 0, None, [], []
        else:
            logger.error(f"Failed to read checkpoints of {table_name}: {e}")
            raise HTTPException(status_code=502, detail="Destination query failed")

    total = sum(counts.values())
    completed = counts.get(CheckpointStatus.COMPLETED.value, 0)

    return ProgressResponse(
        table_name=profile.name,
        total_checkpoints=total,
        status_counts=counts,
        percent_complete=round(completed / total * 100, 1) if total else 0.0,
        records_processed=records,
        last_completed=(
            CheckpointInfo.model_validate(last_completed, from_attributes=True)
            if last_completed else None
        ),
        failed=[CheckpointInfo.model_validate(c, from_attributes=True) for c in failed],
        stuck=[CheckpointInfo.model_validate(c, from_attributes=True) for c in stuck]
    )
