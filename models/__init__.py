"""
Persisted-state definitions for the migration.

Models:
    base: Shared MetaData, CheckpointStatus / FailurePolicy enums and the
        checkpoint state machine
    checkpoint: DDL of the checkpoint table kept on the destination
    tables: Source tables (SQLAlchemy Core) and destination DDL for each

Usage:
    from models.base import CheckpointStatus, can_transition
    from models.checkpoint import CHECKPOINT_TABLE, CHECKPOINT_DDL
    from models.tables import camera_locations

State machine:
    pending -> in_progress -> completed | failed
    failed -> in_progress (retry)
    completed is terminal
"""

__all__ = [
    "metadata",
    "CheckpointStatus",
    "FailurePolicy",
    "ELIGIBLE_STATUSES",
    "can_transition",
    "CHECKPOINT_TABLE",
    "CHECKPOINT_DDL",
    "coordinate_speed_new",
    "camera_locations",
]
