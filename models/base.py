from sqlalchemy import MetaData
import enum

metadata = MetaData()


# ============================================================================
# ENUMS
# ============================================================================

class CheckpointStatus(str, enum.Enum):
    """Checkpoint processing status"""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


class FailurePolicy(str, enum.Enum):
    """What a run does after one checkpoint fails"""
    ABORT = "abort"
    CONTINUE = "continue"


# Statuses the processor may claim
ELIGIBLE_STATUSES = (CheckpointStatus.PENDING, CheckpointStatus.FAILED)

ALLOWED_TRANSITIONS = {
    CheckpointStatus.PENDING: {CheckpointStatus.IN_PROGRESS},
    CheckpointStatus.IN_PROGRESS: {CheckpointStatus.COMPLETED, CheckpointStatus.FAILED},
    CheckpointStatus.FAILED: {CheckpointStatus.IN_PROGRESS},
    CheckpointStatus.COMPLETED: set(),
}


def can_transition(current: CheckpointStatus, target: CheckpointStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[CheckpointStatus(current)]
