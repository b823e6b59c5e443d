"""
Pydantic schemas for migration state and API responses.

Schemas:
    migration: Table statistics, checkpoints, verification results and
        run summaries passed between planner, processor and runner
    api: Health and progress responses of the status API

Usage:
    from schemas.migration import Checkpoint, MigrationSummary
    from schemas.api import HealthCheckResponse, ProgressResponse

Example:
    # Build a checkpoint from a row of the checkpoint table
    checkpoint = Checkpoint.model_validate(row)
    assert checkpoint.width == checkpoint.end_id - checkpoint.start_id + 1
"""

__all__ = [
    "TableStats",
    "Checkpoint",
    "CheckpointFailure",
    "VerificationResult",
    "MigrationSummary",
    "HealthCheckResponse",
    "ProgressResponse",
]
