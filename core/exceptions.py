"""
Custom exceptions for the migration engine with structured error context.

Every exception carries a context dict so that a failure can always be
traced back to the table, checkpoint and ID range it happened in.

Exception Hierarchy:
    MigrationException (base)
    ├── ConfigurationError
    ├── RemoteError
    ├── SourceError
    │   └── SourceConnectionError
    ├── TransformationError
    └── CheckpointError
        └── InvalidTransitionError
"""

from typing import Optional, Dict, Any
from datetime import datetime, timezone


class MigrationException(Exception):
    """
    Base exception for all migration errors.

    Attributes:
        message: Human-readable error message
        context: Additional context information (table, checkpoint, etc.)
        original_exception: The original exception that was caught (if any)
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        self.message = message
        self.context = context or {}
        self.original_exception = original_exception
        self.timestamp = datetime.now(timezone.utc)

        self.context["error_timestamp"] = self.timestamp.isoformat()

        super().__init__(message)
        if original_exception:
            self.__cause__ = original_exception

    def __str__(self) -> str:
        base_msg = f"{self.__class__.__name__}: {self.message}"

        if self.original_exception:
            base_msg += f" | Caused by: {type(self.original_exception).__name__}: {self.original_exception}"

        return base_msg

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "original_error": str(self.original_exception) if self.original_exception else None
        }


class ConfigurationError(MigrationException):
    """
    Missing credentials, unknown table profile or impossible batch sizing.

    Raised at startup, before any remote state is created.
    """
    pass


class RemoteError(MigrationException):
    """
    The destination reported a failure.

    Covers transport failures (network error, non-2xx status, body that is
    not JSON) and application failures (``success: false``).

    Context includes:
        - status_code: HTTP status code (if a response was received)
        - upstream: Error text reported by the destination
    """

    MISSING_RELATION_MARKERS = ("no such table",)

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        upstream: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        context = context or {}
        context.setdefault("status_code", status_code)
        super().__init__(message, context, original_exception)
        self.status_code = status_code
        self.upstream = upstream or ""

    @property
    def is_missing_relation(self) -> bool:
        text = f"{self.message} {self.upstream}".lower()
        return any(marker in text for marker in self.MISSING_RELATION_MARKERS)


class SourceError(MigrationException):
    """
    A query against the source database failed.

    Context includes:
        - table_name: Source table
        - start_id / end_id: ID range being fetched (if applicable)
    """
    pass


class SourceConnectionError(SourceError):
    """The source connection was dead and reconnecting failed."""
    pass


class TransformationError(MigrationException):
    """A source value could not be normalized (e.g. unparseable timestamp)."""
    pass


class CheckpointError(MigrationException):
    """
    Processing of one checkpoint failed.

    Context includes:
        - checkpoint_id: Checkpoint identity
        - start_id / end_id: The inclusive ID range of the checkpoint
        - table_name: Source table
    """

    def __init__(
        self,
        message: str,
        checkpoint_id: Optional[int] = None,
        start_id: Optional[int] = None,
        end_id: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        context = context or {}
        context.update(checkpoint_id=checkpoint_id, start_id=start_id, end_id=end_id)
        super().__init__(message, context, original_exception)
        self.checkpoint_id = checkpoint_id
        self.start_id = start_id
        self.end_id = end_id


class InvalidTransitionError(CheckpointError):
    """A checkpoint status change not allowed by the state machine."""
    pass
