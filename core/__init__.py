"""
Core utilities and configuration for the migration engine.

Modules:
    config: Settings loaded from environment / .env (pydantic-settings)
    database: Source database engine creation
    exceptions: Custom exception hierarchy for error handling
    logging: Logging configuration
    retry: Retry policy value and the generic call-with-retry primitive

Usage:
    from core.config import Settings
    from core.logging import setup_logging
    from core.exceptions import RemoteError, CheckpointError

Example:
    settings = Settings()
    setup_logging(settings)
"""

__all__ = [
    "Settings",
    "RetryPolicy",
    "call_with_retry",
    "create_source_engine",
    "setup_logging",
    # Exceptions
    "MigrationException",
    "ConfigurationError",
    "RemoteError",
    "SourceError",
    "SourceConnectionError",
    "TransformationError",
    "CheckpointError",
    "InvalidTransitionError",
]
