"""
Resumable, checkpointed transfer of rows from PostgreSQL to Cloudflare D1.

Modules:
    batching: Rows-per-insert sizing under the bound-parameter ceiling
    profiles: The closed set of migratable tables (columns, transform, DDL)
    gateway: D1 HTTP gateway with retry/backoff and create-if-missing DDL
    source: Read-only PostgreSQL row source with reconnect
    checkpoint_store: Checkpoint persistence on the destination
    planner: Partitions a table's ID space into checkpoints
    processor: Claims and migrates checkpoints one at a time
    runner: Bootstrap -> plan -> process for the configured table
    scheduler: APScheduler job that re-runs the migration until verified

Subpackages:
    transformers: Row value normalization (timestamps)

Architecture:
    All progress lives in the checkpoint table on the destination. A run
    keeps no state of its own, so re-running the same command resumes
    from the first pending or failed range.

Usage:
    from migration.runner import MigrationRunner

Example:
    settings = Settings()
    engine = create_source_engine(settings)
    async with D1Gateway(settings) as gateway, PostgresSource(engine) as source:
        summary = await MigrationRunner(settings, source, gateway).run()

    print(f"Migrated {summary.total_processed} records")
"""

__all__ = [
    "max_batch_rows",
    "resolve_batch_size",
    "TableProfile",
    "get_profile",
    "D1Gateway",
    "PostgresSource",
    "CheckpointStore",
    "CheckpointPlanner",
    "CheckpointProcessor",
    "MigrationRunner",
    "MigrationScheduler",
]
