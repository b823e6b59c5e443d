"""
Checkpoint table stored on the destination.

Purpose:
- Resume a migration from the first range that is not completed
- Record per-range outcome (records processed, error text, timestamps)

Design:
- One row per contiguous, inclusive source ID range of one table
- Reached only through the destination gateway, so the schema is kept as
  SQLite DDL rather than an ORM mapping
"""

CHECKPOINT_TABLE = "migration_checkpoints"

CREATE_CHECKPOINT_TABLE = """
CREATE TABLE migration_checkpoints (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  table_name TEXT NOT NULL,
  start_id INTEGER NOT NULL,
  end_id INTEGER NOT NULL,
  records_processed INTEGER DEFAULT 0,
  status TEXT NOT NULL CHECK(status IN ('pending', 'in_progress', 'completed', 'failed')),
  error_message TEXT,
  started_at TEXT,
  completed_at TEXT,
  created_at TEXT DEFAULT (datetime('now'))
)
""".strip()

CHECKPOINT_INDEXES = (
    "CREATE INDEX idx_checkpoint_table_status ON migration_checkpoints(table_name, status)",
    "CREATE INDEX idx_checkpoint_table_range ON migration_checkpoints(table_name, start_id, end_id)",
)

CHECKPOINT_DDL = (CREATE_CHECKPOINT_TABLE,) + CHECKPOINT_INDEXES
