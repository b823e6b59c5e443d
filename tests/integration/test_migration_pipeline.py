"""
Integration tests for complete migration runs
"""

import re
import pytest
from conftest import FakeSource, build_settings, camera_rows, coordinate_rows
from migration.profiles import CAMERA_LOCATIONS
from migration.runner import EXIT_SUCCESS, MigrationRunner, exit_code_for

ISO_UTC = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$")


@pytest.fixture
def camera_source():
    return FakeSource({"camera_locations": camera_rows(range(1, 36))})


@pytest.mark.asyncio
async def test_full_migration(settings, camera_source, gateway, fake_d1, sleep):
    runner = MigrationRunner(settings, camera_source, gateway, sleep=sleep)

    summary = await runner.run()

    assert summary.status == "completed"
    assert summary.checkpoints_processed == 2
    assert summary.total_processed == 35
    assert summary.verified
    assert exit_code_for(summary) == EXIT_SUCCESS

    checkpoints = fake_d1.rows(
        "SELECT start_id, end_id, status, records_processed, started_at, completed_at "
        "FROM migration_checkpoints ORDER BY start_id"
    )
    assert [(c["start_id"], c["end_id"]) for c in checkpoints] == [(1, 20), (21, 35)]
    assert [c["records_processed"] for c in checkpoints] == [20, 15]
    assert all(c["status"] == "completed" for c in checkpoints)
    assert all(ISO_UTC.match(c["started_at"]) and ISO_UTC.match(c["completed_at"]) for c in checkpoints)

    # 20 rows -> 16 + 4, 15 rows -> 15
    inserts = fake_d1.params_like("INSERT INTO camera_locations")
    assert [len(params) // CAMERA_LOCATIONS.column_count for params in inserts] == [16, 4, 15]
    assert all(len(params) <= settings.MAX_SQL_VARIABLES for params in inserts)
    assert camera_source.range_queries == [(1, 20), (21, 35)]


@pytest.mark.asyncio
async def test_rows_arrive_normalized_in_id_order(settings, camera_source, gateway, fake_d1, sleep):
    await MigrationRunner(settings, camera_source, gateway, sleep=sleep).run()

    rows = fake_d1.rows("SELECT * FROM camera_locations ORDER BY id")
    assert [row["location_id"] for row in rows] == [f"CAM-{i:04d}" for i in range(1, 36)]
    assert rows[0]["created_at"] == "2024-01-15T10:01:00.000Z"
    assert rows[0]["updated_at"] == "2024-01-15T11:00:00.000Z"
    assert rows[4]["updated_at"] is None
    assert all(ISO_UTC.match(row["created_at"]) for row in rows)


@pytest.mark.asyncio
async def test_bootstrap_creates_destination_tables(settings, camera_source, gateway, fake_d1, sleep):
    await MigrationRunner(settings, camera_source, gateway, sleep=sleep).run()

    tables = {row["name"] for row in fake_d1.rows("SELECT name FROM sqlite_master WHERE type = 'table'")}
    assert {"camera_locations", "migration_checkpoints"} <= tables


@pytest.mark.asyncio
async def test_rerun_after_completion_is_noop(settings, camera_source, gateway, fake_d1, sleep):
    await MigrationRunner(settings, camera_source, gateway, sleep=sleep).run()
    fake_d1.clear_statements()

    summary = await MigrationRunner(settings, camera_source, gateway, sleep=sleep).run()

    assert summary.status == "already_completed"
    assert summary.verified
    assert fake_d1.statements_like("INSERT") == []
    assert fake_d1.count("camera_locations") == 35


@pytest.mark.asyncio
async def test_empty_source_table(settings, gateway, fake_d1, sleep):
    summary = await MigrationRunner(settings, FakeSource(), gateway, sleep=sleep).run()

    assert summary.status == "empty"
    assert exit_code_for(summary) == EXIT_SUCCESS
    tables = [row["name"] for row in fake_d1.rows("SELECT name FROM sqlite_master WHERE type = 'table'")]
    assert "migration_checkpoints" not in tables


@pytest.mark.asyncio
async def test_sparse_ids_complete_empty_ranges(settings, gateway, fake_d1, sleep):
    source = FakeSource({"camera_locations": camera_rows(list(range(1, 6)) + list(range(41, 46)))})

    summary = await MigrationRunner(settings, source, gateway, sleep=sleep).run()

    checkpoints = fake_d1.rows(
        "SELECT start_id, end_id, status, records_processed FROM migration_checkpoints ORDER BY start_id"
    )
    assert [(c["start_id"], c["end_id"], c["records_processed"]) for c in checkpoints] == [
        (1, 20, 5), (21, 40, 0), (41, 45, 5)
    ]
    assert all(c["status"] == "completed" for c in checkpoints)
    assert summary.total_processed == 10
    assert summary.verified


@pytest.mark.asyncio
async def test_five_column_table_uses_larger_batches(gateway, fake_d1, sleep):
    settings = build_settings(TABLE_NAME="coordinate_speed_new", CHECKPOINT_SIZE=100)
    source = FakeSource({"coordinate_speed_new": coordinate_rows(range(1, 41))})

    summary = await MigrationRunner(settings, source, gateway, sleep=sleep).run()

    # 40 rows at 19 per statement
    assert len(fake_d1.statements_like("INSERT INTO coordinate_speed_new")) == 3
    assert summary.verified
    assert fake_d1.count("coordinate_speed_new") == 40


@pytest.mark.asyncio
async def test_replanning_leaves_other_tables_alone(settings, camera_source, gateway, fake_d1, sleep):
    await MigrationRunner(settings, camera_source, gateway, sleep=sleep).run()
    other = build_settings(TABLE_NAME="coordinate_speed_new", CHECKPOINT_SIZE=100)
    await MigrationRunner(
        other, FakeSource({"coordinate_speed_new": coordinate_rows(range(1, 11))}), gateway, sleep=sleep
    ).run()

    summary = await MigrationRunner(
        build_settings(RESUME_MODE=False, CHECKPOINT_SIZE=10), camera_source, gateway, sleep=sleep
    ).run()

    counts = fake_d1.rows(
        "SELECT table_name, COUNT(*) AS n FROM migration_checkpoints GROUP BY table_name ORDER BY table_name"
    )
    assert [(row["table_name"], row["n"]) for row in counts] == [
        ("camera_locations", 4), ("coordinate_speed_new", 1)
    ]
    # replanning reprocesses everything, so the destination now holds every row twice
    assert summary.checkpoints_processed == 4
    assert fake_d1.count("camera_locations") == 70
    assert not summary.verified
