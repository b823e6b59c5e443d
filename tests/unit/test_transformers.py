"""
Unit tests for value normalization
"""

import pytest
from datetime import date, datetime, timedelta, timezone
from core.exceptions import TransformationError
from migration.transformers import RowNormalizer, to_iso_timestamp


class TestToIsoTimestamp:
    """Test canonical timestamp rendering"""

    def test_none_stays_none(self):
        assert to_iso_timestamp(None) is None

    def test_aware_datetime(self):
        value = datetime(2024, 1, 15, 10, 0, 0, 123456, tzinfo=timezone.utc)
        assert to_iso_timestamp(value) == "2024-01-15T10:00:00.123Z"

    def test_offset_is_converted_to_utc(self):
        value = datetime(2024, 1, 15, 12, 30, tzinfo=timezone(timedelta(hours=2)))
        assert to_iso_timestamp(value) == "2024-01-15T10:30:00.000Z"

    def test_naive_datetime_is_taken_as_utc(self):
        assert to_iso_timestamp(datetime(2024, 1, 15, 10, 0)) == "2024-01-15T10:00:00.000Z"

    def test_date(self):
        assert to_iso_timestamp(date(2024, 1, 15)) == "2024-01-15T00:00:00.000Z"

    def test_epoch_milliseconds(self):
        assert to_iso_timestamp(1705312800000) == "2024-01-15T10:00:00.000Z"

    def test_iso_string_with_offset(self):
        assert to_iso_timestamp("2024-01-15 11:00:00+01:00") == "2024-01-15T10:00:00.000Z"

    def test_idempotent(self):
        once = to_iso_timestamp(datetime(2024, 1, 15, 10, 0, 0, 5000, tzinfo=timezone.utc))
        assert to_iso_timestamp(once) == once
        assert to_iso_timestamp(to_iso_timestamp(once)) == once

    def test_unparseable_string_raises(self):
        with pytest.raises(TransformationError) as exc_info:
            to_iso_timestamp("not a date")
        assert exc_info.value.context["value"] == "not a date"

    def test_boolean_raises(self):
        with pytest.raises(TransformationError):
            to_iso_timestamp(True)


class TestRowNormalizer:

    def test_only_timestamp_fields_change(self):
        normalizer = RowNormalizer(["created_at", "updated_at"])
        row = {
            "id": 7,
            "location_id": "CAM-0007",
            "altitude": None,
            "created_at": datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc),
            "updated_at": None,
        }

        result = normalizer.normalize(row)

        assert result == {
            "id": 7,
            "location_id": "CAM-0007",
            "altitude": None,
            "created_at": "2024-01-15T10:00:00.000Z",
            "updated_at": None,
        }

    def test_input_row_is_not_mutated(self):
        created = datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)
        row = {"id": 1, "created_at": created}

        RowNormalizer(["created_at"]).normalize(row)

        assert row["created_at"] is created

    def test_without_timestamp_fields_returns_copy(self):
        row = {"id": 1, "display_name": "Road 1"}
        result = RowNormalizer().normalize(row)

        assert result == row
        assert result is not row
