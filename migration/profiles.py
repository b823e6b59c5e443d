"""
Table profiles: the closed set of tables this engine knows how to migrate.

A profile bundles everything that differs per table (insert columns, the
row transform, destination DDL) and is selected once at startup.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence, Tuple

from sqlalchemy import Table

from core.exceptions import ConfigurationError
from migration.transformers.normalizer import RowNormalizer
from models.tables import (
    camera_locations,
    coordinate_speed_new,
    CAMERA_LOCATIONS_DDL,
    COORDINATE_SPEED_DDL,
)


@dataclass(frozen=True)
class TableProfile:
    name: str
    source_table: Table
    columns: Tuple[str, ...]
    ddl: Tuple[str, ...]
    timestamp_fields: Tuple[str, ...] = ()
    normalizer: RowNormalizer = field(init=False, compare=False, repr=False)

    def __post_init__(self):
        object.__setattr__(self, "normalizer", RowNormalizer(self.timestamp_fields))

    @property
    def column_count(self) -> int:
        return len(self.columns)

    @property
    def source_columns(self) -> Tuple[str, ...]:
        """Columns selected from the source: the ID followed by the insert columns"""
        return ("id",) + self.columns

    def transform(self, row: Dict[str, Any]) -> Dict[str, Any]:
        return self.normalizer.normalize(row)

    def build_insert(self, rows: Sequence[Dict[str, Any]]) -> Tuple[str, List[Any]]:
        """Multi-row parameterized INSERT for ``rows`` (source IDs are not carried over)."""
        if not rows:
            raise ValueError("Cannot build an INSERT for zero rows")

        row_placeholder = "(" + ", ".join("?" for _ in self.columns) + ")"
        placeholders = ", ".join(row_placeholder for _ in rows)
        sql = f"INSERT INTO {self.name} ({', '.join(self.columns)}) VALUES {placeholders}"
        params = [row.get(column) for row in rows for column in self.columns]
        return sql, params


COORDINATE_SPEED = TableProfile(
    name="coordinate_speed_new",
    source_table=coordinate_speed_new,
    columns=("latitude", "longitude", "api_speed_limit", "bearing", "display_name"),
    ddl=COORDINATE_SPEED_DDL,
)

CAMERA_LOCATIONS = TableProfile(
    name="camera_locations",
    source_table=camera_locations,
    columns=("location_id", "longitude", "latitude", "altitude", "created_at", "updated_at"),
    ddl=CAMERA_LOCATIONS_DDL,
    timestamp_fields=("created_at", "updated_at"),
)

PROFILES: Dict[str, TableProfile] = {
    profile.name: profile for profile in (COORDINATE_SPEED, CAMERA_LOCATIONS)
}


def get_profile(table_name: str) -> TableProfile:
    try:
        return PROFILES[table_name]
    except KeyError:
        raise ConfigurationError(
            f"Unknown table: {table_name}",
            context={"table_name": table_name, "known_tables": sorted(PROFILES)}
        )
