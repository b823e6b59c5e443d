"""
Source table definitions (SQLAlchemy Core) and their destination DDL.

Source tables are only ever read, so they are declared as Core ``Table``
objects for building range queries; the destination copies are SQLite
tables created through the gateway from the DDL kept next to them.
"""

from sqlalchemy import Table, Column, BigInteger, Float, Text, DateTime
from models.base import metadata


coordinate_speed_new = Table(
    "coordinate_speed_new",
    metadata,
    Column("id", BigInteger, primary_key=True),
    Column("latitude", Float, nullable=False),
    Column("longitude", Float, nullable=False),
    Column("api_speed_limit", Float),
    Column("bearing", Float),
    Column("display_name", Text),
)

camera_locations = Table(
    "camera_locations",
    metadata,
    Column("id", BigInteger, primary_key=True),
    Column("location_id", Text),
    Column("longitude", Float, nullable=False),
    Column("latitude", Float, nullable=False),
    Column("altitude", Float),
    Column("created_at", DateTime(timezone=True)),
    Column("updated_at", DateTime(timezone=True)),
)


COORDINATE_SPEED_DDL = (
    """
CREATE TABLE coordinate_speed_new (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  latitude REAL NOT NULL,
  longitude REAL NOT NULL,
  api_speed_limit REAL,
  bearing REAL,
  display_name TEXT
)
""".strip(),
    "CREATE INDEX idx_coordinate_latitude_longitude ON coordinate_speed_new(latitude, longitude)",
    "CREATE INDEX idx_coordinate_display_name ON coordinate_speed_new(display_name)",
)

CAMERA_LOCATIONS_DDL = (
    """
CREATE TABLE camera_locations (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  location_id TEXT,
  longitude REAL NOT NULL,
  latitude REAL NOT NULL,
  altitude REAL,
  created_at TEXT,
  updated_at TEXT
)
""".strip(),
    "CREATE INDEX idx_camera_location_id ON camera_locations(location_id)",
    "CREATE INDEX idx_camera_latitude_longitude ON camera_locations(latitude, longitude)",
    "CREATE INDEX idx_camera_created_at ON camera_locations(created_at)",
)
