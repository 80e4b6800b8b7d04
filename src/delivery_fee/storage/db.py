from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

SCHEMA = """
CREATE TABLE IF NOT EXISTS weather_observations (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    station_name TEXT NOT NULL,
    wmo_code TEXT,
    observed_at TEXT NOT NULL,
    air_temperature REAL,
    wind_speed REAL,
    phenomenon TEXT,
    UNIQUE (station_name, observed_at)
);
CREATE INDEX IF NOT EXISTS idx_weather_station_time
    ON weather_observations (station_name, observed_at);

CREATE TABLE IF NOT EXISTS fee_rule_snapshots (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    effective_from TEXT NOT NULL,
    tallinn_car_base_fee REAL NOT NULL,
    tallinn_scooter_base_fee REAL NOT NULL,
    tallinn_bike_base_fee REAL NOT NULL,
    tartu_car_base_fee REAL NOT NULL,
    tartu_scooter_base_fee REAL NOT NULL,
    tartu_bike_base_fee REAL NOT NULL,
    parnu_car_base_fee REAL NOT NULL,
    parnu_scooter_base_fee REAL NOT NULL,
    parnu_bike_base_fee REAL NOT NULL,
    atef_below_minus_ten REAL NOT NULL,
    atef_below_zero REAL NOT NULL,
    wsef_fee REAL NOT NULL,
    wpef_snow_or_sleet REAL NOT NULL,
    wpef_rain REAL NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_fee_rule_effective_from
    ON fee_rule_snapshots (effective_from);
"""


def _prepare_db_path(db_path: Path) -> Path:
    normalized = Path(db_path)
    normalized.parent.mkdir(parents=True, exist_ok=True)
    return normalized


def connect(db_path: Path) -> sqlite3.Connection:
    normalized = _prepare_db_path(db_path)
    connection = sqlite3.connect(normalized)
    connection.row_factory = sqlite3.Row
    connection.execute("PRAGMA journal_mode = WAL;")
    connection.execute("PRAGMA synchronous = NORMAL;")
    return connection


def ensure_schema(connection: sqlite3.Connection) -> None:
    connection.executescript(SCHEMA)
    connection.commit()


@contextmanager
def open_db(db_path: Path) -> Iterator[sqlite3.Connection]:
    connection = connect(db_path)
    try:
        ensure_schema(connection)
        yield connection
    finally:
        connection.close()


def initialize_database(db_path: Path) -> None:
    with open_db(db_path):
        return
