from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from pathlib import Path

from ..domain.models import WeatherObservation
from .db import open_db
from .versioned import VersionedTable, format_timestamp, parse_timestamp

LOGGER = logging.getLogger(__name__)


def _row_to_observation(row: sqlite3.Row) -> WeatherObservation:
    return WeatherObservation(
        id=int(row["id"]),
        station_name=row["station_name"],
        wmo_code=row["wmo_code"],
        observed_at=parse_timestamp(row["observed_at"]),
        air_temperature=row["air_temperature"],
        wind_speed=row["wind_speed"],
        phenomenon=row["phenomenon"],
    )


OBSERVATIONS = VersionedTable(
    table="weather_observations",
    timestamp_column="observed_at",
    row_factory=_row_to_observation,
    partition_column="station_name",
)


def insert_observation(db_path: Path, observation: WeatherObservation) -> bool:
    """Store an observation; returns False when the station already has one at that time."""
    with open_db(db_path) as connection:
        cursor = connection.execute(
            """
            INSERT OR IGNORE INTO weather_observations (
                station_name, wmo_code, observed_at, air_temperature, wind_speed, phenomenon
            )
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                observation.station_name,
                observation.wmo_code,
                format_timestamp(observation.observed_at),
                observation.air_temperature,
                observation.wind_speed,
                observation.phenomenon,
            ),
        )
        connection.commit()
        inserted = cursor.rowcount > 0

    if not inserted:
        LOGGER.debug(
            "Skipped duplicate observation for '%s' at %s",
            observation.station_name,
            observation.observed_at,
        )
    return inserted


def get_latest_observation(db_path: Path, station_name: str) -> WeatherObservation | None:
    return OBSERVATIONS.latest(db_path, partition=station_name)


def get_observation_at_or_before(
    db_path: Path,
    station_name: str,
    as_of: datetime,
) -> WeatherObservation | None:
    return OBSERVATIONS.at_or_before(db_path, as_of, partition=station_name)


def list_observations(db_path: Path, station_name: str, *, limit: int = 50) -> list[WeatherObservation]:
    if limit < 1:
        raise ValueError("limit must be >= 1")
    with open_db(db_path) as connection:
        rows = connection.execute(
            """
            SELECT * FROM weather_observations
            WHERE station_name = ?
            ORDER BY observed_at DESC, id DESC
            LIMIT ?
            """,
            (station_name, limit),
        ).fetchall()
    return [_row_to_observation(row) for row in rows]
