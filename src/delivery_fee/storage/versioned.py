from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Generic, TypeVar

from .db import open_db

RecordT = TypeVar("RecordT")


def normalize_datetime(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_timestamp(value: datetime) -> str:
    # Fixed width so that text ordering in SQLite matches time ordering.
    return normalize_datetime(value).isoformat(timespec="microseconds")


def parse_timestamp(value: str) -> datetime:
    return normalize_datetime(datetime.fromisoformat(value))


@dataclass(frozen=True, slots=True)
class VersionedTable(Generic[RecordT]):
    """Append-only table queried by "most recent row at or before a time".

    Rows with equal timestamps are ordered by insertion id, so every lookup
    resolves to exactly one row.
    """

    table: str
    timestamp_column: str
    row_factory: Callable[[sqlite3.Row], RecordT]
    partition_column: str | None = None

    def latest(self, db_path: Path, partition: str | None = None) -> RecordT | None:
        return self._floor(db_path, None, partition)

    def at_or_before(
        self,
        db_path: Path,
        as_of: datetime,
        partition: str | None = None,
    ) -> RecordT | None:
        return self._floor(db_path, as_of, partition)

    def _where_clause(self, as_of: datetime | None, partition: str | None) -> tuple[str, list[Any]]:
        conditions: list[str] = []
        params: list[Any] = []
        if self.partition_column is not None:
            if partition is None:
                raise ValueError(f"{self.table} lookups require a {self.partition_column} value")
            conditions.append(f"{self.partition_column} = ?")
            params.append(partition)
        if as_of is not None:
            conditions.append(f"{self.timestamp_column} <= ?")
            params.append(format_timestamp(as_of))
        if not conditions:
            return "", params
        return "WHERE " + " AND ".join(conditions), params

    def _floor(self, db_path: Path, as_of: datetime | None, partition: str | None) -> RecordT | None:
        where, params = self._where_clause(as_of, partition)
        query = (
            f"SELECT * FROM {self.table} {where} "
            f"ORDER BY {self.timestamp_column} DESC, id DESC LIMIT 1"
        )
        with open_db(db_path) as connection:
            row = connection.execute(query, params).fetchone()
        if row is None:
            return None
        return self.row_factory(row)
