from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from pathlib import Path

from ..domain.models import FEE_RULE_FIELDS, FeeRuleSnapshot, FeeRuleValues
from .db import open_db
from .versioned import VersionedTable, format_timestamp, parse_timestamp


def _row_to_snapshot(row: sqlite3.Row) -> FeeRuleSnapshot:
    values = {field: float(row[field]) for field in FEE_RULE_FIELDS}
    return FeeRuleSnapshot(
        id=int(row["id"]),
        effective_from=parse_timestamp(row["effective_from"]),
        **values,
    )


RULE_SNAPSHOTS = VersionedTable(
    table="fee_rule_snapshots",
    timestamp_column="effective_from",
    row_factory=_row_to_snapshot,
)


def insert_rule_snapshot(
    db_path: Path,
    values: FeeRuleValues,
    *,
    effective_from: datetime | None = None,
) -> FeeRuleSnapshot:
    record_time = effective_from if effective_from is not None else datetime.now(timezone.utc)
    columns = ["effective_from", *FEE_RULE_FIELDS]
    placeholders = ", ".join("?" for _ in columns)
    params = [format_timestamp(record_time), *(getattr(values, field) for field in FEE_RULE_FIELDS)]

    with open_db(db_path) as connection:
        cursor = connection.execute(
            f"INSERT INTO fee_rule_snapshots ({', '.join(columns)}) VALUES ({placeholders})",
            params,
        )
        connection.commit()
        snapshot_id = cursor.lastrowid

    return FeeRuleSnapshot(
        id=snapshot_id,
        effective_from=record_time,
        **values.model_dump(include=set(FEE_RULE_FIELDS)),
    )


def get_latest_rule_snapshot(db_path: Path) -> FeeRuleSnapshot | None:
    return RULE_SNAPSHOTS.latest(db_path)


def get_rule_snapshot_at_or_before(db_path: Path, as_of: datetime) -> FeeRuleSnapshot | None:
    return RULE_SNAPSHOTS.at_or_before(db_path, as_of)


def get_rule_snapshot(db_path: Path, snapshot_id: int) -> FeeRuleSnapshot | None:
    with open_db(db_path) as connection:
        row = connection.execute(
            "SELECT * FROM fee_rule_snapshots WHERE id = ?",
            (snapshot_id,),
        ).fetchone()
    if row is None:
        return None
    return _row_to_snapshot(row)


def list_rule_snapshots(db_path: Path) -> list[FeeRuleSnapshot]:
    with open_db(db_path) as connection:
        rows = connection.execute(
            "SELECT * FROM fee_rule_snapshots ORDER BY effective_from ASC, id ASC"
        ).fetchall()
    return [_row_to_snapshot(row) for row in rows]
