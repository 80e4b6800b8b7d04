from .db import initialize_database
from .rules import (
    get_latest_rule_snapshot,
    get_rule_snapshot,
    get_rule_snapshot_at_or_before,
    insert_rule_snapshot,
    list_rule_snapshots,
)
from .weather import (
    get_latest_observation,
    get_observation_at_or_before,
    insert_observation,
    list_observations,
)

__all__ = [
    "get_latest_observation",
    "get_latest_rule_snapshot",
    "get_observation_at_or_before",
    "get_rule_snapshot",
    "get_rule_snapshot_at_or_before",
    "initialize_database",
    "insert_observation",
    "insert_rule_snapshot",
    "list_observations",
    "list_rule_snapshots",
]
