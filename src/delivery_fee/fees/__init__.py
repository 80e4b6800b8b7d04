from .engine import calculate_fee, find_usage_restriction
from .service import compute_fee, resolve_observation, resolve_rule_snapshot

__all__ = [
    "calculate_fee",
    "compute_fee",
    "find_usage_restriction",
    "resolve_observation",
    "resolve_rule_snapshot",
]
