from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

from ..domain.errors import NoRuleData, NoWeatherData
from ..domain.models import City, FeeBreakdown, FeeRuleSnapshot, VehicleType, WeatherObservation
from ..storage.rules import get_latest_rule_snapshot, get_rule_snapshot_at_or_before
from ..storage.weather import get_latest_observation, get_observation_at_or_before
from .engine import calculate_fee

LOGGER = logging.getLogger(__name__)


def resolve_observation(db_path: Path, city: City, as_of: datetime | None = None) -> WeatherObservation:
    station_name = city.station_name
    if as_of is None:
        observation = get_latest_observation(db_path, station_name)
    else:
        observation = get_observation_at_or_before(db_path, station_name, as_of)
    if observation is None:
        raise NoWeatherData(station_name, as_of)
    return observation


def resolve_rule_snapshot(db_path: Path, as_of: datetime | None = None) -> FeeRuleSnapshot:
    if as_of is None:
        snapshot = get_latest_rule_snapshot(db_path)
    else:
        snapshot = get_rule_snapshot_at_or_before(db_path, as_of)
    if snapshot is None:
        raise NoRuleData(as_of)
    return snapshot


def compute_fee(
    db_path: Path,
    city: City,
    vehicle_type: VehicleType,
    as_of: datetime | None = None,
) -> FeeBreakdown:
    """Compute the delivery fee for ``city`` and ``vehicle_type``.

    Without ``as_of`` the latest observation and rule snapshot are used,
    otherwise the most recent ones at or before ``as_of``. Every failure
    (``NoWeatherData``, ``NoRuleData``, ``UsageForbidden``) propagates to the
    caller unchanged.
    """
    observation = resolve_observation(db_path, city, as_of)
    rules = resolve_rule_snapshot(db_path, as_of)

    LOGGER.info(
        "Calculating fee for city=%s vehicle=%s as_of=%s using observation %s and rule snapshot %s",
        city.name,
        vehicle_type.name,
        as_of.isoformat() if as_of else "latest",
        observation.id,
        rules.id,
    )
    breakdown = calculate_fee(city, vehicle_type, observation, rules)
    LOGGER.info(
        "Total delivery fee: %s (RBF: %s, ATEF: %s, WSEF: %s, WPEF: %s)",
        breakdown.total,
        breakdown.regional_base_fee,
        breakdown.air_temperature_fee,
        breakdown.wind_speed_fee,
        breakdown.weather_phenomenon_fee,
    )
    return breakdown
