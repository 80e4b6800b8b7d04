"""Delivery fee formula.

The total fee is the sum of four components:

* Regional Base Fee (RBF) for the city and vehicle type,
* Air Temperature Extra Fee (ATEF),
* Wind Speed Extra Fee (WSEF),
* Weather Phenomenon Extra Fee (WPEF).

Before any surcharge is computed the forbidding conditions are evaluated in a
fixed order, wind first and phenomenon second. The first one that applies
aborts the calculation.
"""

from __future__ import annotations

from typing import Callable

from ..domain.errors import ForbiddenReason, UsageForbidden
from ..domain.models import (
    City,
    FeeBreakdown,
    FeeRuleSnapshot,
    FeeRuleValues,
    VehicleType,
    WeatherObservation,
)


FORBIDDEN_WIND_SPEED = 20.0
SURCHARGED_WIND_SPEED = 10.0
EXTREME_COLD_TEMPERATURE = -10.0
FREEZING_TEMPERATURE = 0.0

FORBIDDING_PHENOMENA = ("glaze", "hail", "thunder")
SNOW_OR_SLEET_PHENOMENA = ("snow", "sleet")
RAIN_PHENOMENA = ("rain",)

UsageCheck = Callable[[VehicleType, WeatherObservation], UsageForbidden | None]


def _normalized_phenomenon(phenomenon: str | None) -> str | None:
    if phenomenon is None or not phenomenon.strip():
        return None
    return phenomenon.lower()


def _contains_any(text: str, keywords: tuple[str, ...]) -> bool:
    return any(keyword in text for keyword in keywords)


def check_wind(vehicle_type: VehicleType, observation: WeatherObservation) -> UsageForbidden | None:
    wind_speed = observation.wind_speed
    if wind_speed is None or not vehicle_type.is_weather_restricted:
        return None
    if wind_speed >= FORBIDDEN_WIND_SPEED:
        return UsageForbidden(vehicle_type, ForbiddenReason.WIND, wind_speed)
    return None


def check_phenomenon(vehicle_type: VehicleType, observation: WeatherObservation) -> UsageForbidden | None:
    text = _normalized_phenomenon(observation.phenomenon)
    if text is None or not vehicle_type.is_weather_restricted:
        return None
    if _contains_any(text, FORBIDDING_PHENOMENA):
        return UsageForbidden(vehicle_type, ForbiddenReason.PHENOMENON, observation.phenomenon)
    return None


USAGE_CHECKS: tuple[UsageCheck, ...] = (check_wind, check_phenomenon)


def find_usage_restriction(
    vehicle_type: VehicleType,
    observation: WeatherObservation,
) -> UsageForbidden | None:
    for check in USAGE_CHECKS:
        restriction = check(vehicle_type, observation)
        if restriction is not None:
            return restriction
    return None


def regional_base_fee(city: City, vehicle_type: VehicleType, rules: FeeRuleValues) -> float:
    return rules.base_fee(city, vehicle_type)


def air_temperature_fee(air_temperature: float | None, rules: FeeRuleValues) -> float:
    if air_temperature is None:
        return 0.0
    if air_temperature < EXTREME_COLD_TEMPERATURE:
        return rules.atef_below_minus_ten
    if air_temperature < FREEZING_TEMPERATURE:
        return rules.atef_below_zero
    return 0.0


def wind_speed_fee(wind_speed: float | None, rules: FeeRuleValues) -> float:
    if wind_speed is None:
        return 0.0
    if SURCHARGED_WIND_SPEED <= wind_speed < FORBIDDEN_WIND_SPEED:
        return rules.wsef_fee
    return 0.0


def weather_phenomenon_fee(phenomenon: str | None, rules: FeeRuleValues) -> float:
    text = _normalized_phenomenon(phenomenon)
    if text is None:
        return 0.0
    if _contains_any(text, SNOW_OR_SLEET_PHENOMENA):
        return rules.wpef_snow_or_sleet
    if _contains_any(text, RAIN_PHENOMENA):
        return rules.wpef_rain
    return 0.0


def calculate_fee(
    city: City,
    vehicle_type: VehicleType,
    observation: WeatherObservation,
    rules: FeeRuleSnapshot,
) -> FeeBreakdown:
    """Apply the fee formula to an already resolved observation and rule snapshot.

    Raises:
        UsageForbidden: when wind or phenomenon forbid ``vehicle_type``.
    """
    restriction = find_usage_restriction(vehicle_type, observation)
    if restriction is not None:
        raise restriction

    return FeeBreakdown(
        city=city,
        vehicle_type=vehicle_type,
        regional_base_fee=regional_base_fee(city, vehicle_type, rules),
        air_temperature_fee=air_temperature_fee(observation.air_temperature, rules),
        wind_speed_fee=wind_speed_fee(observation.wind_speed, rules),
        weather_phenomenon_fee=weather_phenomenon_fee(observation.phenomenon, rules),
        observation_id=observation.id,
        rule_snapshot_id=rules.id,
    )
