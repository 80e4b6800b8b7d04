from __future__ import annotations

from datetime import datetime, timezone

from delivery_fee.domain.models import FeeRuleSnapshot, FeeRuleValues, WeatherObservation

RULES_EFFECTIVE_FROM = datetime(2025, 1, 1, tzinfo=timezone.utc)
DEFAULT_OBSERVED_AT = datetime(2025, 3, 22, 8, 0, tzinfo=timezone.utc)

DEFAULT_RULE_VALUES = {
    "tallinn_car_base_fee": 4.0,
    "tallinn_scooter_base_fee": 3.5,
    "tallinn_bike_base_fee": 3.0,
    "tartu_car_base_fee": 3.5,
    "tartu_scooter_base_fee": 3.0,
    "tartu_bike_base_fee": 2.5,
    "parnu_car_base_fee": 3.0,
    "parnu_scooter_base_fee": 2.5,
    "parnu_bike_base_fee": 2.0,
    "atef_below_minus_ten": 1.0,
    "atef_below_zero": 0.5,
    "wsef_fee": 0.5,
    "wpef_snow_or_sleet": 1.0,
    "wpef_rain": 0.5,
}


def make_rule_values(**overrides: float) -> FeeRuleValues:
    return FeeRuleValues(**{**DEFAULT_RULE_VALUES, **overrides})


def make_rule_snapshot(snapshot_id: int = 1, **overrides: float) -> FeeRuleSnapshot:
    return FeeRuleSnapshot(
        id=snapshot_id,
        effective_from=RULES_EFFECTIVE_FROM,
        **{**DEFAULT_RULE_VALUES, **overrides},
    )


def make_observation(
    station_name: str,
    *,
    observed_at: datetime | None = None,
    air_temperature: float | None = None,
    wind_speed: float | None = None,
    phenomenon: str | None = None,
) -> WeatherObservation:
    return WeatherObservation(
        station_name=station_name,
        observed_at=observed_at or DEFAULT_OBSERVED_AT,
        air_temperature=air_temperature,
        wind_speed=wind_speed,
        phenomenon=phenomenon,
    )
