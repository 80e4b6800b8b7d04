from __future__ import annotations

import pytest

from helpers import make_observation, make_rule_snapshot
from delivery_fee.domain.errors import ForbiddenReason, UsageForbidden
from delivery_fee.domain.models import City, VehicleType
from delivery_fee.fees.engine import (
    air_temperature_fee,
    calculate_fee,
    find_usage_restriction,
    weather_phenomenon_fee,
    wind_speed_fee,
)

RULES = make_rule_snapshot()

EXPECTED_BASE_FEES = {
    (City.TALLINN, VehicleType.CAR): 4.0,
    (City.TALLINN, VehicleType.SCOOTER): 3.5,
    (City.TALLINN, VehicleType.BIKE): 3.0,
    (City.TARTU, VehicleType.CAR): 3.5,
    (City.TARTU, VehicleType.SCOOTER): 3.0,
    (City.TARTU, VehicleType.BIKE): 2.5,
    (City.PARNU, VehicleType.CAR): 3.0,
    (City.PARNU, VehicleType.SCOOTER): 2.5,
    (City.PARNU, VehicleType.BIKE): 2.0,
}


@pytest.mark.parametrize(("city", "vehicle_type"), list(EXPECTED_BASE_FEES))
def test_fee_without_weather_values_is_base_fee(city: City, vehicle_type: VehicleType) -> None:
    observation = make_observation(city.station_name)

    breakdown = calculate_fee(city, vehicle_type, observation, RULES)

    assert breakdown.total == EXPECTED_BASE_FEES[(city, vehicle_type)]
    assert breakdown.air_temperature_fee == 0.0
    assert breakdown.wind_speed_fee == 0.0
    assert breakdown.weather_phenomenon_fee == 0.0


@pytest.mark.parametrize(
    ("temperature", "expected"),
    [
        (None, 0.0),
        (-20.0, 1.0),
        (-10.1, 1.0),
        (-10.0, 0.5),
        (-0.1, 0.5),
        (0.0, 0.0),
        (15.0, 0.0),
    ],
)
def test_air_temperature_tiers(temperature: float | None, expected: float) -> None:
    assert air_temperature_fee(temperature, RULES) == expected


@pytest.mark.parametrize(
    ("wind_speed", "expected"),
    [(None, 0.0), (0.0, 0.0), (9.9, 0.0), (10.0, 0.5), (19.9, 0.5), (20.0, 0.0), (35.0, 0.0)],
)
def test_wind_speed_tiers(wind_speed: float | None, expected: float) -> None:
    assert wind_speed_fee(wind_speed, RULES) == expected


def test_car_is_never_restricted_by_wind() -> None:
    observation = make_observation(City.TALLINN.station_name, wind_speed=20.0)

    breakdown = calculate_fee(City.TALLINN, VehicleType.CAR, observation, RULES)

    assert breakdown.total == 4.0


@pytest.mark.parametrize("vehicle_type", [VehicleType.SCOOTER, VehicleType.BIKE])
def test_scooter_and_bike_are_forbidden_from_wind_speed_20(vehicle_type: VehicleType) -> None:
    observation = make_observation(City.TALLINN.station_name, wind_speed=20.0)

    with pytest.raises(UsageForbidden) as exc_info:
        calculate_fee(City.TALLINN, vehicle_type, observation, RULES)

    assert exc_info.value.reason is ForbiddenReason.WIND
    assert exc_info.value.vehicle_type is vehicle_type
    assert exc_info.value.value == 20.0


def test_wind_forbidden_message() -> None:
    observation = make_observation(City.TALLINN.station_name, air_temperature=0.0, wind_speed=25.0)

    with pytest.raises(UsageForbidden) as exc_info:
        calculate_fee(City.TALLINN, VehicleType.SCOOTER, observation, RULES)

    assert exc_info.value.message == (
        "Usage of selected vehicle type is forbidden. Vehicle type: SCOOTER Wind speed: 25.0 m/s"
    )


@pytest.mark.parametrize("phenomenon", ["HEAVY SNOW", "heavy snow", "Heavy Snow", "Light sleet"])
def test_snow_or_sleet_surcharge_is_case_insensitive(phenomenon: str) -> None:
    assert weather_phenomenon_fee(phenomenon, RULES) == 1.0


@pytest.mark.parametrize(
    ("phenomenon", "expected"),
    [
        (None, 0.0),
        ("", 0.0),
        ("   ", 0.0),
        ("Clear", 0.0),
        ("Light rain", 0.5),
        ("Moderate shower", 0.0),
        ("Light snow shower", 1.0),
    ],
)
def test_weather_phenomenon_surcharge(phenomenon: str | None, expected: float) -> None:
    assert weather_phenomenon_fee(phenomenon, RULES) == expected


@pytest.mark.parametrize("phenomenon", ["Glaze", "Hail", "Thunderstorm", "THUNDER"])
@pytest.mark.parametrize("vehicle_type", [VehicleType.SCOOTER, VehicleType.BIKE])
def test_dangerous_phenomena_forbid_scooter_and_bike(phenomenon: str, vehicle_type: VehicleType) -> None:
    observation = make_observation(City.TARTU.station_name, phenomenon=phenomenon)

    with pytest.raises(UsageForbidden) as exc_info:
        calculate_fee(City.TARTU, vehicle_type, observation, RULES)

    assert exc_info.value.reason is ForbiddenReason.PHENOMENON
    assert exc_info.value.value == phenomenon


def test_phenomenon_forbidden_message() -> None:
    observation = make_observation(
        City.TARTU.station_name,
        air_temperature=10.0,
        wind_speed=5.0,
        phenomenon="Thunderstorm",
    )

    with pytest.raises(UsageForbidden) as exc_info:
        calculate_fee(City.TARTU, VehicleType.BIKE, observation, RULES)

    assert exc_info.value.message == (
        "Usage of selected vehicle type is forbidden. Vehicle type: BIKE. Phenomenon: Thunderstorm"
    )


def test_car_gets_surcharges_but_no_restriction_from_phenomenon() -> None:
    observation = make_observation(City.TARTU.station_name, phenomenon="Thunderstorm with sleet")

    breakdown = calculate_fee(City.TARTU, VehicleType.CAR, observation, RULES)

    assert breakdown.weather_phenomenon_fee == 1.0
    assert breakdown.total == pytest.approx(4.5)


def test_wind_restriction_is_reported_before_phenomenon_restriction() -> None:
    observation = make_observation(
        City.TALLINN.station_name,
        wind_speed=22.0,
        phenomenon="Thunderstorm",
    )

    restriction = find_usage_restriction(VehicleType.BIKE, observation)
    with pytest.raises(UsageForbidden) as exc_info:
        calculate_fee(City.TALLINN, VehicleType.BIKE, observation, RULES)

    assert restriction is not None
    assert restriction.reason is ForbiddenReason.WIND
    assert exc_info.value.reason is ForbiddenReason.WIND
    assert "Wind speed: 22.0 m/s" in exc_info.value.message


def test_tallinn_car_in_light_snow() -> None:
    observation = make_observation(
        City.TALLINN.station_name,
        air_temperature=-5.0,
        wind_speed=12.0,
        phenomenon="Light snow",
    )

    breakdown = calculate_fee(City.TALLINN, VehicleType.CAR, observation, RULES)

    assert breakdown.regional_base_fee == 4.0
    assert breakdown.air_temperature_fee == 0.5
    assert breakdown.wind_speed_fee == 0.5
    assert breakdown.weather_phenomenon_fee == 1.0
    assert breakdown.total == pytest.approx(6.0)


def test_parnu_bike_in_light_rain() -> None:
    observation = make_observation(
        City.PARNU.station_name,
        air_temperature=2.0,
        wind_speed=15.0,
        phenomenon="Light rain",
    )

    breakdown = calculate_fee(City.PARNU, VehicleType.BIKE, observation, RULES)

    assert breakdown.total == pytest.approx(3.0)


def test_tartu_scooter_in_heavy_snow() -> None:
    observation = make_observation(
        City.TARTU.station_name,
        air_temperature=-15.0,
        wind_speed=5.0,
        phenomenon="Heavy snow",
    )

    breakdown = calculate_fee(City.TARTU, VehicleType.SCOOTER, observation, RULES)

    assert breakdown.total == pytest.approx(5.0)


def test_breakdown_uses_snapshot_values() -> None:
    rules = make_rule_snapshot(tallinn_bike_base_fee=2.75, atef_below_zero=0.25)
    observation = make_observation(City.TALLINN.station_name, air_temperature=-1.0)

    breakdown = calculate_fee(City.TALLINN, VehicleType.BIKE, observation, rules)

    assert breakdown.total == pytest.approx(3.0)


def test_breakdown_records_observation_and_snapshot_ids() -> None:
    rules = make_rule_snapshot(snapshot_id=7)
    observation = make_observation(City.PARNU.station_name).model_copy(update={"id": 12})

    breakdown = calculate_fee(City.PARNU, VehicleType.CAR, observation, rules)

    assert breakdown.rule_snapshot_id == 7
    assert breakdown.observation_id == 12
