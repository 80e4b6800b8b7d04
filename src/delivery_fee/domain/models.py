from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .errors import InvalidCity, InvalidVehicleType


def _normalize_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class City(Enum):
    TALLINN = "Tallinn-Harku"
    TARTU = "Tartu-Tõravere"
    PARNU = "Pärnu"

    @property
    def station_name(self) -> str:
        return self.value

    @classmethod
    def parse(cls, raw_value: str) -> City:
        key = raw_value.strip().upper()
        try:
            return cls[key]
        except KeyError:
            raise InvalidCity(
                f"City name should be one of these: Tallinn, Tartu or Parnu. Got: '{raw_value}'"
            ) from None

    @classmethod
    def station_names(cls) -> list[str]:
        return [city.station_name for city in cls]


class VehicleType(Enum):
    CAR = "car"
    SCOOTER = "scooter"
    BIKE = "bike"

    @property
    def is_weather_restricted(self) -> bool:
        return self in (VehicleType.SCOOTER, VehicleType.BIKE)

    @classmethod
    def parse(cls, raw_value: str) -> VehicleType:
        key = raw_value.strip().upper()
        try:
            return cls[key]
        except KeyError:
            raise InvalidVehicleType(
                f"Vehicle type should be only of these: CAR, SCOOTER, BIKE. Got: '{raw_value}'"
            ) from None


class WeatherObservation(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    id: int | None = None
    station_name: str
    wmo_code: str | None = None
    observed_at: datetime
    air_temperature: float | None = None
    wind_speed: float | None = None
    phenomenon: str | None = None

    @field_validator("station_name")
    @classmethod
    def validate_station_name(cls, value: str) -> str:
        text = value.strip()
        if not text:
            raise ValueError("weather observation station_name must not be empty")
        return text

    @field_validator("phenomenon")
    @classmethod
    def validate_phenomenon(cls, value: str | None) -> str | None:
        if value is None:
            return None
        text = value.strip()
        return text or None

    @field_validator("observed_at")
    @classmethod
    def validate_observed_at(cls, value: datetime) -> datetime:
        return _normalize_utc(value)


class FeeRuleValues(BaseModel):
    """Fee parameters of one business-rule snapshot, all in EUR."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    tallinn_car_base_fee: float = Field(ge=0)
    tallinn_scooter_base_fee: float = Field(ge=0)
    tallinn_bike_base_fee: float = Field(ge=0)
    tartu_car_base_fee: float = Field(ge=0)
    tartu_scooter_base_fee: float = Field(ge=0)
    tartu_bike_base_fee: float = Field(ge=0)
    parnu_car_base_fee: float = Field(ge=0)
    parnu_scooter_base_fee: float = Field(ge=0)
    parnu_bike_base_fee: float = Field(ge=0)

    atef_below_minus_ten: float = Field(ge=0)
    atef_below_zero: float = Field(ge=0)

    wsef_fee: float = Field(ge=0)

    wpef_snow_or_sleet: float = Field(ge=0)
    wpef_rain: float = Field(ge=0)

    def base_fee(self, city: City, vehicle_type: VehicleType) -> float:
        return getattr(self, base_fee_field(city, vehicle_type))


class FeeRuleSnapshot(FeeRuleValues):
    id: int | None = None
    effective_from: datetime

    @field_validator("effective_from")
    @classmethod
    def validate_effective_from(cls, value: datetime) -> datetime:
        return _normalize_utc(value)


def base_fee_field(city: City, vehicle_type: VehicleType) -> str:
    return f"{city.name.lower()}_{vehicle_type.name.lower()}_base_fee"


BASE_FEE_FIELDS = {
    (city, vehicle_type): base_fee_field(city, vehicle_type)
    for city in City
    for vehicle_type in VehicleType
}

FEE_RULE_FIELDS = list(FeeRuleValues.model_fields)


class FeeBreakdown(BaseModel):
    model_config = ConfigDict(frozen=True)

    city: City
    vehicle_type: VehicleType
    regional_base_fee: float
    air_temperature_fee: float
    wind_speed_fee: float
    weather_phenomenon_fee: float
    observation_id: int | None = None
    rule_snapshot_id: int | None = None

    @property
    def total(self) -> float:
        return (
            self.regional_base_fee
            + self.air_temperature_fee
            + self.wind_speed_fee
            + self.weather_phenomenon_fee
        )
