from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import VehicleType


class DeliveryFeeError(RuntimeError):
    """Base class for every failure a fee request can end with."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidInputError(DeliveryFeeError):
    """Raised when request input cannot be turned into domain values."""


class InvalidCity(InvalidInputError):
    pass


class InvalidVehicleType(InvalidInputError):
    pass


class InvalidDateTime(InvalidInputError):
    pass


class ForbiddenReason(str, Enum):
    WIND = "wind"
    PHENOMENON = "phenomenon"


class UsageForbidden(DeliveryFeeError):
    """Raised when weather conditions forbid the selected vehicle type."""

    def __init__(self, vehicle_type: VehicleType, reason: ForbiddenReason, value: float | str) -> None:
        if reason is ForbiddenReason.WIND:
            message = (
                "Usage of selected vehicle type is forbidden. "
                f"Vehicle type: {vehicle_type.name} Wind speed: {value} m/s"
            )
        else:
            message = (
                "Usage of selected vehicle type is forbidden. "
                f"Vehicle type: {vehicle_type.name}. Phenomenon: {value}"
            )
        super().__init__(message)
        self.vehicle_type = vehicle_type
        self.reason = reason
        self.value = value


class DataUnavailableError(DeliveryFeeError):
    """Raised when the stores hold no record for the requested time basis."""


def _at_or_before_suffix(as_of: datetime | None) -> str:
    if as_of is None:
        return ""
    return f" at or before {as_of.isoformat()}"


class NoWeatherData(DataUnavailableError):
    def __init__(self, station: str, as_of: datetime | None = None) -> None:
        super().__init__(f"No weather data available for {station}{_at_or_before_suffix(as_of)}")
        self.station = station
        self.as_of = as_of


class NoRuleData(DataUnavailableError):
    def __init__(self, as_of: datetime | None = None) -> None:
        super().__init__(f"No business rules available{_at_or_before_suffix(as_of)}")
        self.as_of = as_of
