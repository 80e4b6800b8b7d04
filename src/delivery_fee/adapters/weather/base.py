from __future__ import annotations

from typing import Iterable, Protocol

from ...domain.models import WeatherObservation


class WeatherFeedError(RuntimeError):
    """Raised when the weather observation feed cannot be fetched or parsed."""


class WeatherFeedAdapter(Protocol):
    def get_observations(self, stations: Iterable[str]) -> list[WeatherObservation]:
        """Fetch the current observations for the named stations."""
