from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from typing import Iterable
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from ...domain.models import WeatherObservation
from .base import WeatherFeedError

LOGGER = logging.getLogger(__name__)

ILMATEENISTUS_OBSERVATIONS_URL = "https://www.ilmateenistus.ee/ilma_andmed/xml/observations.php"
DEFAULT_TIMEOUT_SECONDS = 10

_NUMERIC_SEPARATORS = re.compile(r"[ /><]")


def _fetch_xml(url: str, timeout_seconds: int) -> bytes:
    request = Request(url, headers={"User-Agent": "delivery-fee/0.1"})
    try:
        with urlopen(request, timeout=timeout_seconds) as response:
            return response.read()
    except (HTTPError, URLError, TimeoutError, OSError) as exc:
        raise WeatherFeedError(f"Failed to fetch weather observations from {url}") from exc


def _child_text(element: ET.Element, tag: str) -> str | None:
    text = element.findtext(tag)
    if text is None:
        return None
    stripped = text.strip()
    return stripped or None


def parse_numeric_value(raw_value: str | None) -> float | None:
    """Read the first number from a feed value such as ``"-5.2"`` or ``"12 / 15"``."""
    if raw_value is None or not raw_value.strip():
        return None
    for part in _NUMERIC_SEPARATORS.split(raw_value):
        token = part.strip()
        if not token:
            continue
        try:
            return float(token)
        except ValueError:
            LOGGER.warning("Failed to parse numeric value from '%s'", raw_value)
            return None
    return None


def parse_observation_time(raw_timestamp: str | None) -> datetime:
    if raw_timestamp is None or not raw_timestamp.strip():
        LOGGER.warning("Observation timestamp is missing, using current time")
        return datetime.now(timezone.utc)
    try:
        return datetime.fromtimestamp(int(raw_timestamp.strip()), tz=timezone.utc)
    except (ValueError, OverflowError, OSError):
        LOGGER.warning("Failed to parse observation timestamp '%s', using current time", raw_timestamp)
        return datetime.now(timezone.utc)


def parse_observations(payload: bytes | str, stations: Iterable[str]) -> list[WeatherObservation]:
    try:
        root = ET.fromstring(payload)
    except ET.ParseError as exc:
        raise WeatherFeedError("Weather observations payload is not valid XML") from exc

    if root.tag != "observations":
        raise WeatherFeedError(f"Unexpected weather observations root element: {root.tag}")

    wanted = set(stations)
    observed_at = parse_observation_time(root.get("timestamp"))

    observations: list[WeatherObservation] = []
    for station in root.findall("station"):
        name = _child_text(station, "name")
        if name is None or name not in wanted:
            continue
        observations.append(
            WeatherObservation(
                station_name=name,
                wmo_code=_child_text(station, "wmocode"),
                observed_at=observed_at,
                air_temperature=parse_numeric_value(_child_text(station, "airtemperature")),
                wind_speed=parse_numeric_value(_child_text(station, "windspeed")),
                phenomenon=_child_text(station, "phenomenon"),
            )
        )
    return observations


class IlmateenistusWeatherAdapter:
    def __init__(
        self,
        *,
        url: str = ILMATEENISTUS_OBSERVATIONS_URL,
        timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self._url = url
        self._timeout_seconds = timeout_seconds

    @property
    def url(self) -> str:
        return self._url

    def get_observations(self, stations: Iterable[str]) -> list[WeatherObservation]:
        payload = _fetch_xml(self._url, self._timeout_seconds)
        return parse_observations(payload, stations)
