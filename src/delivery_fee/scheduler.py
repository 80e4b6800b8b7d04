from __future__ import annotations

import logging
from datetime import datetime, timezone

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from .adapters.weather import IlmateenistusWeatherAdapter, WeatherFeedAdapter, WeatherFeedError
from .domain.models import City
from .settings import AppSettings
from .storage.weather import insert_observation

LOGGER = logging.getLogger(__name__)

WEATHER_IMPORT_JOB_ID = "weather_import_job"


def _build_weather_adapter(settings: AppSettings) -> IlmateenistusWeatherAdapter:
    return IlmateenistusWeatherAdapter(
        url=settings.yaml.weather.feed_url,
        timeout_seconds=settings.yaml.weather.timeout_seconds,
    )


def run_weather_import_job(settings: AppSettings, adapter: WeatherFeedAdapter | None = None) -> int:
    """Import the current observations for every city station.

    Failures are logged and never raised: the previously stored observations
    stay in use until the next successful run. Returns the number of new rows.
    """
    started_at = datetime.now(timezone.utc)
    stations = City.station_names()
    LOGGER.info("Starting weather import for stations %s", ", ".join(stations))

    try:
        feed = adapter if adapter is not None else _build_weather_adapter(settings)
        observations = feed.get_observations(stations)
    except (WeatherFeedError, ValueError):
        LOGGER.exception("Weather import job failed")
        return 0
    except Exception:
        LOGGER.exception("Unexpected error during weather import")
        return 0

    missing = sorted(set(stations) - {observation.station_name for observation in observations})
    if missing:
        LOGGER.warning("Weather feed had no observation for stations: %s", ", ".join(missing))

    inserted = 0
    for observation in observations:
        try:
            if insert_observation(settings.db_path, observation):
                inserted += 1
                LOGGER.info(
                    "Saved weather observation for '%s' at %s",
                    observation.station_name,
                    observation.observed_at.isoformat(),
                )
        except Exception:
            LOGGER.exception("Failed to store weather observation for '%s'", observation.station_name)

    LOGGER.info(
        "Weather import finished in %.2fs: %d received, %d stored",
        (datetime.now(timezone.utc) - started_at).total_seconds(),
        len(observations),
        inserted,
    )
    return inserted


def build_scheduler(settings: AppSettings) -> BackgroundScheduler:
    scheduler = BackgroundScheduler(timezone=settings.timezone)
    scheduler.add_job(
        run_weather_import_job,
        CronTrigger.from_crontab(settings.yaml.weather.import_cron, timezone=settings.timezone),
        kwargs={"settings": settings},
        id=WEATHER_IMPORT_JOB_ID,
        replace_existing=True,
        max_instances=1,
        coalesce=True,
        misfire_grace_time=settings.yaml.scheduler.misfire_grace_seconds,
    )
    return scheduler
