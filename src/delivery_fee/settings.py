from __future__ import annotations

from datetime import datetime
from functools import lru_cache
from pathlib import Path
from typing import Literal
from urllib.parse import urlparse
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml
from apscheduler.triggers.cron import CronTrigger
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .adapters.weather.ilmateenistus import ILMATEENISTUS_OBSERVATIONS_URL

PROJECT_ROOT = Path(__file__).resolve().parents[2]


class WeatherSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    feed_url: str = ILMATEENISTUS_OBSERVATIONS_URL
    timeout_seconds: int = Field(default=10, ge=1, le=120)
    import_cron: str = "15 * * * *"
    import_on_startup: bool = True

    @field_validator("feed_url")
    @classmethod
    def validate_feed_url(cls, value: str) -> str:
        text = value.strip()
        parsed = urlparse(text)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("weather.feed_url must be an absolute http(s) URL")
        return text

    @field_validator("import_cron")
    @classmethod
    def validate_import_cron(cls, value: str) -> str:
        text = " ".join(value.split())
        try:
            CronTrigger.from_crontab(text)
        except ValueError as exc:
            raise ValueError(f"weather.import_cron is not a valid crontab expression: {value}") from exc
        return text


class SchedulerSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    enabled: bool = True
    misfire_grace_seconds: int = Field(default=300, ge=1, le=3600)


class ApiSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    datetime_format: str = "%Y-%m-%dT%H:%M:%S"
    request_timezone: str = "UTC"
    currency: str = "EUR"

    @field_validator("datetime_format")
    @classmethod
    def validate_datetime_format(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("api.datetime_format must not be empty")
        sample = datetime(2025, 3, 22, 10, 0, 0)
        try:
            parsed = datetime.strptime(sample.strftime(value), value)
        except ValueError as exc:
            raise ValueError(f"api.datetime_format cannot round-trip a datetime: {value}") from exc
        if parsed != sample:
            raise ValueError("api.datetime_format must include date and time down to seconds")
        return value

    @field_validator("request_timezone")
    @classmethod
    def validate_request_timezone(cls, value: str) -> str:
        text = value.strip()
        try:
            ZoneInfo(text)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"api.request_timezone is not a known timezone: {value}") from exc
        return text

    @field_validator("currency")
    @classmethod
    def validate_currency(cls, value: str) -> str:
        text = value.strip().upper()
        if len(text) != 3 or not text.isalpha():
            raise ValueError("api.currency must be a three-letter currency code")
        return text


class DeliveryFeeYamlSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    weather: WeatherSettings = Field(default_factory=WeatherSettings)
    scheduler: SchedulerSettings = Field(default_factory=SchedulerSettings)
    api: ApiSettings = Field(default_factory=ApiSettings)


class EnvSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    delivery_fee_env: Literal["dev", "test", "prod"] = "dev"
    delivery_fee_timezone: str = "Europe/Tallinn"
    delivery_fee_config_path: Path = Path("config/delivery_fee.yaml")
    delivery_fee_db_path: Path = Path("data/delivery_fee.db")
    delivery_fee_log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    @field_validator("delivery_fee_timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except ZoneInfoNotFoundError as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    @field_validator("delivery_fee_log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().upper()
        return value


class AppSettings(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    env: EnvSettings
    yaml: DeliveryFeeYamlSettings
    project_root: Path
    config_path: Path
    db_path: Path
    timezone: ZoneInfo
    request_timezone: ZoneInfo


def _resolve_project_path(path: Path) -> Path:
    if path.is_absolute():
        return path
    return (PROJECT_ROOT / path).resolve()


def _load_yaml_settings(path: Path) -> DeliveryFeeYamlSettings:
    if not path.exists():
        raise FileNotFoundError(f"Delivery fee config file not found: {path}")

    raw_config = yaml.safe_load(path.read_text(encoding="utf-8"))
    if raw_config is None:
        raw_config = {}
    if not isinstance(raw_config, dict):
        raise ValueError("Delivery fee config must be a YAML mapping/object at the top level")
    return DeliveryFeeYamlSettings.model_validate(raw_config)


def build_app_settings(env: EnvSettings, yaml_settings: DeliveryFeeYamlSettings) -> AppSettings:
    return AppSettings(
        env=env,
        yaml=yaml_settings,
        project_root=PROJECT_ROOT,
        config_path=_resolve_project_path(env.delivery_fee_config_path),
        db_path=_resolve_project_path(env.delivery_fee_db_path),
        timezone=ZoneInfo(env.delivery_fee_timezone),
        request_timezone=ZoneInfo(yaml_settings.api.request_timezone),
    )


@lru_cache(maxsize=1)
def load_settings() -> AppSettings:
    env = EnvSettings()
    yaml_settings = _load_yaml_settings(_resolve_project_path(env.delivery_fee_config_path))
    return build_app_settings(env, yaml_settings)
