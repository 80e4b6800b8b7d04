from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from delivery_fee import main
from delivery_fee.settings import (
    AppSettings,
    DeliveryFeeYamlSettings,
    EnvSettings,
    SchedulerSettings,
    WeatherSettings,
    build_app_settings,
)
from delivery_fee.storage.db import initialize_database


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    path = tmp_path / "delivery_fee.db"
    initialize_database(path)
    return path


@pytest.fixture
def app_settings(db_path: Path) -> AppSettings:
    env = EnvSettings(
        _env_file=None,
        delivery_fee_env="test",
        delivery_fee_timezone="Europe/Tallinn",
        delivery_fee_db_path=db_path,
    )
    yaml_settings = DeliveryFeeYamlSettings(
        weather=WeatherSettings(import_on_startup=False),
        scheduler=SchedulerSettings(enabled=False),
    )
    return build_app_settings(env, yaml_settings)


@pytest.fixture
def client(app_settings: AppSettings, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(main, "load_settings", lambda: app_settings)
    with TestClient(main.app) as test_client:
        yield test_client
