from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse

from .domain.errors import (
    DataUnavailableError,
    DeliveryFeeError,
    InvalidDateTime,
    InvalidInputError,
    UsageForbidden,
)
from .domain.models import City, FeeRuleValues, VehicleType
from .fees.service import compute_fee
from .logging_config import configure_logging
from .scheduler import build_scheduler, run_weather_import_job
from .settings import AppSettings, load_settings
from .storage.db import initialize_database
from .storage.rules import (
    get_latest_rule_snapshot,
    get_rule_snapshot,
    insert_rule_snapshot,
    list_rule_snapshots,
)
from .storage.weather import get_latest_observation

LOGGER = logging.getLogger(__name__)

MISSING_CITY_MESSAGE = "Required parameter is missing: city. Provide a city type: Tallinn, Tartu or Parnu"
MISSING_VEHICLE_TYPE_MESSAGE = (
    "Required parameter is missing: vehicleType. Provide a vehicle type: Car, Scooter or Bike"
)
UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred!"


def _get_settings(request: Request) -> AppSettings:
    return request.app.state.settings


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


def _status_code_for(error: DeliveryFeeError) -> int:
    if isinstance(error, InvalidInputError):
        return 400
    if isinstance(error, UsageForbidden):
        return 403
    if isinstance(error, DataUnavailableError):
        return 503
    return 500


def _is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


def parse_request_datetime(raw_value: str, settings: AppSettings) -> datetime:
    """Parse a request datetime read in ``api.request_timezone`` (UTC by default)."""
    datetime_format = settings.yaml.api.datetime_format
    try:
        parsed = datetime.strptime(raw_value.strip(), datetime_format)
    except ValueError:
        example = datetime(2025, 3, 22, 10, 0, 0).strftime(datetime_format)
        raise InvalidDateTime(
            f"Invalid datetime format. Use {datetime_format} (e.g., {example})"
        ) from None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=settings.request_timezone)
    try:
        return parsed.astimezone(timezone.utc)
    except OverflowError:
        # Clamp to the representable range; the floor lookup still applies.
        bound = datetime.min if parsed.year == datetime.min.year else datetime.max
        return bound.replace(tzinfo=timezone.utc)


@asynccontextmanager
async def lifespan(application: FastAPI):
    settings = load_settings()
    configure_logging(settings.env.delivery_fee_log_level)
    initialize_database(settings.db_path)
    if settings.yaml.weather.import_on_startup:
        run_weather_import_job(settings)

    scheduler = build_scheduler(settings)
    if settings.yaml.scheduler.enabled:
        scheduler.start()

    application.state.settings = settings
    application.state.scheduler = scheduler
    application.state.started_at_utc = datetime.now(timezone.utc)

    try:
        yield
    finally:
        if scheduler.running:
            scheduler.shutdown(wait=False)


app = FastAPI(title="Delivery Fee Service", version="0.1.0", lifespan=lifespan)


@app.get("/api/delivery-fee")
def delivery_fee(
    request: Request,
    city: str | None = None,
    vehicle_type: str | None = Query(default=None, alias="vehicleType"),
    requested_at: str | None = Query(default=None, alias="datetime"),
) -> JSONResponse:
    settings = _get_settings(request)

    if _is_blank(city):
        LOGGER.error("Missing required parameter: city")
        return _error_response(400, MISSING_CITY_MESSAGE)
    if _is_blank(vehicle_type):
        LOGGER.error("Missing required parameter: vehicleType")
        return _error_response(400, MISSING_VEHICLE_TYPE_MESSAGE)

    LOGGER.info(
        "Received delivery fee request for city=%s vehicleType=%s datetime=%s",
        city,
        vehicle_type,
        requested_at,
    )
    try:
        as_of = None if _is_blank(requested_at) else parse_request_datetime(requested_at, settings)
        parsed_city = City.parse(city)
        parsed_vehicle_type = VehicleType.parse(vehicle_type)
        breakdown = compute_fee(settings.db_path, parsed_city, parsed_vehicle_type, as_of)
    except DeliveryFeeError as exc:
        status_code = _status_code_for(exc)
        LOGGER.error("Delivery fee request failed with %s: %s", status_code, exc.message)
        return _error_response(status_code, exc.message)
    except Exception:
        LOGGER.exception("Unexpected error during fee calculation")
        return _error_response(500, UNEXPECTED_ERROR_MESSAGE)

    return JSONResponse({"fee": round(breakdown.total, 2), "currency": settings.yaml.api.currency})


@app.post("/api/business-rules", status_code=201)
def create_business_rule(request: Request, values: FeeRuleValues) -> JSONResponse:
    settings = _get_settings(request)
    snapshot = insert_rule_snapshot(settings.db_path, values)
    LOGGER.info("Created business rule snapshot %s effective from %s", snapshot.id, snapshot.effective_from)
    return JSONResponse(snapshot.model_dump(mode="json"), status_code=201)


@app.get("/api/business-rules")
def list_business_rules(request: Request) -> JSONResponse:
    settings = _get_settings(request)
    snapshots = list_rule_snapshots(settings.db_path)
    return JSONResponse([snapshot.model_dump(mode="json") for snapshot in snapshots])


@app.get("/api/business-rules/latest")
def latest_business_rule(request: Request) -> JSONResponse:
    settings = _get_settings(request)
    snapshot = get_latest_rule_snapshot(settings.db_path)
    if snapshot is None:
        return _error_response(404, "No business rules available")
    return JSONResponse(snapshot.model_dump(mode="json"))


@app.get("/api/business-rules/{snapshot_id}")
def get_business_rule(request: Request, snapshot_id: int) -> JSONResponse:
    settings = _get_settings(request)
    snapshot = get_rule_snapshot(settings.db_path, snapshot_id)
    if snapshot is None:
        LOGGER.warning("Business rule snapshot %s not found", snapshot_id)
        return _error_response(404, f"Business rule with ID {snapshot_id} not found")
    return JSONResponse(snapshot.model_dump(mode="json"))


@app.put("/api/business-rules/{snapshot_id}", status_code=201)
def supersede_business_rule(request: Request, snapshot_id: int, values: FeeRuleValues) -> JSONResponse:
    settings = _get_settings(request)
    if get_rule_snapshot(settings.db_path, snapshot_id) is None:
        LOGGER.warning("Business rule snapshot %s not found", snapshot_id)
        return _error_response(404, f"Business rule with ID {snapshot_id} not found")

    # Snapshots are append-only; an update is a new snapshot that supersedes the old one.
    snapshot = insert_rule_snapshot(settings.db_path, values)
    LOGGER.info("Business rule snapshot %s superseded by %s", snapshot_id, snapshot.id)
    return JSONResponse(snapshot.model_dump(mode="json"), status_code=201)


@app.get("/api/weather/{city}")
def latest_weather(request: Request, city: str) -> JSONResponse:
    settings = _get_settings(request)
    try:
        parsed_city = City.parse(city)
    except InvalidInputError as exc:
        return _error_response(400, exc.message)

    observation = get_latest_observation(settings.db_path, parsed_city.station_name)
    if observation is None:
        return _error_response(404, f"No weather data available for {parsed_city.station_name}")
    return JSONResponse(observation.model_dump(mode="json"))


@app.get("/health")
def health(request: Request) -> JSONResponse:
    settings = _get_settings(request)
    latest_observations = {}
    for city in City:
        observation = get_latest_observation(settings.db_path, city.station_name)
        latest_observations[city.station_name] = (
            observation.observed_at.isoformat() if observation is not None else None
        )
    latest_rule = get_latest_rule_snapshot(settings.db_path)

    return JSONResponse(
        {
            "status": "ok",
            "service": "delivery-fee",
            "environment": settings.env.delivery_fee_env,
            "timezone": settings.env.delivery_fee_timezone,
            "scheduler_running": request.app.state.scheduler.running,
            "latest_observations": latest_observations,
            "latest_rule_snapshot_id": latest_rule.id if latest_rule is not None else None,
            "timestamp_utc": datetime.now(timezone.utc).isoformat(),
        }
    )

