"""HTTP API for the prescribed fire weather service."""

from typing import Dict, List, Optional

import requests
from fastapi import APIRouter, HTTPException, Query, status
from pydantic import BaseModel, Field

from rxfire.burn_windows import build_heatmap, find_burn_windows, prescription_status
from rxfire.config import settings
from rxfire.data_sources import UpstreamPayloadError, build_data_source
from rxfire.domain import (
    DEFAULT_PRESCRIPTION,
    PRESCRIPTION_PRESETS,
    AlertInfo,
    BurnWindow,
    FireIndexWarning,
    FireWeatherProducts,
    ForecastSnapshot,
    HeatmapRow,
    PrescriptionParams,
    PrescriptionStatus,
)
from rxfire.fire_science import fire_index_warnings
from rxfire.forecast_service import get_forecast_snapshot
from rxfire.units import format_wind
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="rxfire/api")

router = APIRouter()
DATA_SOURCE = build_data_source(settings)


class ForecastResponse(BaseModel):
    """Derived hourly forecast plus a quick read on the current hour."""
    snapshot: ForecastSnapshot
    current_wind: Optional[str] = None
    current_warnings: List[FireIndexWarning] = Field(default_factory=list)


class BurnWindowsRequest(BaseModel):
    """Point and prescription to evaluate."""
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    prescription: PrescriptionParams = DEFAULT_PRESCRIPTION


class AlertsResponse(BaseModel):
    """Active alerts for a point plus the office's fire weather text products."""
    alerts: List[AlertInfo] = Field(default_factory=list)
    fire_discussion: str = ""
    zone_forecast: str = ""
    burn_ban_info: str = ""


class BurnWindowsResponse(BaseModel):
    """Burn windows, heatmap and current status for one prescription."""
    timezone: str
    prescription: PrescriptionParams
    windows: List[BurnWindow]
    heatmap: List[HeatmapRow]
    current_status: Optional[PrescriptionStatus] = None


def _load_snapshot(latitude: float, longitude: float, days_since_rain: float) -> ForecastSnapshot:
    """Fetch and derive a snapshot, mapping upstream failures to 502."""
    try:
        return get_forecast_snapshot(
            latitude,
            longitude,
            days_since_rain=days_since_rain,
            data_source=DATA_SOURCE,
            max_hours=settings.forecast_hours,
        )
    except requests.RequestException as exc:
        logger.warning("Upstream forecast request failed", extra={"error": str(exc)})
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Upstream forecast unavailable.")
    except UpstreamPayloadError as exc:
        logger.warning("Upstream forecast payload unusable", extra={"error": str(exc)})
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))


@router.get("/forecast", response_model=ForecastResponse)
def get_forecast(
    lat: float = Query(..., ge=-90, le=90),
    lon: float = Query(..., ge=-180, le=180),
    days_since_rain: float = Query(DEFAULT_PRESCRIPTION.days_since_rain, ge=0),
):
    """Hourly fire-weather records for a point, with the current hour selected."""
    snapshot = _load_snapshot(lat, lon, days_since_rain)
    current = snapshot.current
    if current is None:
        return ForecastResponse(snapshot=snapshot)
    return ForecastResponse(
        snapshot=snapshot,
        current_wind=format_wind(current.wind_direction_cardinal, current.wind_speed, current.wind_gust),
        current_warnings=fire_index_warnings(current.ffmc, current.haines_index),
    )


@router.post("/burn-windows", response_model=BurnWindowsResponse)
def post_burn_windows(req: BurnWindowsRequest):
    """Evaluate a prescription against the forward-looking forecast."""
    rx = req.prescription
    snapshot = _load_snapshot(req.latitude, req.longitude, rx.days_since_rain)
    forward = snapshot.forward_hours()

    windows = find_burn_windows(forward, rx)
    logger.info(
        "Evaluated prescription",
        extra={"hours": len(forward), "windows": len(windows)},
    )
    current = snapshot.current
    return BurnWindowsResponse(
        timezone=snapshot.timezone,
        prescription=rx,
        windows=windows,
        heatmap=build_heatmap(forward, rx),
        current_status=prescription_status(current, rx) if current else None,
    )


@router.get("/prescriptions/presets", response_model=Dict[str, PrescriptionParams])
def get_presets():
    """Named prescription presets."""
    return PRESCRIPTION_PRESETS


@router.get("/alerts", response_model=AlertsResponse)
def get_alerts(
    lat: float = Query(..., ge=-90, le=90),
    lon: float = Query(..., ge=-180, le=180),
    office: Optional[str] = Query(None, min_length=3, max_length=4),
):
    """Active red flag, fire weather and wind alerts for a point.

    With an NWS office id the latest fire weather discussion, zone forecast
    and burn ban notice are included as well.
    """
    products = DATA_SOURCE.fetch_fire_weather_products(office) if office else FireWeatherProducts()
    return AlertsResponse(
        alerts=DATA_SOURCE.fetch_alerts(lat, lon),
        **products.model_dump(),
    )
