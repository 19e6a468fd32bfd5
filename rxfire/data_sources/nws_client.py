"""Helpers for fetching grid forecasts, narratives, alerts and fire weather products from api.weather.gov."""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional

import requests
import requests_cache
from retry_requests import retry

from rxfire.config import settings
from rxfire.data_sources.base import UpstreamPayloadError
from rxfire.domain import AlertInfo, FireWeatherProducts, GridForecast, NarrativePeriod, TimeSeriesEntry
from rxfire.timeseries import entries_from_values
from rxfire.units import (
    fahrenheit_to_celsius,
    feet_to_meters,
    kmh_to_mph,
    knots_to_mph,
    mph_to_kmh,
    mph_to_knots,
    ms_to_mph,
    wind_direction_to_degrees,
)
from utils.logging_utils import get_tagged_logger
logger = get_tagged_logger(__name__, tag="nws_client")

cache_session = requests_cache.CachedSession(
    ".cache",
    expire_after=settings.http_cache_seconds,
    allowable_codes=(200,),
)
session = retry(cache_session, retries=settings.http_retries, backoff_factor=0.2)

NWS_HEADERS = {
    "User-Agent": settings.nws_user_agent,
    "Accept": "application/geo+json",
}

# grid property name -> GridForecast field
GRID_FIELDS = {
    "temperature": "temperature",
    "relativeHumidity": "relative_humidity",
    "windSpeed": "wind_speed",
    "windDirection": "wind_direction",
    "windGust": "wind_gust",
    "skyCover": "sky_cover",
    "mixingHeight": "mixing_height",
    "transportWindSpeed": "transport_wind_speed",
    "transportWindDirection": "transport_wind_direction",
    "hainesIndex": "haines_index",
    "probabilityOfPrecipitation": "probability_of_precipitation",
    "weather": "weather",
}

# Units the derivation pipeline expects for each grid property.
EXPECTED_GRID_UNITS = {
    "temperature": "wmoUnit:degC",
    "windSpeed": "wmoUnit:km_h-1",
    "windGust": "wmoUnit:km_h-1",
    "mixingHeight": "wmoUnit:m",
    "transportWindSpeed": "wmoUnit:kn",
}

# (expected, actual) -> converter from actual into expected
_UNIT_CONVERTERS: Dict[tuple[str, str], Callable[[float], float]] = {
    ("wmoUnit:degC", "wmoUnit:degF"): fahrenheit_to_celsius,
    ("wmoUnit:km_h-1", "wmoUnit:kn"): lambda v: mph_to_kmh(knots_to_mph(v)),
    ("wmoUnit:km_h-1", "wmoUnit:m_s-1"): lambda v: mph_to_kmh(ms_to_mph(v)),
    ("wmoUnit:kn", "wmoUnit:km_h-1"): lambda v: mph_to_knots(kmh_to_mph(v)),
    ("wmoUnit:kn", "wmoUnit:m_s-1"): lambda v: mph_to_knots(ms_to_mph(v)),
    ("wmoUnit:m", "wmoUnit:ft"): feet_to_meters,
}

FIRE_ALERT_KEYWORDS = ("red flag", "fire weather", "wind")

# .DISCUSSION runs until the first zone header, next dot-section, && or $$
DISCUSSION_PATTERN = re.compile(r"\.DISCUSSION.*?(?=\n\n[A-Z]{2}Z\d{3}|\n\n\.|&&|\$\$)", re.DOTALL)
ZONE_SEPARATOR = "$$"


@dataclass
class PointMetadata:
    """What /points/{lat},{lon} tells us about a location."""
    office: str
    grid_data_url: str
    forecast_url: Optional[str]
    timezone: str
    forecast_zone: Optional[str]
    city: str
    state: str


def _get_json(url: str, **kwargs) -> dict:
    resp = session.get(url, headers=NWS_HEADERS, timeout=settings.request_timeout_seconds, **kwargs)
    resp.raise_for_status()
    return resp.json()


def _weather_code(value: Any) -> str:
    """First phenomenon string from an NWS weather value list, else ""."""
    if isinstance(value, list) and value and isinstance(value[0], Mapping):
        return value[0].get("weather") or ""
    return ""


def _convert_entries(
    prop: str,
    entries: List[TimeSeriesEntry],
    uom: Optional[str],
) -> List[TimeSeriesEntry]:
    """Bring a series into the unit the pipeline expects, when the API used another."""
    expected = EXPECTED_GRID_UNITS.get(prop)
    if not expected or not uom or uom == expected:
        return entries
    convert = _UNIT_CONVERTERS.get((expected, uom))
    if convert is None:
        logger.warning(
            "Unexpected NWS grid unit",
            extra={"field": prop, "unit": uom, "expected": expected},
        )
        return entries
    return [
        e.model_copy(update={"value": convert(e.value) if isinstance(e.value, (int, float)) else e.value})
        for e in entries
    ]


def parse_point_metadata(payload: Mapping[str, Any]) -> PointMetadata:
    """Normalize a /points response; raise UpstreamPayloadError when unusable."""
    props = payload.get("properties") if isinstance(payload, Mapping) else None
    if not isinstance(props, Mapping) or not props.get("forecastGridData"):
        raise UpstreamPayloadError("NWS point lookup returned no grid data URL")

    relative = (props.get("relativeLocation") or {}).get("properties") or {}
    return PointMetadata(
        office=props.get("cwa") or props.get("gridId") or "",
        grid_data_url=props["forecastGridData"],
        forecast_url=props.get("forecast"),
        timezone=props.get("timeZone") or settings.default_timezone,
        forecast_zone=props.get("forecastZone"),
        city=relative.get("city") or "",
        state=relative.get("state") or "",
    )


def parse_grid_properties(
    properties: Mapping[str, Any],
    *,
    timezone: Optional[str] = None,
    office: str = "",
    city: str = "",
    state: str = "",
    forecast_zone: str = "",
    narrative: Optional[List[NarrativePeriod]] = None,
) -> GridForecast:
    """Turn the `properties` object of a gridpoints document into a GridForecast.

    Missing elements become empty series; the pipeline treats those as zeros.
    """
    series: Dict[str, List[TimeSeriesEntry]] = {}
    for prop, field in GRID_FIELDS.items():
        element = properties.get(prop) or {}
        value_of = _weather_code if prop == "weather" else None
        entries = entries_from_values(element.get("values"), value_of=value_of)
        series[field] = _convert_entries(prop, entries, element.get("uom"))

    return GridForecast(
        **series,
        timezone=timezone or settings.default_timezone,
        office=office,
        city=city,
        state=state,
        forecast_zone=forecast_zone,
        narrative=narrative or [],
    )


def parse_narrative(payload: Mapping[str, Any]) -> List[NarrativePeriod]:
    periods = ((payload or {}).get("properties") or {}).get("periods") or []
    out: List[NarrativePeriod] = []
    for p in periods:
        direction = p.get("windDirection")
        out.append(
            NarrativePeriod(
                name=p.get("name") or "",
                detailed_forecast=p.get("detailedForecast") or "",
                short_forecast=p.get("shortForecast") or "",
                temperature=p.get("temperature"),
                temperature_unit=p.get("temperatureUnit") or "F",
                wind_speed=p.get("windSpeed") or "",
                wind_direction=direction if isinstance(direction, str) else "",
                wind_direction_degrees=wind_direction_to_degrees(direction) if isinstance(direction, str) else None,
                is_daytime=bool(p.get("isDaytime", True)),
            )
        )
    return out


def parse_alerts(payload: Mapping[str, Any]) -> List[AlertInfo]:
    """Keep only alerts that matter for burning (red flag, fire weather, wind)."""
    out: List[AlertInfo] = []
    for feature in (payload or {}).get("features") or []:
        props = feature.get("properties") or {}
        event = props.get("event") or ""
        if not any(k in event.lower() for k in FIRE_ALERT_KEYWORDS):
            continue
        out.append(
            AlertInfo(
                event=event,
                headline=props.get("headline") or "",
                description=props.get("description") or "",
                severity=props.get("severity") or "",
                onset=props.get("onset"),
                expires=props.get("expires"),
            )
        )
    return out


def parse_fire_weather_forecast(product_text: str) -> tuple[str, str]:
    """Split an FWF product into its discussion and its zone forecasts."""
    match = DISCUSSION_PATTERN.search(product_text or "")
    discussion = match.group(0).strip() if match else ""

    sections = (product_text or "").split(ZONE_SEPARATOR)
    zone_forecast = "\n---\n".join(sections[1:]).strip() if len(sections) > 1 else ""
    return discussion, zone_forecast


def parse_burn_ban(product_text: str) -> str:
    """The FWN text when it mentions a burn ban, else ""."""
    if "burn ban" in (product_text or "").lower():
        return product_text
    return ""


def fetch_point_metadata(latitude: float, longitude: float) -> PointMetadata:
    """Resolve a lat/lon to its NWS office, grid URL and timezone."""
    url = f"{settings.nws_base_url}/points/{latitude:.4f},{longitude:.4f}"
    return parse_point_metadata(_get_json(url))


def fetch_narrative(forecast_url: Optional[str]) -> List[NarrativePeriod]:
    """Narrative periods are informational; failures are logged and yield []."""
    if not forecast_url:
        return []
    try:
        return parse_narrative(_get_json(forecast_url))
    except requests.RequestException as exc:
        logger.warning("NWS narrative forecast unavailable", extra={"error": str(exc)})
        return []


def fetch_grid_forecast(latitude: float, longitude: float) -> GridForecast:
    """Fetch and normalize the full grid forecast for a point."""
    point = fetch_point_metadata(latitude, longitude)
    logger.info("Resolved NWS point", extra={"office": point.office, "timezone": point.timezone})

    grid_payload = _get_json(point.grid_data_url)
    properties = grid_payload.get("properties")
    if not isinstance(properties, Mapping):
        raise UpstreamPayloadError("NWS grid data response has no properties")

    return parse_grid_properties(
        properties,
        timezone=point.timezone,
        office=point.office,
        city=point.city,
        state=point.state,
        forecast_zone=(point.forecast_zone or "").rsplit("/", 1)[-1],
        narrative=fetch_narrative(point.forecast_url),
    )


def fetch_alerts(latitude: float, longitude: float) -> List[AlertInfo]:
    """Active burn-relevant alerts for the point's forecast zone; [] on failure."""
    try:
        point = fetch_point_metadata(latitude, longitude)
        if not point.forecast_zone:
            return []
        zone_id = point.forecast_zone.rsplit("/", 1)[-1]
        return parse_alerts(_get_json(f"{settings.nws_base_url}/alerts/active/zone/{zone_id}"))
    except (requests.RequestException, UpstreamPayloadError) as exc:
        logger.warning("NWS alerts unavailable", extra={"error": str(exc)})
        return []


def _latest_product_text(product_type: str, office: str) -> str:
    """productText of the office's most recent product of a type, else ""."""
    listing = _get_json(f"{settings.nws_base_url}/products/types/{product_type}/locations/{office}")
    graph = listing.get("@graph") or []
    latest = graph[0] if graph and isinstance(graph[0], Mapping) else {}
    if not latest.get("@id"):
        return ""
    return _get_json(latest["@id"]).get("productText") or ""


def fetch_fire_discussion(office: str) -> tuple[str, str]:
    """(discussion, zone forecast) from the latest FWF; ("", "") on failure."""
    if not office:
        return "", ""
    try:
        return parse_fire_weather_forecast(_latest_product_text("FWF", office))
    except requests.RequestException as exc:
        logger.warning("NWS fire weather forecast unavailable", extra={"office": office, "error": str(exc)})
        return "", ""


def fetch_burn_ban(office: str) -> str:
    """Burn ban text from the latest FWN; "" when absent or unavailable."""
    if not office:
        return ""
    try:
        return parse_burn_ban(_latest_product_text("FWN", office))
    except requests.RequestException as exc:
        logger.warning("NWS fire weather notification unavailable", extra={"office": office, "error": str(exc)})
        return ""


def fetch_fire_weather_products(office: str) -> FireWeatherProducts:
    discussion, zone_forecast = fetch_fire_discussion(office)
    return FireWeatherProducts(
        fire_discussion=discussion,
        zone_forecast=zone_forecast,
        burn_ban_info=fetch_burn_ban(office),
    )
