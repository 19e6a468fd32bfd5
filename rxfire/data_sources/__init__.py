"""Data source factories for plugging different grid forecast backends."""

from .base import CallableGridDataSource, GridDataSource, UpstreamPayloadError
from .factory import build_data_source
from .file_source import FileGridDataSource
from .nws_client import (
    PointMetadata,
    fetch_alerts,
    fetch_burn_ban,
    fetch_fire_discussion,
    fetch_fire_weather_products,
    fetch_grid_forecast,
    fetch_narrative,
    fetch_point_metadata,
    parse_grid_properties,
)

__all__ = [
    "build_data_source",
    "GridDataSource",
    "CallableGridDataSource",
    "FileGridDataSource",
    "UpstreamPayloadError",
    "PointMetadata",
    "fetch_alerts",
    "fetch_burn_ban",
    "fetch_fire_discussion",
    "fetch_fire_weather_products",
    "fetch_grid_forecast",
    "fetch_narrative",
    "fetch_point_metadata",
    "parse_grid_properties",
]
