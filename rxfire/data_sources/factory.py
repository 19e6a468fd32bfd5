"""Factory helpers for choosing a grid forecast data source at startup."""

from __future__ import annotations

from rxfire import config
from rxfire.data_sources.base import CallableGridDataSource, GridDataSource
from rxfire.data_sources.nws_client import fetch_alerts, fetch_fire_weather_products, fetch_grid_forecast
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="data_sources/factory")


DEFAULT_SOURCE_NAME = "nws"


def build_data_source(settings: config.Settings | None = None) -> GridDataSource:
    """Instantiate the configured grid forecast data source."""
    settings = settings or config.settings
    source = (settings.forecast_source or DEFAULT_SOURCE_NAME).lower()

    if source == "nws":
        logger.info("Using NWS gridpoints data source")
        return CallableGridDataSource(
            grid_forecast=fetch_grid_forecast,
            alerts=fetch_alerts,
            fire_weather_products=fetch_fire_weather_products,
        )

    if source == "file":
        from .file_source import FileGridDataSource

        path = settings.grid_file_path
        if not path:
            raise ValueError("grid_file_path must be set for the file data source")
        logger.info("Using saved grid file data source", extra={"path": path})
        return FileGridDataSource(path)

    raise ValueError(f"Unknown forecast source '{source}'")
