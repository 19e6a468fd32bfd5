"""Grid forecast data source backed by a saved NWS gridpoints JSON document.

Useful for offline work and replaying a captured forecast. The file may hold
either the whole gridpoints document or just its `properties` object; a
top-level `timeZone` key, when present, overrides the configured default.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import List, Optional

from rxfire.data_sources.base import GridDataSource, UpstreamPayloadError
from rxfire.data_sources.nws_client import parse_grid_properties
from rxfire.domain import AlertInfo, FireWeatherProducts, GridForecast
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="file_data_source")


class FileGridDataSource(GridDataSource):
    """Serve the same saved grid forecast for every point."""

    def __init__(self, path: str | Path, *, timezone: Optional[str] = None) -> None:
        self.path = Path(path)
        self.timezone = timezone

    def _load(self) -> dict:
        with self.path.open("r", encoding="utf-8") as fh:
            doc = json.load(fh)
        if not isinstance(doc, dict):
            raise UpstreamPayloadError(f"Grid file {self.path} does not hold a JSON object")
        return doc

    def fetch_grid_forecast(self, latitude: float, longitude: float) -> GridForecast:
        doc = self._load()
        properties = doc.get("properties", doc)
        if not isinstance(properties, dict):
            raise UpstreamPayloadError(f"Grid file {self.path} has no properties object")

        logger.info(
            "Loaded grid forecast from file",
            extra={"path": str(self.path), "latitude": latitude, "longitude": longitude},
        )
        return parse_grid_properties(
            properties,
            timezone=self.timezone or doc.get("timeZone") or properties.get("timeZone"),
            office=properties.get("gridId") or "",
        )

    def fetch_alerts(self, latitude: float, longitude: float) -> List[AlertInfo]:
        # A saved grid carries no alert feed.
        return []

    def fetch_fire_weather_products(self, office: str) -> FireWeatherProducts:
        return FireWeatherProducts()
