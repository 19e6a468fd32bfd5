"""Interfaces and helpers for grid forecast data sources."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Protocol

from rxfire.domain import AlertInfo, FireWeatherProducts, GridForecast


class UpstreamPayloadError(ValueError):
    """An upstream document is missing the fields needed to build a forecast."""


class GridDataSource(Protocol):
    """Interface for anything that can provide a normalized grid forecast."""

    def fetch_grid_forecast(self, latitude: float, longitude: float) -> GridForecast:
        """Return the run-length-encoded forecast series for a point."""
        ...

    def fetch_alerts(self, latitude: float, longitude: float) -> List[AlertInfo]:
        """Return active burn-relevant alerts for a point."""
        ...

    def fetch_fire_weather_products(self, office: str) -> FireWeatherProducts:
        """Return the office's latest fire weather text products."""
        ...


@dataclass
class CallableGridDataSource(GridDataSource):
    """Wrap callables so they can be swapped for different backends."""

    grid_forecast: Callable[..., GridForecast]
    alerts: Callable[..., List[AlertInfo]] | None = None
    fire_weather_products: Callable[..., FireWeatherProducts] | None = None

    def fetch_grid_forecast(self, latitude: float, longitude: float) -> GridForecast:
        """Delegate to the configured grid-forecast callable."""
        return self.grid_forecast(latitude, longitude)

    def fetch_alerts(self, latitude: float, longitude: float) -> List[AlertInfo]:
        """Delegate to the configured alerts callable; no callable means no alerts."""
        if self.alerts is None:
            return []
        return self.alerts(latitude, longitude)

    def fetch_fire_weather_products(self, office: str) -> FireWeatherProducts:
        """Delegate to the configured products callable; none means empty text."""
        if self.fire_weather_products is None:
            return FireWeatherProducts()
        return self.fire_weather_products(office)
