"""Unit conversions, compass bearings and short weather abbreviations.

Everything here is a total function over finite floats; callers are
responsible for not passing NaN or infinities.
"""

from __future__ import annotations

import math
from typing import Optional

COMPASS_DIRECTIONS = (
    "N", "NNE", "NE", "ENE", "E", "ESE", "SE", "SSE",
    "S", "SSW", "SW", "WSW", "W", "WNW", "NW", "NNW",
)

_KMH_PER_MPH_INV = 0.621371
_KNOTS_TO_MPH = 1.15078
_METERS_TO_FEET = 3.28084
_MPH_TO_MS = 0.44704

# 8-point labels used on burn permits
_OCTANT_DEGREES = {
    "N": 0, "NE": 45, "E": 90, "SE": 135,
    "S": 180, "SW": 225, "W": 270, "NW": 315,
}


def celsius_to_fahrenheit(c: float) -> float:
    return c * 9 / 5 + 32


def fahrenheit_to_celsius(f: float) -> float:
    return (f - 32) * 5 / 9


def kmh_to_mph(kmh: float) -> float:
    return kmh * _KMH_PER_MPH_INV


def mph_to_kmh(mph: float) -> float:
    return mph / _KMH_PER_MPH_INV


def knots_to_mph(knots: float) -> float:
    return knots * _KNOTS_TO_MPH


def mph_to_knots(mph: float) -> float:
    return mph / _KNOTS_TO_MPH


def meters_to_feet(m: float) -> float:
    return m * _METERS_TO_FEET


def feet_to_meters(ft: float) -> float:
    return ft / _METERS_TO_FEET


def mph_to_ms(mph: float) -> float:
    return mph * _MPH_TO_MS


def ms_to_mph(ms: float) -> float:
    return ms / _MPH_TO_MS


def degrees_to_cardinal(degrees: float) -> str:
    """Map a bearing to the nearest of 16 compass points.

    Halfway bearings round up (11.25 -> NNE) and anything at or past 348.75
    wraps back to N. Negative bearings wrap the same way.
    """
    index = int(math.floor(degrees / 22.5 + 0.5)) % 16
    return COMPASS_DIRECTIONS[index]


def wind_direction_to_degrees(direction: str) -> Optional[int]:
    """Meteorological degrees (N=0, clockwise) for an 8-point label, else None."""
    if not direction:
        return None
    return _OCTANT_DEGREES.get(direction.strip().upper())


def sky_cover_abbr(percent: float) -> str:
    """Sky cover category used in fire weather planning forecasts."""
    if percent <= 10:
        return "CLR"
    if percent <= 30:
        return "FW"
    if percent <= 50:
        return "PC"
    if percent <= 70:
        return "MC"
    if percent <= 90:
        return "MCR"
    return "OVC"


def weather_abbr(code: Optional[str]) -> str:
    """One- or two-letter weather abbreviation from an NWS phenomenon string."""
    if not code:
        return ""
    lower = code.lower()
    if "thunderstorm" in lower:
        return "T"
    if "rain" in lower or "drizzle" in lower:
        return "RW"
    if "snow" in lower or "flurries" in lower:
        return "S"
    if "fog" in lower:
        return "F"
    if "smoke" in lower:
        return "K"
    if "haze" in lower:
        return "H"
    return ""


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves toward +infinity (2.5 -> 3, -2.5 -> -2)."""
    return int(math.floor(value + 0.5))


def round_tenth(value: float) -> float:
    """Round to one decimal place, halves toward +infinity."""
    return math.floor(value * 10 + 0.5) / 10


def format_wind(direction: str, speed: float, gust: Optional[float] = None) -> str:
    """Format e.g. "SW 8 mph G20"; gusts only shown when >5 mph above speed."""
    text = f"{direction} {round_half_up(speed)} mph"
    if gust and gust > speed + 5:
        text += f" G{round_half_up(gust)}"
    return text
