"""Deterministic fire-behavior indices and burn-quality scoring.

Pure functions over a single hour's converted weather (°F, %, mph, ft). They
clamp rather than raise on out-of-range input, so any finite value produces
a bounded result. The coefficients below are fixed heuristics carried over
from the prescribed-burning planning worksheet; change them and results will
no longer line up with previously issued burn plans.
"""

from __future__ import annotations

from typing import List

from rxfire.domain import (
    BURN_QUALITY_THRESHOLDS,
    DISPERSION_THRESHOLDS,
    FFMC_EXTREME,
    FFMC_VERY_HIGH,
    HAINES_ELEVATED,
    BurnAssessment,
    BurnQuality,
    DispersionResult,
    FireIndexWarning,
    FuelMoisture,
)
from rxfire.units import round_half_up

FUEL_MOISTURE_MIN = 1.0
FUEL_MOISTURE_MAX = 35.0

# (asymptote, daily decay base) for drying since the last rain
TEN_HOUR_DRYING = (25.0, 0.8)
HUNDRED_HOUR_DRYING = (40.0, 0.95)

SUBSCORE_MAX = 25.0
GUST_LIMIT_MPH = 25.0
GUST_PENALTY = 15.0
LOW_MIXING_HEIGHT_FT = 1500.0
LOW_MIXING_HEIGHT_PENALTY = 10.0


def _clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


def calculate_kbdi_trend(temp: float, humidity: float) -> float:
    """Drought trend signal on a rough 0-800 scale.

    Not the cumulative Keetch-Byram index: it has no rainfall bookkeeping and
    is only meaningful relative to other hours. Unclamped.
    """
    return (100 - humidity) * 2 + (temp - 60) * 0.5


def calculate_ffmc(temp: float, humidity: float, wind_speed: float) -> float:
    """Fine Fuel Moisture Code approximation, clamped to [0, 100].

    >=92 extreme ignition potential, 89-91 very high, 85-88 high.
    """
    ffmc = 85 + (temp - 60) * 0.3 - (humidity - 45) * 0.5 + wind_speed * 0.1
    return _clamp(ffmc, 0.0, 100.0)


def equilibrium_moisture_content(temp: float, humidity: float) -> float:
    """Simard (1968) EMC in percent, one branch per humidity band."""
    h, t = humidity, temp
    if h <= 10:
        return 0.03229 + 0.281073 * h - 0.000578 * h * t
    if h <= 50:
        return 2.22749 + 0.160107 * h - 0.01478 * t
    return 21.0606 + 0.005565 * h * h - 0.00035 * h * t - 0.483199 * h


def _dried(emc: float, asymptote: float, base: float, days_since_rain: float) -> float:
    try:
        decay = base ** days_since_rain
    except OverflowError:
        # negative day counts blow the decay up; pin to the matching bound
        if asymptote == emc:
            return _clamp(emc, FUEL_MOISTURE_MIN, FUEL_MOISTURE_MAX)
        return FUEL_MOISTURE_MAX if asymptote > emc else FUEL_MOISTURE_MIN
    value = emc + (asymptote - emc) * decay
    return _clamp(value, FUEL_MOISTURE_MIN, FUEL_MOISTURE_MAX)


def calculate_fuel_moisture(temp: float, humidity: float, days_since_rain: float) -> FuelMoisture:
    """Fuel moisture for the 1-hr, 10-hr and 100-hr timelag classes.

    1-hr fuels sit at EMC. Heavier fuels start at a wet asymptote on the day
    of rain (25% and 40%) and decay toward EMC a little every dry day; the
    100-hr class decays more slowly. Each value is clamped to [1, 35].
    """
    emc = equilibrium_moisture_content(temp, humidity)
    return FuelMoisture(
        one_hour=_clamp(emc, FUEL_MOISTURE_MIN, FUEL_MOISTURE_MAX),
        ten_hour=_dried(emc, *TEN_HOUR_DRYING, days_since_rain),
        hundred_hour=_dried(emc, *HUNDRED_HOUR_DRYING, days_since_rain),
    )


def calculate_ignition_probability(fuel_moisture_1hr: float) -> float:
    """Probability of ignition (%) from 1-hr fuel moisture, clamped to [0, 100]."""
    return _clamp(100 - fuel_moisture_1hr * 2.5, 0.0, 100.0)


def calculate_ventilation_index(mixing_height_ft: float, transport_wind_mph: float) -> int:
    return round_half_up(mixing_height_ft * transport_wind_mph)


def stability_factor(hour: int) -> float:
    """Atmospheric mixing multiplier for a local hour of day.

    10:00-15:00 is the unstable afternoon (1.0), 07-09 and 16-18 are
    transition hours (0.8) and the rest of the night is stable (0.5).
    """
    if 10 <= hour <= 15:
        return 1.0
    if 7 <= hour <= 9 or 16 <= hour <= 18:
        return 0.8
    return 0.5


def determine_dispersion_category(
    mixing_height_ft: float,
    transport_wind_mph: float,
    hour: int,
) -> DispersionResult:
    """Classify smoke dispersion from the stability-adjusted ventilation index."""
    adjusted_vi = mixing_height_ft * transport_wind_mph * stability_factor(hour)

    for minimum, category, description in DISPERSION_THRESHOLDS:
        if adjusted_vi >= minimum:
            break
    else:
        # negative VI (bad upstream data) still lands in the bottom tier
        _, category, description = DISPERSION_THRESHOLDS[-1]

    return DispersionResult(
        category=category,
        description=description,
        adjusted_vi=round_half_up(adjusted_vi),
    )


def burn_quality_label(score: float) -> BurnQuality:
    for minimum, quality in BURN_QUALITY_THRESHOLDS:
        if score >= minimum:
            return quality
    return BurnQuality.POOR


def _temperature_score(temp: float) -> float:
    if 40 <= temp <= 80:
        return SUBSCORE_MAX
    if 30 <= temp < 40:
        return SUBSCORE_MAX - (40 - temp) * 2.5
    if 80 < temp <= 90:
        return SUBSCORE_MAX - (temp - 80) * 2.5
    return 0.0


def _humidity_score(humidity: float) -> float:
    if 30 <= humidity <= 55:
        return SUBSCORE_MAX
    if 20 <= humidity < 30:
        return SUBSCORE_MAX - (30 - humidity) * 2.5
    if 55 < humidity <= 65:
        return SUBSCORE_MAX - (humidity - 55) * 2.5
    return 0.0


def _wind_score(wind_speed: float, wind_gust: float) -> float:
    if 4 <= wind_speed <= 15:
        score = SUBSCORE_MAX
    elif 2 <= wind_speed < 4:
        score = SUBSCORE_MAX - (4 - wind_speed) * 12.5
    elif 15 < wind_speed <= 20:
        score = SUBSCORE_MAX - (wind_speed - 15) * 5
    else:
        score = 0.0
    if wind_gust > GUST_LIMIT_MPH:
        score = max(0.0, score - GUST_PENALTY)
    return score


def _ventilation_score(ventilation_index: float, mixing_height_ft: float) -> float:
    if ventilation_index >= 40000:
        score = SUBSCORE_MAX
    elif ventilation_index >= 20000:
        score = SUBSCORE_MAX * ((ventilation_index - 20000) / 20000)
    else:
        score = 0.0
    if mixing_height_ft < LOW_MIXING_HEIGHT_FT:
        score = max(0.0, score - LOW_MIXING_HEIGHT_PENALTY)
    return score


def assess_burn_window(
    temp: float,
    humidity: float,
    wind_speed: float,
    wind_gust: float,
    mixing_height_ft: float,
    ventilation_index: float,
) -> BurnAssessment:
    """Composite 0-100 burn score from four 0-25 sub-scores.

    Temperature (ideal 40-80°F), humidity (ideal 30-55%), wind (ideal
    4-15 mph, gusts over 25 mph cost 15 points) and ventilation (full marks
    at VI >= 40000, 10 points off when mixing height is under 1500 ft).
    """
    total = (
        _temperature_score(temp)
        + _humidity_score(humidity)
        + _wind_score(wind_speed, wind_gust)
        + _ventilation_score(ventilation_index, mixing_height_ft)
    )
    score = round_half_up(_clamp(total, 0.0, 100.0))
    return BurnAssessment(quality=burn_quality_label(score), score=score)


def fire_index_warnings(ffmc: float, haines_index: float) -> List[FireIndexWarning]:
    """Flag FFMC and Haines values that call for extra caution."""
    warnings: List[FireIndexWarning] = []
    if ffmc >= FFMC_EXTREME:
        warnings.append(FireIndexWarning(index="FFMC", value=ffmc, message="EXTREME ignition potential"))
    elif ffmc >= FFMC_VERY_HIGH:
        warnings.append(FireIndexWarning(index="FFMC", value=ffmc, message="Very high ignition potential"))
    if haines_index >= HAINES_ELEVATED:
        warnings.append(FireIndexWarning(index="Haines", value=haines_index, message="Elevated fire potential"))
    return warnings
