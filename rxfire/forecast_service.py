"""Assemble enriched hourly fire-weather records from an upstream grid forecast."""
from __future__ import annotations

import datetime as dt
from typing import Any, List, Optional, Sequence
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from rxfire.config import settings
from rxfire.data_sources import GridDataSource, build_data_source
from rxfire.domain import (
    ForecastSnapshot,
    GridForecast,
    HourValue,
    HourlyForecastRecord,
    Location,
)
from rxfire.fire_science import (
    assess_burn_window,
    calculate_ffmc,
    calculate_fuel_moisture,
    calculate_ignition_probability,
    calculate_kbdi_trend,
    calculate_ventilation_index,
    determine_dispersion_category,
)
from rxfire.timeseries import DEFAULT_HORIZON_HOURS, expand_time_series
from rxfire.units import (
    celsius_to_fahrenheit,
    degrees_to_cardinal,
    kmh_to_mph,
    knots_to_mph,
    meters_to_feet,
    mph_to_ms,
    round_half_up,
    round_tenth,
    sky_cover_abbr,
    weather_abbr,
)
from utils.logging_utils import get_tagged_logger
logger = get_tagged_logger(__name__, tag="forecast_service")

DEFAULT_TIMEZONE = settings.default_timezone


def resolve_timezone(tz_name: Optional[str]) -> ZoneInfo:
    """ZoneInfo for an IANA name, falling back to US Central for blank/unknown names."""
    try:
        return ZoneInfo(tz_name or DEFAULT_TIMEZONE)
    except (ZoneInfoNotFoundError, ValueError, OSError):
        logger.warning("Unknown timezone; using default", extra={"timezone": tz_name})
        return ZoneInfo(DEFAULT_TIMEZONE)


def _hour12(local: dt.datetime) -> tuple[int, str]:
    hour = local.hour % 12 or 12
    return hour, "AM" if local.hour < 12 else "PM"


def format_local_time(local: dt.datetime) -> str:
    """e.g. "5/1/2024, 9:00:00 AM"."""
    hour, meridiem = _hour12(local)
    return f"{local.month}/{local.day}/{local.year}, {hour}:{local.minute:02d}:{local.second:02d} {meridiem}"


def format_date_label(local: dt.datetime) -> str:
    """e.g. "Wed, May 1"."""
    return f"{local:%a}, {local:%b} {local.day}"


def _value_at(series: Sequence[HourValue], i: int, default: Any = 0.0) -> Any:
    if i >= len(series):
        return default
    value = series[i].value
    return default if value is None else value


def _number_at(series: Sequence[HourValue], i: int) -> float:
    value = _value_at(series, i)
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def build_hourly_record(
    time: dt.datetime,
    tz: ZoneInfo,
    *,
    temp_c: float,
    humidity: float,
    wind_speed_kmh: float,
    wind_gust_kmh: float,
    wind_direction: float,
    sky_cover: float,
    mixing_height_m: float,
    transport_wind_knots: float,
    transport_wind_direction: float,
    haines_index: float,
    precip_chance: float,
    weather_code: str,
    days_since_rain: float,
) -> HourlyForecastRecord:
    """Convert one hour of raw grid values and derive every fire index for it.

    Indices are computed from the unrounded converted values; rounding only
    happens when the record is stored.
    """
    temp_f = celsius_to_fahrenheit(temp_c)
    wind_mph = kmh_to_mph(wind_speed_kmh)
    gust_mph = kmh_to_mph(wind_gust_kmh)
    mixing_height_ft = meters_to_feet(mixing_height_m)
    transport_mph = knots_to_mph(transport_wind_knots)

    local = time.astimezone(tz)

    vi = calculate_ventilation_index(mixing_height_ft, transport_mph)
    fuel = calculate_fuel_moisture(temp_f, humidity, days_since_rain)
    dispersion = determine_dispersion_category(mixing_height_ft, transport_mph, local.hour)
    assessment = assess_burn_window(temp_f, humidity, wind_mph, gust_mph, mixing_height_ft, vi)

    return HourlyForecastRecord(
        time=time.astimezone(dt.timezone.utc),
        local_time=format_local_time(local),
        local_hour=local.hour,
        local_date=format_date_label(local),
        temp=round_half_up(temp_f),
        humidity=round_half_up(humidity),
        wind_speed=round_tenth(wind_mph),
        wind_gust=round_tenth(gust_mph),
        wind_direction=wind_direction,
        wind_direction_cardinal=degrees_to_cardinal(wind_direction),
        sky_cover=round_half_up(sky_cover),
        sky_cover_abbr=sky_cover_abbr(sky_cover),
        weather_code=weather_code,
        weather_abbr=weather_abbr(weather_code),
        mixing_height=round_half_up(mixing_height_ft),
        transport_wind_speed=round_tenth(transport_mph),
        transport_wind_speed_ms=round_tenth(mph_to_ms(transport_mph)),
        transport_wind_direction=transport_wind_direction,
        transport_wind_direction_cardinal=degrees_to_cardinal(transport_wind_direction),
        haines_index=haines_index,
        precip_chance=round_half_up(precip_chance),
        ventilation_index=vi,
        kbdi_trend=round_half_up(calculate_kbdi_trend(temp_f, humidity)),
        ffmc=round_tenth(calculate_ffmc(temp_f, humidity, wind_mph)),
        fuel_moisture_1hr=round_tenth(fuel.one_hour),
        fuel_moisture_10hr=round_tenth(fuel.ten_hour),
        fuel_moisture_100hr=round_tenth(fuel.hundred_hour),
        dispersion_category=dispersion.category,
        dispersion_description=dispersion.description,
        adjusted_vi=dispersion.adjusted_vi,
        burn_quality=assessment.quality,
        burn_score=assessment.score,
        ignition_probability=round_half_up(calculate_ignition_probability(fuel.one_hour)),
    )


def build_hourly_forecast(
    grid: GridForecast,
    *,
    days_since_rain: float,
    max_hours: int = DEFAULT_HORIZON_HOURS,
) -> List[HourlyForecastRecord]:
    """Expand every grid series and assemble up to `max_hours` enriched records.

    Series are aligned by position. The temperature series sets the timeline
    and the record count; a slot missing from any other series reads as 0
    (or "" for the weather code).
    """
    tz = resolve_timezone(grid.timezone)

    temps = expand_time_series(grid.temperature, max_hours)
    humidities = expand_time_series(grid.relative_humidity, max_hours)
    wind_speeds = expand_time_series(grid.wind_speed, max_hours)
    wind_dirs = expand_time_series(grid.wind_direction, max_hours)
    wind_gusts = expand_time_series(grid.wind_gust, max_hours)
    sky_covers = expand_time_series(grid.sky_cover, max_hours)
    mixing_heights = expand_time_series(grid.mixing_height, max_hours)
    transport_speeds = expand_time_series(grid.transport_wind_speed, max_hours)
    transport_dirs = expand_time_series(grid.transport_wind_direction, max_hours)
    haines = expand_time_series(grid.haines_index, max_hours)
    precip = expand_time_series(grid.probability_of_precipitation, max_hours)
    weather_codes = expand_time_series(grid.weather, max_hours)

    records: List[HourlyForecastRecord] = []
    for i in range(min(max_hours, len(temps))):
        code = _value_at(weather_codes, i, default="")
        records.append(
            build_hourly_record(
                temps[i].time,
                tz,
                temp_c=_number_at(temps, i),
                humidity=_number_at(humidities, i),
                wind_speed_kmh=_number_at(wind_speeds, i),
                wind_gust_kmh=_number_at(wind_gusts, i),
                wind_direction=_number_at(wind_dirs, i),
                sky_cover=_number_at(sky_covers, i),
                mixing_height_m=_number_at(mixing_heights, i),
                transport_wind_knots=_number_at(transport_speeds, i),
                transport_wind_direction=_number_at(transport_dirs, i),
                haines_index=_number_at(haines, i),
                precip_chance=_number_at(precip, i),
                weather_code=str(code),
                days_since_rain=days_since_rain,
            )
        )
    return records


def select_current_index(records: Sequence[HourlyForecastRecord], now: dt.datetime) -> int:
    """Index of the record closest in time to `now`; ties go to the earlier record."""
    best_idx = 0
    best_diff: Optional[float] = None
    for i, record in enumerate(records):
        diff = abs((record.time - now).total_seconds())
        if best_diff is None or diff < best_diff:
            best_diff = diff
            best_idx = i
    return best_idx


def derive_snapshot(
    grid: GridForecast,
    location: Location,
    *,
    days_since_rain: float,
    now: dt.datetime,
    max_hours: int = DEFAULT_HORIZON_HOURS,
) -> ForecastSnapshot:
    """Pure derivation pass: grid forecast in, complete immutable snapshot out."""
    hourly = build_hourly_forecast(grid, days_since_rain=days_since_rain, max_hours=max_hours)
    return ForecastSnapshot(
        location=location,
        timezone=grid.timezone or DEFAULT_TIMEZONE,
        office=grid.office,
        generated_at=now,
        days_since_rain=days_since_rain,
        current_index=select_current_index(hourly, now),
        hourly=hourly,
        narrative=list(grid.narrative),
    )


def get_forecast_snapshot(
    latitude: float,
    longitude: float,
    *,
    days_since_rain: float,
    data_source: GridDataSource | None = None,
    max_hours: int | None = None,
    now: dt.datetime | None = None,
) -> ForecastSnapshot:
    """
    Fetch a grid forecast for a point and run the derivation pass over it.

    The `data_source` argument lets callers inject alternate providers (a
    saved grid file, a fake in tests); by default the configured source is used.
    """
    ds = data_source or build_data_source()
    hours = max_hours if max_hours is not None else settings.forecast_hours

    logger.info(
        "Fetching grid forecast",
        extra={"latitude": latitude, "longitude": longitude, "max_hours": hours},
    )
    grid = ds.fetch_grid_forecast(latitude, longitude)

    snapshot = derive_snapshot(
        grid,
        Location(latitude=latitude, longitude=longitude, city=grid.city, state=grid.state),
        days_since_rain=days_since_rain,
        now=now or dt.datetime.now(dt.timezone.utc),
        max_hours=hours,
    )
    logger.info(
        "Derived hourly fire weather",
        extra={"hours": len(snapshot.hourly), "current_index": snapshot.current_index},
    )
    return snapshot


def main():
    """Manual helper: print the next burn windows for a point."""
    from rxfire.burn_windows import find_burn_windows
    from rxfire.domain import DEFAULT_PRESCRIPTION
    from utils.logging_utils import setup_logging

    setup_logging(level="INFO", job_name="rxfire_cli")
    lat, lon = 32.30, -90.18

    snapshot = get_forecast_snapshot(lat, lon, days_since_rain=DEFAULT_PRESCRIPTION.days_since_rain)
    current = snapshot.current
    if current is None:
        print("No forecast available.")
        return
    print(f"Now ({current.local_time}): {current.temp}F, {current.humidity}% RH, "
          f"{current.wind_direction_cardinal} {current.wind_speed} mph, "
          f"VI {current.ventilation_index}, score {current.burn_score} ({current.burn_quality.value})")
    for w in find_burn_windows(snapshot.forward_hours(), DEFAULT_PRESCRIPTION):
        print(f"{w.date} {w.start_time}-{w.end_time} ({w.hours} hrs): "
              f"{w.burn_quality.value} ({w.avg_burn_score}), dispersion {w.dispersion_category.value}")


if __name__ == "__main__":
    main()
