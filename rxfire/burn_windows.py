"""Burn-window detection, prescription checks and the day-by-hour heatmap.

Input is the forward-looking slice of enriched hourly records (from the
current hour on). Nothing here looks at the timezone again: the records
already carry their local hour and date label.
"""

from __future__ import annotations

from collections import Counter
from datetime import timedelta
from functools import reduce
from types import MappingProxyType
from typing import Iterable, List, Mapping, Sequence, Tuple

from rxfire.domain import (
    BurnWindow,
    HeatmapCell,
    HeatmapRow,
    HourlyForecastRecord,
    PrescriptionParams,
    PrescriptionStatus,
    Violation,
)
from rxfire.fire_science import burn_quality_label
from rxfire.units import round_half_up

DAYTIME_START_HOUR = 10
DAYTIME_END_HOUR = 16
MIN_WINDOW_HOURS = 2
MAX_GAP = timedelta(hours=1)

DayGroups = Mapping[str, Tuple[HourlyForecastRecord, ...]]


def violations(hour: HourlyForecastRecord, rx: PrescriptionParams) -> List[Violation]:
    """Every prescription bound the hour misses, in display order."""
    out: List[Violation] = []
    if hour.temp < rx.temp_min:
        out.append(Violation.LOW_TEMP)
    if hour.temp > rx.temp_max:
        out.append(Violation.HIGH_TEMP)
    if hour.humidity < rx.humidity_min:
        out.append(Violation.LOW_RH)
    if hour.humidity > rx.humidity_max:
        out.append(Violation.HIGH_RH)
    if hour.wind_speed < rx.wind_speed_min:
        out.append(Violation.LOW_WIND)
    if hour.wind_speed > rx.wind_speed_max:
        out.append(Violation.HIGH_WIND)
    if hour.ventilation_index < rx.min_ventilation_index:
        out.append(Violation.LOW_VI)
    return out


def meets_prescription(hour: HourlyForecastRecord, rx: PrescriptionParams) -> bool:
    return not violations(hour, rx)


def in_daytime_band(hour: HourlyForecastRecord) -> bool:
    return DAYTIME_START_HOUR <= hour.local_hour <= DAYTIME_END_HOUR


def _num(value: float) -> str:
    return f"{value:,.0f}" if abs(value) >= 1000 else f"{value:g}"


def prescription_status(hour: HourlyForecastRecord, rx: PrescriptionParams) -> PrescriptionStatus:
    """Explain, with the actual numbers, why an hour is in or out of prescription."""
    reasons: List[str] = []
    if hour.temp < rx.temp_min:
        reasons.append(f"Temp too low ({hour.temp}°F < {_num(rx.temp_min)}°F)")
    if hour.temp > rx.temp_max:
        reasons.append(f"Temp too high ({hour.temp}°F > {_num(rx.temp_max)}°F)")
    if hour.humidity < rx.humidity_min:
        reasons.append(f"RH too low ({hour.humidity}% < {_num(rx.humidity_min)}%)")
    if hour.humidity > rx.humidity_max:
        reasons.append(f"RH too high ({hour.humidity}% > {_num(rx.humidity_max)}%)")
    if hour.wind_speed < rx.wind_speed_min:
        reasons.append(f"Wind too low ({_num(hour.wind_speed)} mph < {_num(rx.wind_speed_min)} mph)")
    if hour.wind_speed > rx.wind_speed_max:
        reasons.append(f"Wind too high ({_num(hour.wind_speed)} mph > {_num(rx.wind_speed_max)} mph)")
    if hour.ventilation_index < rx.min_ventilation_index:
        reasons.append(
            f"VI too low ({_num(hour.ventilation_index)} < {_num(rx.min_ventilation_index)})"
        )
    return PrescriptionStatus(in_prescription=not reasons, reasons=reasons)


def _append_to_day(groups: DayGroups, hour: HourlyForecastRecord) -> DayGroups:
    day = hour.local_date
    merged = dict(groups)
    merged[day] = groups.get(day, ()) + (hour,)
    return MappingProxyType(merged)


def group_qualifying_hours(
    hours: Iterable[HourlyForecastRecord],
    rx: PrescriptionParams,
) -> DayGroups:
    """Fold daytime, in-prescription hours into a read-only date -> hours mapping.

    Dates keep the order they are first seen in; hours keep input order.
    """
    qualifying = (h for h in hours if in_daytime_band(h) and meets_prescription(h, rx))
    return reduce(_append_to_day, qualifying, MappingProxyType({}))


def contiguous_runs(hours: Sequence[HourlyForecastRecord]) -> List[List[HourlyForecastRecord]]:
    """Split time-sorted hours into maximal runs with no gap over one hour."""
    runs: List[List[HourlyForecastRecord]] = []
    for hour in sorted(hours, key=lambda h: h.time):
        if runs and hour.time - runs[-1][-1].time <= MAX_GAP:
            runs[-1].append(hour)
        else:
            runs.append([hour])
    return runs


def _prevailing(directions: Iterable[str]) -> str:
    counts = Counter(directions)
    if not counts:
        return ""
    # Counter.most_common keeps first-seen order among equal counts
    return counts.most_common(1)[0][0]


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values)


def build_window(date: str, run: Sequence[HourlyForecastRecord]) -> BurnWindow:
    """Summarize one run of qualifying hours."""
    first, last = run[0], run[-1]
    avg_score = _mean([h.burn_score for h in run])
    return BurnWindow(
        date=date,
        start_time=_hour_label(first),
        end_time=_hour_label(last),
        hours=len(run),
        avg_temp=_mean([h.temp for h in run]),
        avg_humidity=_mean([h.humidity for h in run]),
        avg_wind_speed=_mean([h.wind_speed for h in run]),
        avg_ventilation_index=_mean([h.ventilation_index for h in run]),
        prevailing_surface_wind=_prevailing(h.wind_direction_cardinal for h in run),
        prevailing_transport_wind=_prevailing(h.transport_wind_direction_cardinal for h in run),
        dispersion_category=first.dispersion_category,
        burn_quality=burn_quality_label(avg_score),
        avg_burn_score=round_half_up(avg_score),
    )


def _hour_label(hour: HourlyForecastRecord) -> str:
    h = hour.local_hour % 12 or 12
    return f"{h} {'AM' if hour.local_hour < 12 else 'PM'}"


def find_burn_windows(
    hours: Sequence[HourlyForecastRecord],
    rx: PrescriptionParams,
) -> List[BurnWindow]:
    """
    Find per-day contiguous runs of qualifying daytime hours.

    - Only hours with local hour 10-16 that meet every prescription bound count.
    - A gap of more than one hour (including one left by a failing hour) ends a run.
    - Runs shorter than two hours are dropped.
    """
    windows: List[BurnWindow] = []
    for date, day_hours in group_qualifying_hours(hours, rx).items():
        for run in contiguous_runs(day_hours):
            if len(run) >= MIN_WINDOW_HOURS:
                windows.append(build_window(date, run))
    return windows


def build_heatmap(
    hours: Sequence[HourlyForecastRecord],
    rx: PrescriptionParams,
) -> List[HeatmapRow]:
    """Day x hour grid of scores over every forward hour, unfiltered.

    Each cell lists the prescription bounds its hour misses. A later record
    for the same (date, hour) replaces an earlier one.
    """
    rows: dict[str, dict[int, HeatmapCell]] = {}
    for h in hours:
        cells = rows.setdefault(h.local_date, {})
        cells[h.local_hour] = HeatmapCell(
            hour=h.local_hour,
            score=h.burn_score,
            quality=h.burn_quality,
            reasons=violations(h, rx),
        )
    return [
        HeatmapRow(date=date, cells=[cells[k] for k in sorted(cells)])
        for date, cells in rows.items()
    ]
