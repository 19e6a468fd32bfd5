"""Expand run-length-encoded forecast series into one sample per hour.

The NWS grid endpoint reports each element as spans of constant value
(``"2024-05-01T14:00:00+00:00/PT3H"`` means three hours starting 14Z). The
assembler needs every element on the same dense hourly grid, so each span is
replayed once per hour it covers.
"""

from __future__ import annotations

import datetime as dt
import re
from typing import Any, Callable, Iterable, List, Mapping, Optional

from rxfire.domain import HourValue, TimeSeriesEntry

DEFAULT_HORIZON_HOURS = 72

_DURATION_RE = re.compile(r"^P(?:(?P<days>\d+)D)?(?:T(?:(?P<hours>\d+)H)?(?:\d+M)?(?:\d+S)?)?$")
_ONE_HOUR = dt.timedelta(hours=1)


def parse_iso_duration(duration: Optional[str]) -> int:
    """Whole hours in an ISO-8601 duration such as ``PT6H``, ``P1D`` or ``P1DT6H``.

    Tokens that carry neither a day nor an hour component (or do not parse)
    count as a single hour.
    """
    if not duration:
        return 1
    match = _DURATION_RE.match(duration.strip().upper())
    if not match:
        return 1
    days = match.group("days")
    hours = match.group("hours")
    if days is None and hours is None:
        return 1
    return int(days or 0) * 24 + int(hours or 0)


def _parse_instant(value: str) -> dt.datetime:
    # older interpreters reject a trailing "Z" in fromisoformat
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    instant = dt.datetime.fromisoformat(text)
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=dt.timezone.utc)
    return instant


def parse_valid_time(valid_time: str) -> tuple[dt.datetime, int]:
    """Split an NWS ``validTime`` into its start instant and hour count."""
    start, _, duration = valid_time.partition("/")
    return _parse_instant(start), parse_iso_duration(duration)


def entries_from_values(
    values: Iterable[Mapping[str, Any]] | None,
    *,
    value_of: Callable[[Any], Any] | None = None,
) -> List[TimeSeriesEntry]:
    """Build TimeSeriesEntry objects from raw ``{"validTime", "value"}`` dicts.

    `value_of` reshapes each raw value (the weather element nests a list of
    phenomenon dicts, for instance). Entries without a parseable validTime are
    skipped; they cannot be placed on the timeline.
    """
    entries: List[TimeSeriesEntry] = []
    for raw in values or []:
        valid_time = raw.get("validTime") if isinstance(raw, Mapping) else None
        if not valid_time:
            continue
        try:
            start, hours = parse_valid_time(valid_time)
        except ValueError:
            continue
        value = raw.get("value")
        if value_of is not None:
            value = value_of(value)
        entries.append(TimeSeriesEntry(start=start, hours=hours, value=value))
    return entries


def expand_time_series(
    entries: Iterable[TimeSeriesEntry],
    max_hours: int = DEFAULT_HORIZON_HOURS,
) -> List[HourValue]:
    """Replay each span hour by hour, truncated to `max_hours` samples.

    Entries are trusted to be chronological and non-overlapping; they are
    neither sorted nor deduplicated here.
    """
    if max_hours <= 0:
        return []

    out: List[HourValue] = []
    for entry in entries:
        for h in range(entry.hours):
            out.append(HourValue(time=entry.start + h * _ONE_HOUR, value=entry.value))
            if len(out) >= max_hours:
                return out
    return out
