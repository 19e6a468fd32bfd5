"""Domain vocabulary and strict schemas for prescribed-burn fire weather.

This module defines the stable contract between the pure derivation core
(unit conversion, fire science, series expansion, burn-window detection) and
the collaborators around it (NWS client, HTTP API). Enums, threshold tables,
prescription presets and the immutable Pydantic payloads live here. No
interpretation logic lives here.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Tuple

from pydantic import BaseModel, ConfigDict, Field


class _FrozenModel(BaseModel):
    """Base model: unknown fields rejected, instances immutable."""

    model_config = ConfigDict(extra="forbid", frozen=True)


class DispersionCategory(str, Enum):
    """Smoke dispersion tiers keyed off the stability-adjusted ventilation index."""
    EXCELLENT = "Excellent"
    GOOD = "Good"
    FAIR = "Fair"
    POOR = "Poor"
    VERY_POOR = "Very Poor"


class BurnQuality(str, Enum):
    """Five-tier label for the composite 0-100 burn score."""
    EXCELLENT = "Excellent"
    GOOD = "Good"
    FAIR = "Fair"
    MARGINAL = "Marginal"
    POOR = "Poor"


class Violation(str, Enum):
    """Short codes shown in the heatmap when an hour misses the prescription."""
    LOW_TEMP = "Low Temp"
    HIGH_TEMP = "High Temp"
    LOW_RH = "Low RH"
    HIGH_RH = "High RH"
    LOW_WIND = "Low Wind"
    HIGH_WIND = "High Wind"
    LOW_VI = "Low VI"


# (minimum adjusted VI, category, description), checked top-down
DISPERSION_THRESHOLDS: Tuple[Tuple[float, DispersionCategory, str], ...] = (
    (60000, DispersionCategory.EXCELLENT,
     "Rapid smoke dispersal expected. Excellent conditions for burning."),
    (40000, DispersionCategory.GOOD,
     "Good smoke dispersal. Favorable conditions for prescribed burning."),
    (20000, DispersionCategory.FAIR,
     "Moderate dispersion. Monitor smoke carefully during burn operations."),
    (10000, DispersionCategory.POOR,
     "Limited smoke dispersal. Consider postponing burn operations."),
    (0, DispersionCategory.VERY_POOR,
     "Smoke trapping likely. Do NOT burn under these conditions."),
)

# (minimum score, label), checked top-down
BURN_QUALITY_THRESHOLDS: Tuple[Tuple[float, BurnQuality], ...] = (
    (90, BurnQuality.EXCELLENT),
    (70, BurnQuality.GOOD),
    (50, BurnQuality.FAIR),
    (30, BurnQuality.MARGINAL),
    (0, BurnQuality.POOR),
)

FFMC_EXTREME = 92
FFMC_VERY_HIGH = 89
HAINES_ELEVATED = 5


class FuelMoisture(_FrozenModel):
    """Moisture (%) of the 1-hr, 10-hr and 100-hr timelag fuel classes."""
    one_hour: float
    ten_hour: float
    hundred_hour: float


class DispersionResult(_FrozenModel):
    """Dispersion classification for a single hour."""
    category: DispersionCategory
    description: str
    adjusted_vi: int


class BurnAssessment(_FrozenModel):
    """Composite burn-quality score and its label."""
    quality: BurnQuality
    score: int = Field(ge=0, le=100)


class FireIndexWarning(_FrozenModel):
    """A flagged fire-behavior index value."""
    index: str
    value: float
    message: str


class PrescriptionParams(_FrozenModel):
    """User-editable acceptance envelope for a prescribed burn.

    Paired ranges are expected to satisfy min <= max; that is the caller's
    responsibility and is not validated here.
    """
    humidity_min: float = 30
    humidity_max: float = 55
    wind_speed_min: float = 4
    wind_speed_max: float = 15
    temp_min: float = 40
    temp_max: float = 80
    min_ventilation_index: float = 20000
    days_since_rain: float = Field(3, ge=0)


DEFAULT_PRESCRIPTION = PrescriptionParams()

PRESCRIPTION_PRESETS: Dict[str, PrescriptionParams] = {
    "Grassland / Fuel Model 1": PrescriptionParams(
        humidity_min=25,
        humidity_max=45,
        wind_speed_min=4,
        wind_speed_max=15,
        temp_min=35,
        temp_max=75,
        min_ventilation_index=20000,
        days_since_rain=2,
    ),
    "Pine Understory": PrescriptionParams(
        humidity_min=30,
        humidity_max=50,
        wind_speed_min=3,
        wind_speed_max=12,
        temp_min=40,
        temp_max=85,
        min_ventilation_index=30000,
        days_since_rain=3,
    ),
    "Site Prep / High Fuel": PrescriptionParams(
        humidity_min=40,
        humidity_max=60,
        wind_speed_min=2,
        wind_speed_max=10,
        temp_min=40,
        temp_max=90,
        min_ventilation_index=40000,
        days_since_rain=5,
    ),
    "Default": DEFAULT_PRESCRIPTION,
}


class HourlyForecastRecord(_FrozenModel):
    """One enriched forecast hour: raw fields plus every derived fire index."""
    time: datetime
    local_time: str
    local_hour: int = Field(ge=0, le=23)
    local_date: str
    temp: int
    humidity: int
    wind_speed: float
    wind_gust: float
    wind_direction: float
    wind_direction_cardinal: str
    sky_cover: int
    sky_cover_abbr: str
    weather_code: str
    weather_abbr: str
    mixing_height: int
    transport_wind_speed: float
    transport_wind_speed_ms: float
    transport_wind_direction: float
    transport_wind_direction_cardinal: str
    haines_index: float
    precip_chance: int
    ventilation_index: int
    kbdi_trend: int
    ffmc: float
    fuel_moisture_1hr: float
    fuel_moisture_10hr: float
    fuel_moisture_100hr: float
    dispersion_category: DispersionCategory
    dispersion_description: str
    adjusted_vi: int
    burn_quality: BurnQuality
    burn_score: int
    ignition_probability: int


class BurnWindow(_FrozenModel):
    """A contiguous daytime run of at least two in-prescription hours."""
    date: str
    start_time: str
    end_time: str
    hours: int = Field(ge=2)
    avg_temp: float
    avg_humidity: float
    avg_wind_speed: float
    avg_ventilation_index: float
    prevailing_surface_wind: str
    prevailing_transport_wind: str
    dispersion_category: DispersionCategory
    burn_quality: BurnQuality
    avg_burn_score: int


class HeatmapCell(_FrozenModel):
    """Score and prescription misses for one (date, hour) cell."""
    hour: int = Field(ge=0, le=23)
    score: int
    quality: BurnQuality
    reasons: List[Violation] = Field(default_factory=list)


class HeatmapRow(_FrozenModel):
    """All cells for one local calendar date, ordered by hour."""
    date: str
    cells: List[HeatmapCell] = Field(default_factory=list)


class PrescriptionStatus(_FrozenModel):
    """Whether a single hour sits inside the prescription, and why not."""
    in_prescription: bool
    reasons: List[str] = Field(default_factory=list)


class NarrativePeriod(_FrozenModel):
    """A named NWS narrative forecast period ("Tonight", "Saturday", ...)."""
    name: str
    detailed_forecast: str = ""
    short_forecast: str = ""
    temperature: float | None = None
    temperature_unit: str = "F"
    wind_speed: str = ""
    wind_direction: str = ""
    wind_direction_degrees: int | None = None
    is_daytime: bool = True


class AlertInfo(_FrozenModel):
    """An active NWS alert relevant to burning (red flag, fire weather, wind)."""
    event: str
    headline: str = ""
    description: str = ""
    severity: str = ""
    onset: str | None = None
    expires: str | None = None


class FireWeatherProducts(_FrozenModel):
    """Text products an office issues for fire weather planning.

    `fire_discussion` is the `.DISCUSSION` section of the latest FWF,
    `zone_forecast` the zone blocks that follow its `$$` separators, and
    `burn_ban_info` the latest FWN text when it mentions a burn ban.
    Anything unavailable is an empty string.
    """
    fire_discussion: str = ""
    zone_forecast: str = ""
    burn_ban_info: str = ""


class TimeSeriesEntry(_FrozenModel):
    """One run-length-encoded span: `value` holds for `hours` hours from `start`."""
    start: datetime
    hours: int = Field(ge=0)
    value: Any = None


class HourValue(_FrozenModel):
    """A single dense hourly sample."""
    time: datetime
    value: Any = None


class GridForecast(_FrozenModel):
    """Normalized upstream grid forecast: named RLE series plus metadata.

    Units follow the NWS grid endpoint: temperature in degC, wind and gusts
    in km/h, mixing height in m, transport wind in knots, directions in
    degrees, humidity/sky/precipitation in percent. `weather` values are
    phenomenon strings ("rain_showers", "thunderstorms", ...).
    """
    temperature: List[TimeSeriesEntry] = Field(default_factory=list)
    relative_humidity: List[TimeSeriesEntry] = Field(default_factory=list)
    wind_speed: List[TimeSeriesEntry] = Field(default_factory=list)
    wind_direction: List[TimeSeriesEntry] = Field(default_factory=list)
    wind_gust: List[TimeSeriesEntry] = Field(default_factory=list)
    sky_cover: List[TimeSeriesEntry] = Field(default_factory=list)
    mixing_height: List[TimeSeriesEntry] = Field(default_factory=list)
    transport_wind_speed: List[TimeSeriesEntry] = Field(default_factory=list)
    transport_wind_direction: List[TimeSeriesEntry] = Field(default_factory=list)
    haines_index: List[TimeSeriesEntry] = Field(default_factory=list)
    probability_of_precipitation: List[TimeSeriesEntry] = Field(default_factory=list)
    weather: List[TimeSeriesEntry] = Field(default_factory=list)
    timezone: str = "America/Chicago"
    office: str = ""
    city: str = ""
    state: str = ""
    forecast_zone: str = ""
    narrative: List[NarrativePeriod] = Field(default_factory=list)


class Location(_FrozenModel):
    """Point the forecast was requested for."""
    latitude: float
    longitude: float
    city: str = ""
    state: str = ""


class ForecastSnapshot(_FrozenModel):
    """Complete, immutable result of one derivation pass.

    Built by the caller from a fresh fetch and threaded through every view;
    nothing here is updated in place.
    """
    location: Location
    timezone: str
    office: str = ""
    generated_at: datetime
    days_since_rain: float
    current_index: int = 0
    hourly: List[HourlyForecastRecord] = Field(default_factory=list)
    narrative: List[NarrativePeriod] = Field(default_factory=list)

    @property
    def current(self) -> HourlyForecastRecord | None:
        if not self.hourly:
            return None
        return self.hourly[self.current_index]

    def forward_hours(self) -> List[HourlyForecastRecord]:
        """Hours from the current index onward (past hours dropped)."""
        return list(self.hourly[self.current_index:])
