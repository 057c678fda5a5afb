"""
AQI (Air Quality Index) calculation utilities.

PM2.5 and PM10 concentrations (ug/m3) are mapped to the US EPA 0-500 scale via
piecewise linear interpolation over fixed breakpoint tables. The overall index
is the worse of the two pollutants.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence


@dataclass(frozen=True)
class Breakpoint:
    c_low: float
    c_high: float
    i_low: int
    i_high: int


# US EPA PM2.5 and PM10 breakpoints (ug/m3).
# Ranges are ordered and disjoint; published values leave a 0.1 (PM2.5) or
# 1.0 (PM10) step between consecutive ranges.
PM25_BREAKPOINTS = (
    Breakpoint(0.0, 12.0, 0, 50),
    Breakpoint(12.1, 35.4, 51, 100),
    Breakpoint(35.5, 55.4, 101, 150),
    Breakpoint(55.5, 150.4, 151, 200),
    Breakpoint(150.5, 250.4, 201, 300),
    Breakpoint(250.5, 500.4, 301, 500),
)

PM10_BREAKPOINTS = (
    Breakpoint(0, 54, 0, 50),
    Breakpoint(55, 154, 51, 100),
    Breakpoint(155, 254, 101, 150),
    Breakpoint(255, 354, 151, 200),
    Breakpoint(355, 424, 201, 300),
    Breakpoint(425, 604, 301, 500),
)

BREAKPOINT_TABLES = {
    "pm25": PM25_BREAKPOINTS,
    "pm10": PM10_BREAKPOINTS,
}

# Provider spellings seen for the same parameter.
_PARAMETER_ALIASES = {
    "pm25": ("pm25", "pm2.5", "pm2_5"),
    "pm10": ("pm10",),
}

# (upper bound inclusive, category)
_CATEGORY_THRESHOLDS = (
    (50, "Good"),
    (100, "Moderate"),
    (150, "UnhealthySensitive"),
    (200, "Unhealthy"),
    (300, "VeryUnhealthy"),
)

CATEGORY_LABELS = {
    "Good": "Good",
    "Moderate": "Moderate",
    "UnhealthySensitive": "Unhealthy for Sensitive",
    "Unhealthy": "Unhealthy",
    "VeryUnhealthy": "Very Unhealthy",
    "Hazardous": "Hazardous",
}

POLLUTANT_LABELS = {"pm25": "PM2.5", "pm10": "PM10", "none": "N/A"}


@dataclass(frozen=True)
class AQIResult:
    index: int
    dominant_pollutant: str
    category: str
    pm25: Optional[float] = None
    pm10: Optional[float] = None
    pm25_index: Optional[int] = None
    pm10_index: Optional[int] = None

    @property
    def label(self) -> str:
        return CATEGORY_LABELS[self.category]


def concentration_to_index(concentration: float, table: Sequence[Breakpoint]) -> float:
    """
    Convert a concentration to an index value via piecewise linear interpolation.

    The table is scanned in order and the first range containing the
    concentration wins. Below the first range the lowest index is returned,
    above the last range the highest. A concentration in the step between two
    published ranges takes the lower index of the range above it; this relies
    on the tables being ascending and non-overlapping, which the fixed tables
    above are.
    """
    c = float(concentration)
    for bp in table:
        if c < bp.c_low:
            return bp.i_low
        if c <= bp.c_high:
            # (I_hi - I_lo) / (C_hi - C_lo) * (C - C_lo) + I_lo, multiplied first
            return (bp.i_high - bp.i_low) * (c - bp.c_low) / (bp.c_high - bp.c_low) + bp.i_low
    return table[-1].i_high


def aqi_category(index: float) -> str:
    for upper, category in _CATEGORY_THRESHOLDS:
        if index <= upper:
            return category
    return "Hazardous"


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _reading(readings: Mapping, parameter: str) -> Optional[float]:
    for key in _PARAMETER_ALIASES[parameter]:
        value = readings.get(key)
        if value is None:
            continue
        try:
            c = float(value)
        except (TypeError, ValueError):
            continue
        if math.isfinite(c):
            return c
    return None


def compute_aqi(readings: Mapping) -> Optional[AQIResult]:
    """
    Compute the overall AQI from a mapping of parameter -> concentration.

    Returns None when neither PM2.5 nor PM10 is present: that is "no data",
    not a clean-air reading of 0.
    """
    pm25 = _reading(readings, "pm25")
    pm10 = _reading(readings, "pm10")
    if pm25 is None and pm10 is None:
        return None

    pm25_index = _round_half_up(concentration_to_index(pm25, PM25_BREAKPOINTS)) if pm25 is not None else None
    pm10_index = _round_half_up(concentration_to_index(pm10, PM10_BREAKPOINTS)) if pm10 is not None else None

    index = max(pm25_index or 0, pm10_index or 0)
    # PM2.5 wins a tie.
    if pm25_index is not None and pm25_index == index:
        dominant = "pm25"
    elif pm10_index is not None and pm10_index == index:
        dominant = "pm10"
    else:
        dominant = "none"

    return AQIResult(
        index=index,
        dominant_pollutant=dominant,
        category=aqi_category(index),
        pm25=pm25,
        pm10=pm10,
        pm25_index=pm25_index,
        pm10_index=pm10_index,
    )
