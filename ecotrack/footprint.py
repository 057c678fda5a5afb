"""
Carbon footprint model.

Lifestyle metrics -> annual emissions (tonnes CO2e/yr) per category using
fixed linear emission factors. Raw form values pass through sanitize_inputs()
first; the arithmetic below only ever sees clean, non-negative floats.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, List, Mapping, Tuple


CAR_PER_KM_T = 0.0002
AIR_PER_HOUR_T = 0.09
ELECTRICITY_PER_KWH_T = 0.0007
WASTE_PER_KG_T = 0.0012
MONTHS_PER_YEAR = 12

DIET_FACTORS = {
    "vegan": 1.5,
    "vegetarian": 2.0,
    "light": 2.8,
    "medium": 3.6,
    "heavy": 5.0,
}
DEFAULT_DIET = "medium"

GLOBAL_AVERAGE_T = 4.7

# Accepted spellings per field: snake_case first, then the web form's names.
_FIELD_KEYS = {
    "car_km_per_year": ("car_km_per_year", "carKmPerYear", "carKmYear"),
    "air_hours_per_year": ("air_hours_per_year", "airHoursPerYear", "airHoursYear"),
    "electricity_kwh_per_month": ("electricity_kwh_per_month", "electricityKWhPerMonth", "kwhMonth"),
    "waste_kg_per_month": ("waste_kg_per_month", "wasteKgPerMonth", "wasteKgMonth"),
}
_DIET_KEYS = ("diet", "dietCategory", "diet_category")


@dataclass(frozen=True)
class FootprintInputs:
    car_km_per_year: float = 0.0
    air_hours_per_year: float = 0.0
    electricity_kwh_per_month: float = 0.0
    waste_kg_per_month: float = 0.0
    diet: str = DEFAULT_DIET


@dataclass(frozen=True)
class FootprintResult:
    car: float
    air: float
    energy: float
    waste: float
    diet: float
    total: float


def _non_negative(value: Any) -> float:
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return 0.0
    try:
        x = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(x) or x < 0:
        return 0.0
    return x


def normalize_diet(value: Any) -> str:
    """Map any diet value onto a known category; unknown values mean 'medium'."""
    if isinstance(value, str):
        key = value.strip().lower()
        if key in DIET_FACTORS:
            return key
    return DEFAULT_DIET


def _first(raw: Mapping, keys: Tuple[str, ...]) -> Any:
    for key in keys:
        if key in raw:
            return raw[key]
    return None


def sanitize_inputs(raw: Mapping) -> FootprintInputs:
    """
    Build FootprintInputs from loosely typed form values.

    Missing, blank, non-numeric, negative and non-finite numbers become 0.0.
    Nothing is ever rejected.
    """
    values = {field: _non_negative(_first(raw, keys)) for field, keys in _FIELD_KEYS.items()}
    return FootprintInputs(diet=normalize_diet(_first(raw, _DIET_KEYS)), **values)


def diet_factor(diet: str) -> float:
    """Annual diet emissions. Unrecognised categories fall back to 'medium' on purpose."""
    return DIET_FACTORS.get(diet, DIET_FACTORS[DEFAULT_DIET])


def compute_footprint(inputs: FootprintInputs) -> FootprintResult:
    car = inputs.car_km_per_year * CAR_PER_KM_T
    air = inputs.air_hours_per_year * AIR_PER_HOUR_T
    energy = inputs.electricity_kwh_per_month * MONTHS_PER_YEAR * ELECTRICITY_PER_KWH_T
    waste = inputs.waste_kg_per_month * MONTHS_PER_YEAR * WASTE_PER_KG_T
    diet = diet_factor(inputs.diet)
    total = car + air + energy + waste + diet
    return FootprintResult(car=car, air=air, energy=energy, waste=waste, diet=diet, total=total)


RECOMMENDATIONS = {
    "car": "Reduce solo car travel: carpool, public transport, or cycling for short trips.",
    "air": "Cut a flight or choose trains for <1000 km routes when feasible.",
    "energy": "Switch to LED lighting and set AC between 24-26°C to cut electricity use.",
    "diet": "Shift one or two days a week to plant-forward meals.",
    "waste": "Start composting organics and improve recycling separation.",
}
MAINTAIN_HABITS = "Great job! Maintain habits and consider supporting verified carbon offset projects."


def recommend(result: FootprintResult, diet: str) -> List[str]:
    """
    Advice for the categories over their threshold, in priority order
    car > air > energy > diet > waste. Never empty.
    """
    advice = []
    if result.car > 1:
        advice.append(RECOMMENDATIONS["car"])
    if result.air > 1:
        advice.append(RECOMMENDATIONS["air"])
    if result.energy > 1:
        advice.append(RECOMMENDATIONS["energy"])
    if diet != "vegan" and result.diet > 2.5:
        advice.append(RECOMMENDATIONS["diet"])
    if result.waste > 0.5:
        advice.append(RECOMMENDATIONS["waste"])
    if not advice:
        advice.append(MAINTAIN_HABITS)
    return advice


def compare_to_average(total: float, average: float = GLOBAL_AVERAGE_T) -> Tuple[float, str]:
    """Absolute distance from the global average and whether total is 'below' or 'above' it."""
    side = "below" if total <= average else "above"
    return abs(total - average), side


def breakdown(result: FootprintResult) -> List[Tuple[str, float]]:
    return [
        ("Transportation (Car)", result.car),
        ("Air Travel", result.air),
        ("Household Energy", result.energy),
        ("Waste", result.waste),
        ("Diet", result.diet),
    ]
