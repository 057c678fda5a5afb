"""
Footprint history records and trend statistics.

derive_trend() works on an already loaded, chronologically ordered history and
never touches storage. Undefined statistics are None rather than 0.
"""

from __future__ import annotations

import math
import uuid
from dataclasses import asdict, dataclass
from datetime import date, datetime, timezone
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

import pandas as pd

from ecotrack.footprint import FootprintInputs, FootprintResult, sanitize_inputs


PARIS_GOAL_T = 2.0


@dataclass(frozen=True)
class HistoryEntry:
    id: str
    timestamp: datetime
    inputs: FootprintInputs
    results: FootprintResult


@dataclass(frozen=True)
class TrendPoint:
    date: date
    total: float
    transport: float
    energy: float
    diet: float
    waste: float


@dataclass(frozen=True)
class TrendStats:
    series: Tuple[TrendPoint, ...]
    first_total: Optional[float]
    latest_total: Optional[float]
    percent_change: Optional[float]
    distance_to_goal: Optional[float]
    goal: float = PARIS_GOAL_T

    @property
    def has_trend(self) -> bool:
        return len(self.series) >= 2


def new_entry(
    inputs: FootprintInputs,
    results: FootprintResult,
    now: Optional[datetime] = None,
) -> HistoryEntry:
    if now is None:
        now = datetime.now(timezone.utc)
    return HistoryEntry(id=uuid.uuid4().hex, timestamp=now, inputs=inputs, results=results)


def entry_to_dict(entry: HistoryEntry) -> Dict[str, Any]:
    return {
        "id": entry.id,
        "date": entry.timestamp.isoformat(),
        "inputs": asdict(entry.inputs),
        "results": asdict(entry.results),
    }


def _parse_timestamp(value: Any) -> datetime:
    if not isinstance(value, str):
        raise ValueError(f"Expected ISO timestamp, got {value!r}")
    # Browser-style "Z" suffix.
    ts = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def _finite(raw: Mapping, name: str) -> float:
    value = float(raw[name])
    if not math.isfinite(value):
        raise ValueError(f"Non-finite {name}: {value!r}")
    return value


def entry_from_dict(data: Any) -> HistoryEntry:
    """
    Rebuild a HistoryEntry from its stored form.

    Inputs go through sanitize_inputs(), so entries written by the web form
    (carKmYear, kwhMonth, ...) load too. Results must be finite numbers.
    Raises ValueError on anything malformed.
    """
    if not isinstance(data, dict):
        raise ValueError(f"Expected an object, got {type(data).__name__}")
    try:
        raw_inputs = data["inputs"]
        raw_results = data["results"]
        if not isinstance(raw_inputs, dict):
            raise ValueError(f"Expected inputs object, got {type(raw_inputs).__name__}")
        results = FootprintResult(
            car=_finite(raw_results, "car"),
            air=_finite(raw_results, "air"),
            energy=_finite(raw_results, "energy"),
            waste=_finite(raw_results, "waste"),
            diet=_finite(raw_results, "diet"),
            total=_finite(raw_results, "total"),
        )
        return HistoryEntry(
            id=str(data["id"]),
            timestamp=_parse_timestamp(data["date"]),
            inputs=sanitize_inputs(raw_inputs),
            results=results,
        )
    except (KeyError, TypeError, AttributeError, OverflowError) as e:
        raise ValueError(f"Malformed history entry: {e}") from e


def _point(entry: HistoryEntry) -> TrendPoint:
    r = entry.results
    return TrendPoint(
        date=entry.timestamp.date(),
        total=round(r.total, 2),
        transport=round(r.car + r.air, 2),
        energy=round(r.energy, 2),
        diet=round(r.diet, 2),
        waste=round(r.waste, 2),
    )


def derive_trend(history: Sequence[HistoryEntry], goal: float = PARIS_GOAL_T) -> TrendStats:
    """
    Trend statistics over a chronological history.

    - series: one rounded point per entry; empty with fewer than 2 entries
    - percent_change: first -> latest total in %; None with fewer than 2
      entries or a zero first total
    - distance_to_goal: latest total minus the goal; None for an empty history
    """
    if not history:
        return TrendStats(
            series=(),
            first_total=None,
            latest_total=None,
            percent_change=None,
            distance_to_goal=None,
            goal=goal,
        )

    first = history[0].results.total
    latest = history[-1].results.total

    if len(history) < 2:
        return TrendStats(
            series=(),
            first_total=first,
            latest_total=latest,
            percent_change=None,
            distance_to_goal=latest - goal,
            goal=goal,
        )

    percent_change = None
    if first != 0:
        percent_change = (latest - first) * 100 / first

    return TrendStats(
        series=tuple(_point(e) for e in history),
        first_total=first,
        latest_total=latest,
        percent_change=percent_change,
        distance_to_goal=latest - goal,
        goal=goal,
    )


def goal_status(stats: TrendStats) -> Optional[str]:
    if stats.distance_to_goal is None:
        return None
    if stats.distance_to_goal <= 0:
        return "Met"
    return f"{stats.distance_to_goal:.2f} t to go"


def trend_frame(stats: TrendStats) -> pd.DataFrame:
    """Series as a DataFrame indexed by date, one column per category."""
    columns = ["date", "total", "transport", "energy", "diet", "waste"]
    df = pd.DataFrame([asdict(p) for p in stats.series], columns=columns)
    return df.set_index("date")
