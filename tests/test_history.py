"""Tests for history records and trend statistics."""

from datetime import date, datetime, timedelta, timezone

import pytest

from ecotrack.footprint import FootprintInputs, FootprintResult, compute_footprint
from ecotrack.history import (
    derive_trend,
    entry_from_dict,
    entry_to_dict,
    goal_status,
    new_entry,
    trend_frame,
)

START = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def _entry(total, day=0, car=0.0, air=0.0, energy=0.0, waste=0.0):
    diet = total - car - air - energy - waste
    results = FootprintResult(car=car, air=air, energy=energy, waste=waste, diet=diet, total=total)
    return new_entry(FootprintInputs(), results, now=START + timedelta(days=day))


class TestDeriveTrend:
    """Tests for percent change, goal distance and the projected series."""

    def test_two_entries(self):
        stats = derive_trend([_entry(5.0), _entry(3.0, day=1)])
        assert stats.percent_change == pytest.approx(-40.0)
        assert stats.distance_to_goal == 1.0
        assert stats.first_total == 5.0
        assert stats.latest_total == 3.0
        assert stats.has_trend

    def test_single_entry_has_no_trend(self):
        stats = derive_trend([_entry(5.0)])
        assert stats.percent_change is None
        assert stats.series == ()
        assert not stats.has_trend
        # Current footprint and goal distance are still known.
        assert stats.latest_total == 5.0
        assert stats.distance_to_goal == 3.0

    def test_empty_history(self):
        stats = derive_trend([])
        assert stats.series == ()
        assert stats.first_total is None
        assert stats.latest_total is None
        assert stats.percent_change is None
        assert stats.distance_to_goal is None
        assert goal_status(stats) is None

    def test_zero_first_total_leaves_change_undefined(self):
        stats = derive_trend([_entry(0.0), _entry(3.0, day=1)])
        assert stats.percent_change is None
        assert stats.distance_to_goal == 1.0

    def test_uses_first_and_last_only(self):
        stats = derive_trend([_entry(4.0), _entry(10.0, day=1), _entry(5.0, day=2)])
        assert stats.percent_change == pytest.approx(25.0)

    def test_series_projection(self):
        history = [
            _entry(6.7912, car=1.234, air=1.0, energy=2.1049, waste=0.444),
            _entry(4.5, day=3, car=0.5, air=0.25, energy=1.0, waste=0.25),
        ]
        series = derive_trend(history).series
        assert len(series) == 2
        first = series[0]
        assert first.date == date(2024, 1, 1)
        assert first.total == 6.79
        assert first.transport == 2.23
        assert first.energy == 2.1
        assert first.waste == 0.44
        assert first.diet == round(6.7912 - 1.234 - 1.0 - 2.1049 - 0.444, 2)
        assert series[1].date == date(2024, 1, 4)
        assert series[1].transport == 0.75

    def test_series_is_materialised(self):
        series = derive_trend([_entry(5.0), _entry(3.0, day=1)]).series
        assert list(series) == list(series)
        assert isinstance(series, tuple)

    def test_does_not_mutate_history(self):
        history = [_entry(5.0), _entry(3.0, day=1)]
        snapshot = list(history)
        derive_trend(history)
        assert history == snapshot


class TestGoalStatus:
    def test_met(self):
        assert goal_status(derive_trend([_entry(2.0)])) == "Met"
        assert goal_status(derive_trend([_entry(1.5)])) == "Met"

    def test_to_go(self):
        assert goal_status(derive_trend([_entry(5.0), _entry(3.25, day=1)])) == "1.25 t to go"


class TestTrendFrame:
    def test_columns_and_index(self):
        df = trend_frame(derive_trend([_entry(5.0), _entry(3.0, day=1)]))
        assert list(df.columns) == ["total", "transport", "energy", "diet", "waste"]
        assert df.index.name == "date"
        assert df["total"].tolist() == [5.0, 3.0]

    def test_empty(self):
        df = trend_frame(derive_trend([_entry(5.0)]))
        assert df.empty


class TestSerialisation:
    """Tests for the stored JSON form of history entries."""

    def test_round_trip(self):
        inputs = FootprintInputs(8000, 12, 250, 20, "heavy")
        entry = new_entry(inputs, compute_footprint(inputs), now=START)
        assert entry_from_dict(entry_to_dict(entry)) == entry

    def test_stored_shape(self):
        entry = _entry(5.0)
        data = entry_to_dict(entry)
        assert set(data) == {"id", "date", "inputs", "results"}
        assert data["date"] == "2024-01-01T12:00:00+00:00"
        assert data["results"]["total"] == 5.0

    def test_browser_timestamp(self):
        data = entry_to_dict(_entry(5.0))
        data["date"] = "2024-01-01T12:00:00.000Z"
        assert entry_from_dict(data).timestamp == START

    def test_ids_are_unique(self):
        assert _entry(5.0).id != _entry(5.0).id

    @pytest.mark.parametrize(
        "mutate",
        [
            lambda d: d.pop("results"),
            lambda d: d.update(date=12345),
            lambda d: d.update(date="yesterday"),
            lambda d: d["results"].update(total="lots"),
            lambda d: d.update(inputs=[1, 2, 3]),
            lambda d: d["results"].update(total=float("nan")),
            lambda d: d["results"].update(diet=float("-inf")),
            lambda d: d["results"].update(total=10 ** 400),
        ],
    )
    def test_malformed(self, mutate):
        data = entry_to_dict(_entry(5.0))
        mutate(data)
        with pytest.raises(ValueError):
            entry_from_dict(data)

    def test_not_an_object(self):
        with pytest.raises(ValueError):
            entry_from_dict("entry")

    def test_web_form_input_names(self):
        data = entry_to_dict(_entry(5.0))
        data["inputs"] = {"carKmYear": "8000", "airHoursYear": 12, "kwhMonth": 250, "wasteKgMonth": -1, "diet": "light"}
        inputs = entry_from_dict(data).inputs
        assert inputs == FootprintInputs(8000.0, 12.0, 250.0, 0.0, "light")
