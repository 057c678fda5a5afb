"""Tests for the SQLite history store."""

import json
import logging
import sqlite3
from datetime import datetime, timedelta, timezone

from ecotrack.database import HISTORY_KEY, HistoryStore
from ecotrack.footprint import FootprintInputs, compute_footprint
from ecotrack.history import derive_trend, entry_to_dict, new_entry

START = datetime(2024, 3, 1, tzinfo=timezone.utc)


def _entry(km, day=0):
    inputs = FootprintInputs(car_km_per_year=km, diet="vegan")
    return new_entry(inputs, compute_footprint(inputs), now=START + timedelta(days=day))


def _write_raw(db_path, value, key=HISTORY_KEY):
    conn = sqlite3.connect(db_path)
    with conn:
        conn.execute("CREATE TABLE IF NOT EXISTS kv_store (key TEXT PRIMARY KEY, value TEXT NOT NULL)")
        conn.execute("INSERT OR REPLACE INTO kv_store (key, value) VALUES (?, ?)", (key, value))
    conn.close()


class TestHistoryStore:
    def test_missing_database_is_empty(self, tmp_path):
        store = HistoryStore(str(tmp_path / "new.db"))
        assert store.load() == []

    def test_append_preserves_order(self, tmp_path):
        store = HistoryStore(str(tmp_path / "h.db"))
        store.initialize()
        entries = [_entry(1000, 0), _entry(5000, 1), _entry(2000, 2)]
        for e in entries:
            store.append(e)

        loaded = store.load()
        assert [e.id for e in loaded] == [e.id for e in entries]
        assert loaded == entries

    def test_append_without_initialize(self, tmp_path):
        store = HistoryStore(str(tmp_path / "h.db"))
        store.append(_entry(1000))
        assert len(store.load()) == 1

    def test_keys_are_isolated(self, tmp_path):
        path = str(tmp_path / "h.db")
        HistoryStore(path, key="a").append(_entry(1000))
        assert HistoryStore(path, key="b").load() == []

    def test_corrupt_blob_is_empty(self, tmp_path, caplog):
        path = str(tmp_path / "h.db")
        _write_raw(path, "{not json")
        with caplog.at_level(logging.WARNING):
            assert HistoryStore(path).load() == []
        assert "not valid JSON" in caplog.text

    def test_non_list_blob_is_empty(self, tmp_path):
        path = str(tmp_path / "h.db")
        _write_raw(path, json.dumps({"id": "x"}))
        assert HistoryStore(path).load() == []

    def test_malformed_entries_are_skipped(self, tmp_path):
        path = str(tmp_path / "h.db")
        good = _entry(1000)
        _write_raw(path, json.dumps([{"id": "broken"}, entry_to_dict(good), 42]))
        assert HistoryStore(path).load() == [good]

    def test_append_after_corruption_starts_over(self, tmp_path):
        path = str(tmp_path / "h.db")
        _write_raw(path, "garbage")
        store = HistoryStore(path)
        entry = _entry(1000)
        store.append(entry)
        assert store.load() == [entry]

    def test_unreadable_file_is_empty(self, tmp_path, caplog):
        path = tmp_path / "h.db"
        path.write_bytes(b"this is not a sqlite database" * 10)
        with caplog.at_level(logging.WARNING):
            assert HistoryStore(str(path)).load() == []

    def test_clear(self, tmp_path):
        store = HistoryStore(str(tmp_path / "h.db"))
        store.append(_entry(1000))
        store.clear()
        assert store.load() == []

    def test_deeply_nested_blob_is_empty(self, tmp_path, caplog):
        path = str(tmp_path / "h.db")
        _write_raw(path, "[" * 200000)
        with caplog.at_level(logging.WARNING):
            assert HistoryStore(path).load() == []
        assert "not valid JSON" in caplog.text

    def test_oversized_number_skips_only_that_entry(self, tmp_path):
        path = str(tmp_path / "h.db")
        good = _entry(1000)
        bad = entry_to_dict(_entry(2000))
        bad["results"]["total"] = 10 ** 400
        _write_raw(path, json.dumps([bad, entry_to_dict(good)]))
        assert HistoryStore(path).load() == [good]

    def test_non_finite_totals_are_skipped(self, tmp_path):
        path = str(tmp_path / "h.db")
        good = _entry(1000)
        nan_entry = entry_to_dict(_entry(2000))
        nan_entry["results"]["total"] = float("nan")
        inf_entry = entry_to_dict(_entry(3000))
        inf_entry["results"]["car"] = float("inf")
        # json.dumps writes NaN / Infinity literals, which json.loads accepts.
        _write_raw(path, json.dumps([nan_entry, inf_entry, entry_to_dict(good)]))

        history = HistoryStore(path).load()
        assert history == [good]
        stats = derive_trend(history)
        assert stats.first_total == good.results.total
        assert stats.percent_change is None

    def test_web_form_history_loads(self, tmp_path):
        path = str(tmp_path / "h.db")
        blob = [
            {
                "id": "6f1c2b9e-0000-4000-8000-000000000001",
                "date": "2024-03-01T09:30:00.000Z",
                "inputs": {"carKmYear": 8000, "airHoursYear": 12, "kwhMonth": 250, "wasteKgMonth": 20, "diet": "medium"},
                "results": {"total": 8.668, "car": 1.6, "air": 1.08, "energy": 2.1, "waste": 0.288, "diet": 3.6},
            },
            {
                "id": "6f1c2b9e-0000-4000-8000-000000000002",
                "date": "2024-04-01T09:30:00.000Z",
                "inputs": {"carKmYear": 0, "airHoursYear": 0, "kwhMonth": 0, "wasteKgMonth": 0, "diet": "vegan"},
                "results": {"total": 1.5, "car": 0, "air": 0, "energy": 0, "waste": 0, "diet": 1.5},
            },
        ]
        _write_raw(path, json.dumps(blob))

        history = HistoryStore(path).load()
        assert [e.inputs.car_km_per_year for e in history] == [8000.0, 0.0]
        assert history[0].inputs.electricity_kwh_per_month == 250.0
        assert history[1].inputs.diet == "vegan"
        assert derive_trend(history).has_trend
