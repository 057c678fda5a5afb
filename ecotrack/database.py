"""
SQLite persistence layer for the footprint history.

The history is one JSON array stored under a single key, appended to in
place. Reads never fail: a missing, unreadable or corrupt blob is an empty
history.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from typing import List

from ecotrack.history import HistoryEntry, entry_from_dict, entry_to_dict


logger = logging.getLogger(__name__)

HISTORY_KEY = "ecotrack-calculations"

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS kv_store (
  key TEXT PRIMARY KEY,
  value TEXT NOT NULL
);
"""


class HistoryStore:
    def __init__(self, db_path: str = "ecotrack.db", key: str = HISTORY_KEY) -> None:
        self.db_path = db_path
        self.key = key

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    def initialize(self) -> None:
        with self._connect() as conn:
            conn.executescript(SCHEMA_SQL)
            conn.commit()

    def _read_raw(self, conn: sqlite3.Connection) -> list:
        row = conn.execute("SELECT value FROM kv_store WHERE key = ?", (self.key,)).fetchone()
        if row is None:
            return []
        try:
            data = json.loads(row["value"])
        except (ValueError, RecursionError):
            logger.warning("History blob %r is not valid JSON; treating as empty", self.key)
            return []
        if not isinstance(data, list):
            logger.warning("History blob %r is not a list; treating as empty", self.key)
            return []
        return data

    def load(self) -> List[HistoryEntry]:
        """
        Load the history in insertion order.

        Entries that cannot be parsed are skipped.
        """
        try:
            with self._connect() as conn:
                conn.executescript(SCHEMA_SQL)
                raw = self._read_raw(conn)
        except sqlite3.Error as e:
            logger.warning("Could not read history from %s: %s", self.db_path, e)
            return []

        entries = []
        for i, item in enumerate(raw):
            try:
                entries.append(entry_from_dict(item))
            except ValueError as e:
                logger.warning("Skipping history entry %d: %s", i, e)
        return entries

    def append(self, entry: HistoryEntry) -> None:
        with self._connect() as conn:
            conn.executescript(SCHEMA_SQL)
            data = self._read_raw(conn)
            data.append(entry_to_dict(entry))
            conn.execute(
                """
                INSERT INTO kv_store (key, value) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value
                """,
                (self.key, json.dumps(data)),
            )
            conn.commit()
        logger.debug("Appended history entry %s (%d total)", entry.id, len(data))

    def clear(self) -> None:
        with self._connect() as conn:
            conn.executescript(SCHEMA_SQL)
            conn.execute("DELETE FROM kv_store WHERE key = ?", (self.key,))
            conn.commit()
