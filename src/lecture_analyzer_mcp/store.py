"""Dashboard history — a capacity-bounded list of analyses in SQLite.

The whole history is one JSON array stored under a single key, read and
overwritten as a unit. Newest analyses come first; saving beyond the cap
drops the oldest.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
from pathlib import Path

from pydantic import ValidationError

from .models.analysis import LectureAnalysis

logger = logging.getLogger(__name__)

STORAGE_KEY = "lecture_mate_data_v1"
DEFAULT_MAX_ENTRIES = 20

_SCHEMA = """
CREATE TABLE IF NOT EXISTS kv (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
"""


class KeyValueDB:
    """Synchronous SQLite key-value table with WAL mode.

    An empty *db_path* keeps everything in memory for the process lifetime.
    """

    def __init__(self, db_path: str = "") -> None:
        if db_path:
            path = Path(db_path).expanduser().resolve()
            path.parent.mkdir(parents=True, exist_ok=True)
            target = str(path)
        else:
            target = ":memory:"
        # Routes and tools reach the store from worker threads.
        self._conn = sqlite3.connect(target, check_same_thread=False)
        if db_path:
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.execute("PRAGMA synchronous=NORMAL")
        self._conn.executescript(_SCHEMA)

    def get(self, key: str) -> str | None:
        row = self._conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        return row[0] if row else None

    def put(self, key: str, value: str) -> None:
        self._conn.execute(
            "INSERT OR REPLACE INTO kv (key, value) VALUES (?, ?)", (key, value),
        )
        self._conn.commit()

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()


class DashboardStore:
    """Newest-first history of completed analyses, keyed by analysis id."""

    def __init__(
        self,
        db_path: str = "",
        *,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        key: str = STORAGE_KEY,
    ) -> None:
        self._db = KeyValueDB(db_path)
        self._key = key
        self.max_entries = max_entries
        self._lock = threading.RLock()

    def list(self) -> list[LectureAnalysis]:
        """Return stored analyses, newest first.

        An absent or corrupt history reads as empty; entries that no
        longer validate are skipped.
        """
        with self._lock:
            raw = self._db.get(self._key)
        try:
            entries = json.loads(raw) if raw else []
        except json.JSONDecodeError as exc:
            logger.warning("Failed to load dashboard history: %s", exc)
            return []
        if not isinstance(entries, list):
            logger.warning("Dashboard history is not a list, ignoring it")
            return []

        analyses: list[LectureAnalysis] = []
        for entry in entries:
            try:
                analyses.append(LectureAnalysis.model_validate(entry))
            except ValidationError as exc:
                logger.warning("Skipping unreadable dashboard entry: %s", exc.errors()[:1])
        return analyses

    def get(self, analysis_id: str) -> LectureAnalysis | None:
        return next((a for a in self.list() if a.id == analysis_id), None)

    def save(self, analysis: LectureAnalysis) -> list[LectureAnalysis]:
        """Insert or replace *analysis* and persist the trimmed history.

        An existing id is replaced in place; a new id is prepended. The
        list is then cut to the newest ``max_entries``.
        """
        with self._lock:
            entries = self.list()
            index = next((i for i, a in enumerate(entries) if a.id == analysis.id), None)
            if index is None:
                entries.insert(0, analysis)
            else:
                entries[index] = analysis
            if len(entries) > self.max_entries:
                dropped = len(entries) - self.max_entries
                entries = entries[: self.max_entries]
                logger.info("Evicted %d oldest dashboard(s)", dropped)
            self._write(entries)
        return entries

    def delete(self, analysis_id: str) -> bool:
        """Remove *analysis_id* if present. Returns True if an entry was removed."""
        with self._lock:
            entries = self.list()
            remaining = [a for a in entries if a.id != analysis_id]
            self._write(remaining)
        return len(remaining) != len(entries)

    def _write(self, entries: list[LectureAnalysis]) -> None:
        self._db.put(self._key, json.dumps([a.to_wire() for a in entries]))

    def close(self) -> None:
        self._db.close()
