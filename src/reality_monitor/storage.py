from __future__ import annotations

import json
import logging
import sqlite3
from collections import Counter
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import TypeAdapter

from .schema import HistoryEntry

log = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS kv_store (
    key          TEXT PRIMARY KEY,
    value        TEXT NOT NULL,
    updated_at   TEXT NOT NULL
);
"""

_history_adapter = TypeAdapter(Dict[str, HistoryEntry])


class Storage:
    """Key-value blob store on top of a SQLite file.

    Values are JSON documents replaced as a whole on every write; there is
    no locking, the last writer wins.
    """

    def __init__(self, db_path: str) -> None:
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(db_path)
        self.conn.row_factory = sqlite3.Row
        self.conn.execute(SCHEMA_SQL)
        self.conn.commit()

    def get_value(self, key: str) -> Optional[Any]:
        row = self.conn.execute(
            "SELECT value FROM kv_store WHERE key=?", (key,)
        ).fetchone()
        if row is None:
            return None
        return json.loads(row["value"])

    def set_value(self, key: str, value: Any) -> None:
        now = datetime.now(timezone.utc).isoformat(timespec="seconds")
        self.conn.execute(
            "INSERT INTO kv_store(key, value, updated_at) VALUES(?,?,?) "
            "ON CONFLICT(key) DO UPDATE SET value=excluded.value, "
            "updated_at=excluded.updated_at",
            (key, json.dumps(value, ensure_ascii=False), now),
        )
        self.conn.commit()

    def keys(self) -> list[str]:
        rows = self.conn.execute("SELECT key FROM kv_store ORDER BY key").fetchall()
        return [row["key"] for row in rows]

    def close(self) -> None:
        self.conn.close()


def load_history(storage: Storage, key: str) -> Dict[str, HistoryEntry]:
    raw = storage.get_value(key)
    if raw is None:
        log.info("No history under '%s', starting empty", key)
        return {}
    history = _history_adapter.validate_python(raw)
    log.info("Loaded history for %d listings from '%s'", len(history), key)
    return history


def save_history(storage: Storage, key: str, history: Dict[str, HistoryEntry]) -> None:
    storage.set_value(key, _history_adapter.dump_python(history, mode="json"))
    log.info("Saved history for %d listings to '%s'", len(history), key)


def summarize_history(history: Dict[str, HistoryEntry]) -> dict[str, int]:
    """Tracked listing count per portal (the first segment of the id)."""
    return dict(Counter(listing_id.split(":", 1)[0] for listing_id in history))
