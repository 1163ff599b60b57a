"""SQLiteStore — the default local store.

Why SQLite as the local store:
- Batteries included: ships with Python, no extra dependencies.
- One row per (namespace, key): a put is a single upsert, so a record is
  either fully written or not written at all.

Schema:
  records  — JSON value per namespace/key, with the time it was last written.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path

from ticketlens_store.base import BaseStore

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS records (
    namespace   TEXT NOT NULL,
    key         TEXT NOT NULL,
    value_json  TEXT NOT NULL,
    updated_at  TEXT NOT NULL,
    PRIMARY KEY (namespace, key)
);
"""


class SQLiteStore(BaseStore):
    """Stores records in a local SQLite database file.

    The database path defaults to ``~/.ticketlens/ticketlens.db``. Configure
    via .ticketlens.yml: ``store_path: /path/to/ticketlens.db``.
    """

    def __init__(self, db_path: str = "~/.ticketlens/ticketlens.db"):
        if db_path == ":memory:":
            self.db_path = db_path
        else:
            path = Path(db_path).expanduser()
            path.parent.mkdir(parents=True, exist_ok=True)
            self.db_path = str(path)
        self._conn = sqlite3.connect(self.db_path)
        self._conn.row_factory = sqlite3.Row
        self._conn.executescript(_SCHEMA)
        self._conn.commit()
        logger.debug("Opened SQLite store at %s", self.db_path)

    def put(self, namespace: str, key: str, value: dict) -> None:
        with self._conn:
            self._conn.execute(
                """
                INSERT INTO records (namespace, key, value_json, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT (namespace, key)
                DO UPDATE SET value_json = excluded.value_json, updated_at = excluded.updated_at
                """,
                (namespace, key, json.dumps(value), datetime.now(timezone.utc).isoformat()),
            )

    def get(self, namespace: str, key: str) -> dict | None:
        row = self._conn.execute(
            "SELECT value_json FROM records WHERE namespace=? AND key=?",
            (namespace, key),
        ).fetchone()
        return json.loads(row["value_json"]) if row else None

    def keys(self, namespace: str) -> list[str]:
        rows = self._conn.execute(
            "SELECT key FROM records WHERE namespace=? ORDER BY key",
            (namespace,),
        ).fetchall()
        return [row["key"] for row in rows]

    def list(self, namespace: str) -> list[dict]:
        rows = self._conn.execute(
            "SELECT value_json FROM records WHERE namespace=? ORDER BY key",
            (namespace,),
        ).fetchall()
        return [json.loads(row["value_json"]) for row in rows]

    def remove(self, namespace: str, key: str) -> None:
        with self._conn:
            self._conn.execute("DELETE FROM records WHERE namespace=? AND key=?", (namespace, key))

    def remove_all(self, namespace: str) -> int:
        with self._conn:
            cursor = self._conn.execute("DELETE FROM records WHERE namespace=?", (namespace,))
        return cursor.rowcount

    def close(self) -> None:
        self._conn.close()
