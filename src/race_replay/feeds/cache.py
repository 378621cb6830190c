"""SessionCache — keeps fetched OpenF1 sessions in SQLite.

Schema design notes:
  - ``sessions`` holds one row per OpenF1 ``session_key``; ``INTEGER PRIMARY
    KEY`` is the rowid alias, so no AUTOINCREMENT.
  - ``records`` stores each raw row as JSON with its kind and original
    index (``seq``), so a cached session loads back in source order, which
    the timeline merge relies on for tie-breaking.
  - Saving a session replaces all of its previous rows in one transaction.
"""

from __future__ import annotations

import json
import logging
import sqlite3

from race_replay.feeds.openf1 import SessionData

_logger = logging.getLogger(__name__)

_KINDS: tuple[str, ...] = ("drivers", "positions", "laps", "messages")

_DDL = """
PRAGMA journal_mode = WAL;
PRAGMA synchronous  = NORMAL;

CREATE TABLE IF NOT EXISTS sessions (
    idx         INTEGER PRIMARY KEY,
    session_key INTEGER NOT NULL UNIQUE,
    fetched_at  TEXT    NOT NULL
                DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now'))
);

CREATE TABLE IF NOT EXISTS records (
    session_idx INTEGER NOT NULL,
    kind        TEXT    NOT NULL,
    seq         INTEGER NOT NULL,
    payload     TEXT    NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_records_session_kind
    ON records (session_idx, kind, seq);
"""

_SELECT_SESSION = "SELECT idx FROM sessions WHERE session_key = ?"

_INSERT_RECORD = """
INSERT INTO records (session_idx, kind, seq, payload)
VALUES (?, ?, ?, ?)
"""

_SELECT_RECORDS = """
SELECT kind, payload
FROM   records
WHERE  session_idx = ?
ORDER  BY kind, seq
"""

_LIST_SESSIONS = """
SELECT s.session_key,
       s.fetched_at,
       COUNT(r.seq) AS record_count
FROM   sessions s
LEFT   JOIN records r ON r.session_idx = s.idx
GROUP  BY s.idx
ORDER  BY s.fetched_at DESC, s.session_key DESC
"""


class SessionCache:
    """Stores and retrieves :class:`SessionData` in a SQLite database.

    Parameters
    ----------
    db_path:
        Path to the SQLite file.  Pass ``":memory:"`` for in-process testing.
    """

    def __init__(self, db_path: str = "race_replay.db") -> None:
        self._conn = sqlite3.connect(db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        for stmt in _DDL.strip().split(";"):
            stmt = stmt.strip()
            if stmt:
                self._conn.execute(stmt)
        self._conn.commit()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def save(self, data: SessionData) -> None:
        """Persist *data*, replacing any previously cached copy of the session."""
        with self._conn:
            self._conn.execute(
                "INSERT OR IGNORE INTO sessions (session_key) VALUES (?)",
                (data.session_key,),
            )
            self._conn.execute(
                "UPDATE sessions SET fetched_at = strftime('%Y-%m-%dT%H:%M:%SZ', 'now') "
                "WHERE session_key = ?",
                (data.session_key,),
            )
            idx = self._conn.execute(_SELECT_SESSION, (data.session_key,)).fetchone()[0]
            self._conn.execute("DELETE FROM records WHERE session_idx = ?", (idx,))
            rows = [
                (idx, kind, seq, json.dumps(item))
                for kind in _KINDS
                for seq, item in enumerate(getattr(data, kind))
            ]
            self._conn.executemany(_INSERT_RECORD, rows)
        _logger.info("Cached session %s (%d records)", data.session_key, len(rows))

    def load(self, session_key: int) -> SessionData | None:
        """Return the cached session, or None if it was never saved."""
        row = self._conn.execute(_SELECT_SESSION, (session_key,)).fetchone()
        if row is None:
            return None
        data = SessionData(session_key=session_key)
        for rec in self._conn.execute(_SELECT_RECORDS, (row["idx"],)).fetchall():
            getattr(data, rec["kind"]).append(json.loads(rec["payload"]))
        return data

    def list_sessions(self) -> list[dict]:
        """Return ``session_key``, ``fetched_at`` and ``record_count`` per cached session, newest first."""
        return [dict(r) for r in self._conn.execute(_LIST_SESSIONS).fetchall()]

    def delete(self, session_key: int) -> bool:
        """Remove a cached session; return True if it existed."""
        row = self._conn.execute(_SELECT_SESSION, (session_key,)).fetchone()
        if row is None:
            return False
        with self._conn:
            self._conn.execute("DELETE FROM records WHERE session_idx = ?", (row["idx"],))
            self._conn.execute("DELETE FROM sessions WHERE idx = ?", (row["idx"],))
        return True

    def close(self) -> None:
        self._conn.close()
