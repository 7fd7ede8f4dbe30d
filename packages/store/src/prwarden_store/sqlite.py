"""SQLiteStore — every pull request's review state in one local database file.

Point `store_path` at a directory the CI cache restores between jobs to keep
state across runs without a Gist.

Schema:
  review_state — one row per (owner, repo, number); saves replace the row.
"""

from __future__ import annotations

import json
import logging
import sqlite3

from prwarden_store.base import BaseStore
from prwarden_store.models import StateKey, StateReadError, StateRecord

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS review_state (
    owner          TEXT NOT NULL,
    repo           TEXT NOT NULL,
    number         INTEGER NOT NULL,
    last_commit    TEXT NOT NULL,
    comments_json  TEXT DEFAULT '[]',
    updated_at     TEXT DEFAULT CURRENT_TIMESTAMP,
    PRIMARY KEY (owner, repo, number)
);
"""


class SQLiteStore(BaseStore):
    """Stores review state in a local SQLite database file.

    The database file path defaults to `.prwarden.db` in the current working
    directory. Configure via .prwarden.yml: `store_path: /path/to/prwarden.db`.
    """

    def __init__(self, db_path: str = ".prwarden.db"):
        self._conn = sqlite3.connect(db_path)
        self._conn.row_factory = sqlite3.Row
        self._conn.executescript(_SCHEMA)
        self._conn.commit()

    def _read(self, key: StateKey) -> StateRecord | None:
        row = self._conn.execute(
            "SELECT last_commit, comments_json FROM review_state WHERE owner=? AND repo=? AND number=?",
            (key.owner, key.repo, key.number),
        ).fetchone()
        if row is None:
            return None
        try:
            comments = json.loads(row["comments_json"] or "[]")
        except json.JSONDecodeError as e:
            raise StateReadError(f"comments_json is not valid JSON: {e}") from e
        return StateRecord.from_dict({"last_commit": row["last_commit"], "previous_comments": comments})

    def save(self, key: StateKey, record: StateRecord) -> None:
        data = record.to_dict()
        self._conn.execute(
            """
            INSERT OR REPLACE INTO review_state (owner, repo, number, last_commit, comments_json, updated_at)
            VALUES (?, ?, ?, ?, ?, CURRENT_TIMESTAMP)
            """,
            (key.owner, key.repo, key.number, data["last_commit"], json.dumps(data["previous_comments"])),
        )
        self._conn.commit()
        logger.debug("Saved state for %s/%s#%d at %s", key.owner, key.repo, key.number, record.last_commit[:7])

    def close(self) -> None:
        self._conn.close()
