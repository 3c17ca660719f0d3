"""
CompletionStore - Persist the completion set in ~/.coursegrid/progress.db.

The store is a small key-value table holding one JSON blob per key.
It knows nothing about the graph: it loads and saves item IDs only.
"""

import json
import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional

from pydantic import ValidationError

from coursegrid.schemas import CompletionSnapshot


logger = logging.getLogger(__name__)

DEFAULT_PROGRESS_DIR = Path.home() / ".coursegrid"
DEFAULT_PROGRESS_DB = DEFAULT_PROGRESS_DIR / "progress.db"
DEFAULT_STORAGE_KEY = "completed_items"


def decode_snapshot(raw: Optional[str]) -> list[str]:
    """
    Decode a stored blob into item IDs.

    Accepts the CompletionSnapshot object form and a bare JSON array.
    Anything missing or malformed decodes to an empty list.
    """
    if not raw:
        return []
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Stored completion state is not valid JSON, starting empty")
        return []
    if isinstance(data, list):
        data = {"completed": data}
    try:
        snapshot = CompletionSnapshot.model_validate(data)
    except ValidationError:
        logger.warning("Stored completion state has an unexpected shape, starting empty")
        return []
    return list(dict.fromkeys(snapshot.completed))


class CompletionStore:
    """
    Key-value blob store backed by SQLite.

    Each method opens and closes its own connection.
    """

    def __init__(self, db_path: Optional[Path] = None, key: str = DEFAULT_STORAGE_KEY):
        """
        Initialize completion store.

        Args:
            db_path: Path to progress.db (default: ~/.coursegrid/progress.db)
            key: Storage key for the completion blob
        """
        self.db_path = Path(db_path) if db_path else DEFAULT_PROGRESS_DB
        self.key = key
        self._ensure_database()

    def _ensure_database(self):
        """Create database and table if they don't exist."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        conn = sqlite3.connect(str(self.db_path))
        try:
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS kv_store (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT
                );
            """)
            conn.commit()
        finally:
            conn.close()

    def _get_connection(self) -> sqlite3.Connection:
        """Get a new database connection."""
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        return conn

    def read_raw(self) -> Optional[str]:
        """Return the stored blob, or None if nothing was saved."""
        conn = self._get_connection()
        try:
            cursor = conn.execute(
                "SELECT value FROM kv_store WHERE key = ?", (self.key,)
            )
            row = cursor.fetchone()
            return row["value"] if row else None
        finally:
            conn.close()

    def write_raw(self, value: str):
        conn = self._get_connection()
        try:
            now = datetime.now().isoformat()
            conn.execute(
                """INSERT INTO kv_store (key, value, updated_at)
                   VALUES (?, ?, ?)
                   ON CONFLICT(key) DO UPDATE SET
                     value = excluded.value,
                     updated_at = excluded.updated_at""",
                (self.key, value, now)
            )
            conn.commit()
        finally:
            conn.close()

    def load(self) -> list[str]:
        """Load completed item IDs (empty if nothing usable is stored)."""
        return decode_snapshot(self.read_raw())

    def save(self, item_ids: Iterable[str]):
        """Overwrite the stored completion set."""
        snapshot = CompletionSnapshot(
            completed=sorted(set(item_ids)),
            saved_at=datetime.now(),
        )
        self.write_raw(snapshot.model_dump_json())
        logger.debug(f"Saved {len(snapshot.completed)} completed items under '{self.key}'")

    def clear(self):
        """Remove the stored completion set."""
        conn = self._get_connection()
        try:
            conn.execute("DELETE FROM kv_store WHERE key = ?", (self.key,))
            conn.commit()
        finally:
            conn.close()
        logger.info(f"Cleared completion state '{self.key}'")
