"""
Preference repository - one preference record per user.
"""

import json
from datetime import datetime

from ..models import PreferenceRecord
from .connection import DatabaseConnection
from .converters import row_to_preference


class PreferenceRepository:
    """Repository for per-user category preferences."""

    def __init__(self, db: DatabaseConnection):
        self._db = db

    def get(self, user_id: str) -> PreferenceRecord | None:
        with self._db.conn() as conn:
            row = conn.execute(
                "SELECT * FROM user_preferences WHERE user_id = ?", (user_id,)
            ).fetchone()
            return row_to_preference(row) if row else None

    def set(self, user_id: str, categories: list[str]):
        """Upsert the user's preferred categories, preserving order."""
        now = datetime.now().isoformat()
        with self._db.conn() as conn:
            conn.execute(
                """INSERT INTO user_preferences (user_id, preferred_categories, created_at, updated_at)
                   VALUES (?, ?, ?, ?)
                   ON CONFLICT(user_id) DO UPDATE SET
                   preferred_categories = excluded.preferred_categories,
                   updated_at = excluded.updated_at""",
                (user_id, json.dumps(list(categories)), now, now)
            )
