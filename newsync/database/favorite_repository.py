"""
Favorite repository - per-user favorite records.
"""

import sqlite3
from datetime import datetime

from ..models import NewsItem
from .connection import DatabaseConnection
from .converters import row_to_news_item


class FavoriteRepository:
    """Repository for (user, news item) favorites."""

    def __init__(self, db: DatabaseConnection):
        self._db = db

    def add(self, user_id: str, news_item_id: str) -> bool:
        """Add a favorite. Returns False if it already exists."""
        with self._db.conn() as conn:
            try:
                conn.execute(
                    "INSERT INTO favorites (user_id, news_item_id, created_at) VALUES (?, ?, ?)",
                    (user_id, news_item_id, datetime.now().isoformat())
                )
                return True
            except sqlite3.IntegrityError:
                # UNIQUE(user_id, news_item_id)
                return False

    def remove(self, user_id: str, news_item_id: str) -> bool:
        """Remove a favorite. Returns True if a row was deleted."""
        with self._db.conn() as conn:
            cursor = conn.execute(
                "DELETE FROM favorites WHERE user_id = ? AND news_item_id = ?",
                (user_id, news_item_id)
            )
            return cursor.rowcount > 0

    def exists(self, user_id: str, news_item_id: str) -> bool:
        with self._db.conn() as conn:
            row = conn.execute(
                "SELECT id FROM favorites WHERE user_id = ? AND news_item_id = ? LIMIT 1",
                (user_id, news_item_id)
            ).fetchone()
            return row is not None

    def get_ids(self, user_id: str) -> list[str]:
        """All favorited news item IDs for a user."""
        with self._db.conn() as conn:
            rows = conn.execute(
                "SELECT news_item_id FROM favorites WHERE user_id = ?", (user_id,)
            ).fetchall()
            return [row["news_item_id"] for row in rows]

    def get_items(self, user_id: str) -> list[NewsItem]:
        """Favorited news items, most recently favorited first. Missing items are skipped."""
        with self._db.conn() as conn:
            rows = conn.execute(
                """
                SELECT n.* FROM favorites f
                JOIN news_items n ON n.id = f.news_item_id
                WHERE f.user_id = ?
                ORDER BY f.created_at DESC, f.id DESC
                """,
                (user_id,)
            ).fetchall()
            return [row_to_news_item(row) for row in rows]
