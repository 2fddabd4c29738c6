"""
News repository - upserts and queries for news items.
"""

from datetime import datetime

from ..models import NewsItem, split_categories
from .connection import DatabaseConnection
from .converters import row_to_news_item


class NewsRepository:
    """Repository for news item operations."""

    def __init__(self, db: DatabaseConnection):
        self._db = db

    def upsert_many(self, items: list[NewsItem]) -> int:
        """Insert or replace items by id. Returns count written."""
        if not items:
            return 0

        now = datetime.now().isoformat()
        with self._db.conn() as conn:
            conn.executemany(
                """INSERT INTO news_items
                   (id, title, body, url, image_url, source_name, published_on, categories,
                    created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                   ON CONFLICT(id) DO UPDATE SET
                       title = excluded.title,
                       body = excluded.body,
                       url = excluded.url,
                       image_url = excluded.image_url,
                       source_name = excluded.source_name,
                       published_on = excluded.published_on,
                       categories = excluded.categories,
                       updated_at = excluded.updated_at""",
                [
                    (item.id, item.title, item.body, item.url, item.image_url,
                     item.source_name, item.published_on, item.categories, now, now)
                    for item in items
                ]
            )

            # Rebuild tag rows so containment queries match the latest categories
            conn.executemany(
                "DELETE FROM news_item_tags WHERE news_item_id = ?",
                [(item.id,) for item in items]
            )
            conn.executemany(
                "INSERT OR IGNORE INTO news_item_tags (news_item_id, tag) VALUES (?, ?)",
                [(item.id, tag) for item in items for tag in split_categories(item.categories)]
            )
            return len(items)

    def get_many(
        self,
        limit: int = 50,
        categories: list[str] | None = None,
    ) -> list[NewsItem]:
        """
        Get newest items first.

        When categories are given, an item matches only if every requested
        category is one of its tags (exact, case-sensitive).
        """
        query = "SELECT * FROM news_items WHERE 1=1"
        params: list = []

        wanted = sorted(set(categories)) if categories else []
        if wanted:
            placeholders = ",".join("?" * len(wanted))
            query += f"""
                AND id IN (
                    SELECT news_item_id FROM news_item_tags
                    WHERE tag IN ({placeholders})
                    GROUP BY news_item_id
                    HAVING COUNT(DISTINCT tag) = ?
                )"""
            params.extend(wanted)
            params.append(len(wanted))

        query += " ORDER BY published_on DESC, id ASC LIMIT ?"
        params.append(limit)

        with self._db.conn() as conn:
            rows = conn.execute(query, params).fetchall()
            return [row_to_news_item(row) for row in rows]

    def get_all_categories(self) -> list[str]:
        """Raw pipe-delimited category strings of all items."""
        with self._db.conn() as conn:
            rows = conn.execute(
                "SELECT categories FROM news_items WHERE categories IS NOT NULL AND categories != ''"
            ).fetchall()
            return [row["categories"] for row in rows]

    def delete_published_before(self, cutoff: int) -> int:
        """Delete items published before the cutoff (epoch seconds). Returns count deleted."""
        with self._db.conn() as conn:
            cursor = conn.execute(
                "DELETE FROM news_items WHERE published_on < ?", (cutoff,)
            )
            return cursor.rowcount

    def count(self) -> int:
        with self._db.conn() as conn:
            return conn.execute("SELECT COUNT(*) as cnt FROM news_items").fetchone()["cnt"]
