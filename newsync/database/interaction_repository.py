"""
Interaction repository - append-only log of user interactions.
"""

from ..models import InteractionEvent
from .connection import DatabaseConnection


class InteractionRepository:
    """Repository for interaction events. Duplicates are allowed."""

    def __init__(self, db: DatabaseConnection):
        self._db = db

    def add(self, event: InteractionEvent) -> int | None:
        with self._db.conn() as conn:
            cursor = conn.execute(
                """INSERT INTO user_interactions (user_id, news_item_id, interaction_type, created_at)
                   VALUES (?, ?, ?, ?)""",
                (event.user_id, event.news_item_id, event.type.value, event.created_at)
            )
            return cursor.lastrowid
