"""
Database facade - provides unified access to all repositories.
"""

from pathlib import Path

from ..models import InteractionEvent, NewsItem, PreferenceRecord
from .connection import DatabaseConnection
from .favorite_repository import FavoriteRepository
from .interaction_repository import InteractionRepository
from .news_repository import NewsRepository
from .preference_repository import PreferenceRepository


class Database:
    """
    Unified database access facade.

    All methods are blocking; async callers should run them off the event loop.
    """

    def __init__(self, db_path: Path):
        self._connection = DatabaseConnection(db_path)

        # Initialize repositories
        self.news = NewsRepository(self._connection)
        self.favorites = FavoriteRepository(self._connection)
        self.preferences = PreferenceRepository(self._connection)
        self.interactions = InteractionRepository(self._connection)

    @property
    def path(self) -> Path:
        return self._connection.db_path

    def ping(self) -> int:
        """Lightweight reachability check. Returns the news item count."""
        return self.news.count()

    # ─────────────────────────────────────────────────────────────
    # News operations (delegated to NewsRepository)
    # ─────────────────────────────────────────────────────────────

    def upsert_news(self, items: list[NewsItem]) -> int:
        return self.news.upsert_many(items)

    def get_news(self, limit: int = 50, categories: list[str] | None = None) -> list[NewsItem]:
        return self.news.get_many(limit=limit, categories=categories)

    def get_category_strings(self) -> list[str]:
        return self.news.get_all_categories()

    def delete_news_before(self, cutoff: int) -> int:
        return self.news.delete_published_before(cutoff)

    # ─────────────────────────────────────────────────────────────
    # Favorites (delegated to FavoriteRepository)
    # ─────────────────────────────────────────────────────────────

    def add_favorite(self, user_id: str, news_item_id: str) -> bool:
        return self.favorites.add(user_id, news_item_id)

    def remove_favorite(self, user_id: str, news_item_id: str) -> bool:
        return self.favorites.remove(user_id, news_item_id)

    def is_favorite(self, user_id: str, news_item_id: str) -> bool:
        return self.favorites.exists(user_id, news_item_id)

    def get_favorite_ids(self, user_id: str) -> list[str]:
        return self.favorites.get_ids(user_id)

    def get_favorite_items(self, user_id: str) -> list[NewsItem]:
        return self.favorites.get_items(user_id)

    # ─────────────────────────────────────────────────────────────
    # Preferences & interactions
    # ─────────────────────────────────────────────────────────────

    def get_preferences(self, user_id: str) -> PreferenceRecord | None:
        return self.preferences.get(user_id)

    def set_preferences(self, user_id: str, categories: list[str]):
        return self.preferences.set(user_id, categories)

    def add_interaction(self, event: InteractionEvent) -> int | None:
        return self.interactions.add(event)
