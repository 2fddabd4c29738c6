"""
Base class for the primary (relational) store.

Implementations raise StoreUnavailable for any connection or query failure
and DuplicateConstraint when a favorite insert collides with an existing row.
"""

from abc import ABC, abstractmethod

from ..models import InteractionEvent, NewsItem, PreferenceRecord


class RelationalStore(ABC):
    """Query surface over news_items, favorites, user_preferences, user_interactions."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Backend name for logging."""
        pass

    @abstractmethod
    async def probe(self) -> None:
        """Cheap query proving the store answers. Raises StoreUnavailable."""
        pass

    # News items

    @abstractmethod
    async def select_news(
        self,
        limit: int,
        categories: list[str] | None = None,
    ) -> list[NewsItem]:
        """Newest first; with categories, items whose tags contain every category."""
        pass

    @abstractmethod
    async def upsert_news(self, items: list[NewsItem]) -> None:
        """Insert or replace by id."""
        pass

    @abstractmethod
    async def select_categories(self) -> list[str]:
        """Raw pipe-delimited category strings of stored items."""
        pass

    @abstractmethod
    async def delete_news_before(self, cutoff: int) -> None:
        """Delete items published before cutoff (epoch seconds)."""
        pass

    # Favorites

    @abstractmethod
    async def insert_favorite(self, user_id: str, news_item_id: str) -> None:
        pass

    @abstractmethod
    async def delete_favorite(self, user_id: str, news_item_id: str) -> None:
        pass

    @abstractmethod
    async def favorite_exists(self, user_id: str, news_item_id: str) -> bool:
        pass

    @abstractmethod
    async def select_favorite_ids(self, user_id: str) -> list[str]:
        pass

    @abstractmethod
    async def select_favorite_items(self, user_id: str) -> list[NewsItem]:
        """Favorited items, most recently favorited first."""
        pass

    # Preferences & interactions

    @abstractmethod
    async def upsert_preferences(self, user_id: str, categories: list[str]) -> None:
        pass

    @abstractmethod
    async def select_preferences(self, user_id: str) -> PreferenceRecord | None:
        pass

    @abstractmethod
    async def insert_interaction(self, event: InteractionEvent) -> None:
        pass

    async def close(self) -> None:
        """Release held resources."""
        return None
