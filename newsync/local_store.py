"""
Local fallback store - best-effort persistence when the primary store is down.

Each collection is one JSON blob in the on-device key-value store. This is a
fallback universe, not a replica: nothing here is ever reconciled with the
primary store.

Every operation fails soft: an I/O or decode error is logged and a safe
default is returned instead of raising into the caller.
"""

import json
import logging
import time
from datetime import datetime
from typing import Any

from .exceptions import FallbackIOError
from .models import FavoriteRecord, InteractionEvent, NewsItem
from .storage import KeyValueStore

logger = logging.getLogger(__name__)

ITEMS_KEY = "localNewsItems"
ITEMS_TIMESTAMP_KEY = "localNewsTimestamp"
FAVORITES_KEY = "localFavorites"
PREFERENCES_KEY = "userPreferences"
INTERACTIONS_KEY = "localInteractions"

DECODE_ERRORS = (json.JSONDecodeError, KeyError, TypeError, ValueError)


class LocalFallbackStore:
    """Capped, merge-on-write collections over a KeyValueStore."""

    def __init__(self, kv: KeyValueStore, max_items: int = 100):
        self.kv = kv
        self.max_items = max_items

    async def _load(self, key: str) -> Any | None:
        """Read and decode one collection. Raises FallbackIOError."""
        stored = await self.kv.get(key)
        return json.loads(stored) if stored else None

    async def _load_list(self, key: str) -> list:
        """Read a list-valued collection; raises TypeError for any other shape."""
        raw = await self._load(key)
        if raw is None:
            return []
        if not isinstance(raw, list):
            raise TypeError(f"{key} holds {type(raw).__name__}, expected list")
        return raw

    async def _store(self, key: str, value: Any) -> None:
        await self.kv.set(key, json.dumps(value))

    # ─────────────────────────────────────────────────────────────
    # News items
    # ─────────────────────────────────────────────────────────────

    async def save_items(self, items: list[NewsItem]) -> bool:
        """
        Merge items into the local collection.

        A re-supplied id replaces the earlier version and counts as the most
        recent entry. Only the newest `max_items` entries are kept.
        """
        try:
            existing = await self._load_items()
            merged: dict[str, NewsItem] = {item.id: item for item in existing}
            for item in items:
                merged.pop(item.id, None)
                merged[item.id] = item

            kept = list(merged.values())[-self.max_items:]
            await self._store(ITEMS_KEY, [item.to_dict() for item in kept])
            await self.kv.set(ITEMS_TIMESTAMP_KEY, str(int(time.time() * 1000)))
            logger.info(f"Saved {len(items)} news items to local storage ({len(kept)} kept)")
            return True
        except (FallbackIOError, *DECODE_ERRORS) as e:
            logger.error(f"Error saving news items to local storage: {e}")
            return False

    async def _load_items(self) -> list[NewsItem]:
        raw = await self._load_list(ITEMS_KEY)
        return [NewsItem.from_dict(entry) for entry in raw]

    async def get_items(self) -> list[NewsItem]:
        try:
            return await self._load_items()
        except (FallbackIOError, *DECODE_ERRORS) as e:
            logger.error(f"Error reading local news items: {e}")
            return []

    async def last_saved_at(self) -> int | None:
        """Epoch millis of the last successful item save."""
        try:
            stored = await self.kv.get(ITEMS_TIMESTAMP_KEY)
            return int(stored) if stored else None
        except (FallbackIOError, ValueError) as e:
            logger.error(f"Error reading local news timestamp: {e}")
            return None

    async def clear_old_items(self, days_to_keep: int = 30) -> bool:
        """Drop items published before the retention cutoff."""
        cutoff = int(time.time()) - days_to_keep * 24 * 60 * 60
        try:
            items = await self._load_items()
            kept = [item for item in items if item.published_on >= cutoff]
            await self._store(ITEMS_KEY, [item.to_dict() for item in kept])
            logger.info(f"Cleared {len(items) - len(kept)} local news items older than {days_to_keep} days")
            return True
        except (FallbackIOError, *DECODE_ERRORS) as e:
            logger.error(f"Error clearing old local news: {e}")
            return False

    # ─────────────────────────────────────────────────────────────
    # Favorites
    # ─────────────────────────────────────────────────────────────

    async def _load_favorites(self) -> list[FavoriteRecord]:
        raw = await self._load_list(FAVORITES_KEY)
        return [FavoriteRecord(**entry) for entry in raw]

    async def _store_favorites(self, favorites: list[FavoriteRecord]) -> None:
        await self._store(FAVORITES_KEY, [
            {
                "user_id": f.user_id,
                "news_item_id": f.news_item_id,
                "created_at": f.created_at,
            }
            for f in favorites
        ])

    async def add_favorite(self, user_id: str, news_item_id: str) -> bool:
        try:
            favorites = await self._load_favorites()
            if any(f.user_id == user_id and f.news_item_id == news_item_id for f in favorites):
                return True

            favorites.append(FavoriteRecord(
                user_id=user_id,
                news_item_id=news_item_id,
                created_at=datetime.now().isoformat(),
            ))
            await self._store_favorites(favorites)
            logger.info(f"Added {news_item_id} to local favorites")
            return True
        except (FallbackIOError, *DECODE_ERRORS) as e:
            logger.error(f"Error adding to local favorites: {e}")
            return False

    async def remove_favorite(self, user_id: str, news_item_id: str) -> bool:
        try:
            favorites = await self._load_favorites()
            remaining = [
                f for f in favorites
                if not (f.user_id == user_id and f.news_item_id == news_item_id)
            ]
            await self._store_favorites(remaining)
            logger.info(f"Removed {news_item_id} from local favorites")
            return True
        except (FallbackIOError, *DECODE_ERRORS) as e:
            logger.error(f"Error removing from local favorites: {e}")
            return False

    async def list_favorites(self, user_id: str | None = None) -> list[FavoriteRecord]:
        """List favorites, optionally restricted to one user, oldest first."""
        try:
            favorites = await self._load_favorites()
        except (FallbackIOError, *DECODE_ERRORS) as e:
            logger.error(f"Error reading local favorites: {e}")
            return []
        if user_id is None:
            return favorites
        return [f for f in favorites if f.user_id == user_id]

    async def is_favorite(self, user_id: str, news_item_id: str) -> bool:
        favorites = await self.list_favorites(user_id)
        return any(f.news_item_id == news_item_id for f in favorites)

    # ─────────────────────────────────────────────────────────────
    # Preferences
    # ─────────────────────────────────────────────────────────────

    async def save_preferences(self, categories: list[str]) -> bool:
        try:
            await self._store(PREFERENCES_KEY, list(categories))
            logger.info("User preferences saved to local storage")
            return True
        except (FallbackIOError, TypeError, ValueError) as e:
            logger.error(f"Error saving preferences to local storage: {e}")
            return False

    async def get_preferences(self) -> list[str] | None:
        """Stored preferences, or None if never saved or unreadable."""
        try:
            stored = await self._load(PREFERENCES_KEY)
        except (FallbackIOError, *DECODE_ERRORS) as e:
            logger.error(f"Error reading preferences from local storage: {e}")
            return None
        if not isinstance(stored, list):
            return None
        return [str(cat) for cat in stored]

    # ─────────────────────────────────────────────────────────────
    # Interactions
    # ─────────────────────────────────────────────────────────────

    async def append_interaction(self, event: InteractionEvent) -> bool:
        try:
            raw = await self._load_list(INTERACTIONS_KEY)
            raw.append(event.to_dict())
            await self._store(INTERACTIONS_KEY, raw)
            return True
        except (FallbackIOError, *DECODE_ERRORS) as e:
            logger.error(f"Error tracking local interaction: {e}")
            return False

    async def list_interactions(self) -> list[InteractionEvent]:
        try:
            raw = await self._load_list(INTERACTIONS_KEY)
            return [InteractionEvent.from_dict(entry) for entry in raw]
        except (FallbackIOError, *DECODE_ERRORS) as e:
            logger.error(f"Error reading local interactions: {e}")
            return []
