"""
SQLite-backed primary store.

Wraps the blocking Database facade; every call runs in a worker thread so
the event loop only suspends on I/O.
"""

import asyncio
import sqlite3
from pathlib import Path
from typing import Callable, TypeVar

from ..database import Database
from ..exceptions import DuplicateConstraint, StoreUnavailable
from ..models import InteractionEvent, NewsItem, PreferenceRecord
from .base import RelationalStore

T = TypeVar("T")


class SQLiteStore(RelationalStore):
    """Primary store over a local SQLite database file."""

    def __init__(self, db: Database):
        self.db = db

    @classmethod
    def from_path(cls, db_path: Path) -> "SQLiteStore":
        try:
            return cls(Database(db_path))
        except (sqlite3.Error, OSError) as e:
            raise StoreUnavailable(f"Cannot open database at {db_path}: {e}") from e

    @property
    def name(self) -> str:
        return "sqlite"

    async def _run(self, fn: Callable[..., T], *args) -> T:
        try:
            return await asyncio.to_thread(fn, *args)
        except (sqlite3.Error, OSError) as e:
            raise StoreUnavailable(f"SQLite query failed: {e}") from e

    async def probe(self) -> None:
        await self._run(self.db.ping)

    async def select_news(
        self,
        limit: int,
        categories: list[str] | None = None,
    ) -> list[NewsItem]:
        return await self._run(self.db.get_news, limit, categories)

    async def upsert_news(self, items: list[NewsItem]) -> None:
        await self._run(self.db.upsert_news, items)

    async def select_categories(self) -> list[str]:
        return await self._run(self.db.get_category_strings)

    async def delete_news_before(self, cutoff: int) -> None:
        await self._run(self.db.delete_news_before, cutoff)

    async def insert_favorite(self, user_id: str, news_item_id: str) -> None:
        added = await self._run(self.db.add_favorite, user_id, news_item_id)
        if not added:
            raise DuplicateConstraint(f"Favorite {news_item_id} already exists for {user_id}")

    async def delete_favorite(self, user_id: str, news_item_id: str) -> None:
        await self._run(self.db.remove_favorite, user_id, news_item_id)

    async def favorite_exists(self, user_id: str, news_item_id: str) -> bool:
        return await self._run(self.db.is_favorite, user_id, news_item_id)

    async def select_favorite_ids(self, user_id: str) -> list[str]:
        return await self._run(self.db.get_favorite_ids, user_id)

    async def select_favorite_items(self, user_id: str) -> list[NewsItem]:
        return await self._run(self.db.get_favorite_items, user_id)

    async def upsert_preferences(self, user_id: str, categories: list[str]) -> None:
        await self._run(self.db.set_preferences, user_id, categories)

    async def select_preferences(self, user_id: str) -> PreferenceRecord | None:
        return await self._run(self.db.get_preferences, user_id)

    async def insert_interaction(self, event: InteractionEvent) -> None:
        await self._run(self.db.add_interaction, event)
