"""
Pytest fixtures for newsync tests.
"""

import asyncio
import os
import random
import tempfile
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from newsync.config import state
from newsync.exceptions import DuplicateConstraint, StoreUnavailable
from newsync.gateway import PrimaryStoreGateway
from newsync.local_store import LocalFallbackStore
from newsync.models import InteractionEvent, NewsItem, PreferenceRecord
from newsync.rate_limit import limiter
from newsync.server import app
from newsync.services import SyncOrchestrator
from newsync.storage import MemoryKeyValueStore
from newsync.stores import RelationalStore, SQLiteStore


def build_item(
    item_id: str,
    published_on: int = 1_700_000_000,
    categories: str = "BTC",
    title: str | None = None,
    body: str = "",
    source_name: str = "CoinDesk",
) -> NewsItem:
    return NewsItem(
        id=item_id,
        title=title or f"Headline {item_id}",
        body=body,
        url=f"https://example.com/news/{item_id}",
        source_name=source_name,
        published_on=published_on,
        categories=categories,
    )


class FakeStore(RelationalStore):
    """
    In-memory primary store with switchable failures.

    available=False makes every call (including probes) raise
    StoreUnavailable; fail_queries=True lets probes succeed but fails queries.
    """

    def __init__(self):
        self.items: dict[str, NewsItem] = {}
        self.favorites: list[tuple[str, str]] = []
        self.preferences: dict[str, list[str]] = {}
        self.interactions: list[InteractionEvent] = []
        self.available = True
        self.fail_queries = False
        self.probe_calls = 0
        self.select_calls = 0
        self.deleted_before: int | None = None

    @property
    def name(self) -> str:
        return "fake"

    def _check(self):
        if not self.available or self.fail_queries:
            raise StoreUnavailable("store offline")

    async def probe(self) -> None:
        self.probe_calls += 1
        if not self.available:
            raise StoreUnavailable("store offline")

    async def select_news(self, limit, categories=None):
        self.select_calls += 1
        self._check()
        await asyncio.sleep(0)
        items = list(self.items.values())
        if categories:
            items = [i for i in items if set(categories) <= set(i.category_list())]
        return sorted(items, key=lambda i: i.published_on, reverse=True)[:limit]

    async def upsert_news(self, items):
        self._check()
        for item in items:
            self.items[item.id] = item

    async def select_categories(self):
        self._check()
        return [i.categories for i in self.items.values() if i.categories]

    async def delete_news_before(self, cutoff):
        self._check()
        self.deleted_before = cutoff
        self.items = {k: v for k, v in self.items.items() if v.published_on >= cutoff}

    async def insert_favorite(self, user_id, news_item_id):
        self._check()
        if (user_id, news_item_id) in self.favorites:
            raise DuplicateConstraint("duplicate key value violates unique constraint")
        self.favorites.append((user_id, news_item_id))

    async def delete_favorite(self, user_id, news_item_id):
        self._check()
        if (user_id, news_item_id) in self.favorites:
            self.favorites.remove((user_id, news_item_id))

    async def favorite_exists(self, user_id, news_item_id):
        self._check()
        return (user_id, news_item_id) in self.favorites

    async def select_favorite_ids(self, user_id):
        self._check()
        return [nid for uid, nid in self.favorites if uid == user_id]

    async def select_favorite_items(self, user_id):
        self._check()
        ids = [nid for uid, nid in reversed(self.favorites) if uid == user_id]
        return [self.items[nid] for nid in ids if nid in self.items]

    async def upsert_preferences(self, user_id, categories):
        self._check()
        self.preferences[user_id] = list(categories)

    async def select_preferences(self, user_id):
        self._check()
        if user_id not in self.preferences:
            return None
        return PreferenceRecord(user_id, self.preferences[user_id], "2024-01-01T00:00:00")

    async def insert_interaction(self, event):
        self._check()
        self.interactions.append(event)


@pytest.fixture
def make_item():
    """Factory for NewsItems with sensible defaults."""
    return build_item


@pytest.fixture
def temp_db_path():
    """Create a temporary database file path."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        yield Path(f.name)
    # Cleanup
    if os.path.exists(f.name):
        os.unlink(f.name)


@pytest.fixture
def kv():
    return MemoryKeyValueStore()


@pytest.fixture
def local_store(kv):
    return LocalFallbackStore(kv)


@pytest.fixture
def fake_store():
    return FakeStore()


@pytest.fixture
def sqlite_store(temp_db_path):
    return SQLiteStore.from_path(temp_db_path)


@pytest.fixture
def gateway(fake_store, local_store):
    """Gateway over the in-memory fake store."""
    return PrimaryStoreGateway(store=fake_store, local=local_store)


@pytest.fixture
def feed_client():
    """News API client double; tests set fetch's return value or side effect."""
    client = MagicMock()
    client.fetch = AsyncMock(return_value=[])
    return client


@pytest.fixture
def sample_items():
    return [
        build_item("1", published_on=1_700_000_100, categories="BTC|Mining",
                   title="Bitcoin hashrate climbs", source_name="CoinDesk"),
        build_item("2", published_on=1_700_000_300, categories="ETH|DeFi",
                   title="Ethereum staking update", source_name="The Block"),
        build_item("3", published_on=1_700_000_200, categories="Regulation",
                   title="New exchange rules", body="Regulators discuss bitcoin ETFs",
                   source_name="Reuters"),
    ]


@pytest.fixture
def client(temp_db_path, sample_items):
    """Create a test client with an isolated store and a stubbed news API."""
    # Store original state
    original_service = state.sync_service
    original_gateway = state.gateway

    gateway = PrimaryStoreGateway(
        store=SQLiteStore.from_path(temp_db_path),
        local=LocalFallbackStore(MemoryKeyValueStore()),
    )
    feed = MagicMock()
    feed.fetch = AsyncMock(return_value=sample_items)
    state.sync_service = SyncOrchestrator(gateway, feed, rng=random.Random(0))
    state.gateway = gateway
    limiter.reset()

    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client

    # Restore original state
    state.sync_service = original_service
    state.gateway = original_gateway
