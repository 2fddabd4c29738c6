"""
Tests for the SQLite database layer and the SQLite-backed primary store.
"""

import sqlite3
from datetime import datetime
from unittest.mock import patch

import pytest

from newsync.database import Database
from newsync.exceptions import DuplicateConstraint, StoreUnavailable
from newsync.models import InteractionEvent, InteractionType
from newsync.stores import PostgrestStore, SQLiteStore, create_store


class TestNewsQueries:
    @pytest.mark.asyncio
    async def test_upsert_is_idempotent(self, sqlite_store, make_item):
        items = [make_item("1"), make_item("2")]
        await sqlite_store.upsert_news(items)
        await sqlite_store.upsert_news(items)

        assert sqlite_store.db.news.count() == 2

    @pytest.mark.asyncio
    async def test_upsert_replaces_by_id(self, sqlite_store, make_item):
        await sqlite_store.upsert_news([make_item("1", title="old", categories="BTC")])
        await sqlite_store.upsert_news([make_item("1", title="new", categories="ETH")])

        [item] = await sqlite_store.select_news(10)
        assert item.title == "new"
        assert await sqlite_store.select_news(10, ["BTC"]) == []
        assert [i.id for i in await sqlite_store.select_news(10, ["ETH"])] == ["1"]

    @pytest.mark.asyncio
    async def test_select_newest_first_with_limit(self, sqlite_store, make_item):
        await sqlite_store.upsert_news([
            make_item(str(i), published_on=1_700_000_000 + i) for i in range(5)
        ])
        items = await sqlite_store.select_news(3)
        assert [i.id for i in items] == ["4", "3", "2"]

    @pytest.mark.asyncio
    async def test_exact_category_containment(self, sqlite_store, make_item):
        await sqlite_store.upsert_news([
            make_item("1", categories="DeFi|Trading"),
            make_item("2", categories="DeFiance"),
            make_item("3", categories="DeFi"),
        ])

        both = await sqlite_store.select_news(10, ["DeFi", "Trading"])
        assert [i.id for i in both] == ["1"]

        defi = await sqlite_store.select_news(10, ["DeFi"])
        assert {i.id for i in defi} == {"1", "3"}

        # Tags are case-sensitive
        assert await sqlite_store.select_news(10, ["defi"]) == []

    @pytest.mark.asyncio
    async def test_round_trips_all_fields(self, sqlite_store, make_item):
        item = make_item("1", categories="BTC|Mining", body="body text")
        await sqlite_store.upsert_news([item])
        assert (await sqlite_store.select_news(1))[0] == item

    @pytest.mark.asyncio
    async def test_category_strings(self, sqlite_store, make_item):
        await sqlite_store.upsert_news([
            make_item("1", categories="BTC|Mining"),
            make_item("2", categories=""),
        ])
        assert await sqlite_store.select_categories() == ["BTC|Mining"]

    @pytest.mark.asyncio
    async def test_delete_before_cutoff_removes_tags(self, sqlite_store, make_item):
        await sqlite_store.upsert_news([
            make_item("old", published_on=100, categories="BTC"),
            make_item("new", published_on=200, categories="BTC"),
        ])
        await sqlite_store.delete_news_before(150)

        assert [i.id for i in await sqlite_store.select_news(10, ["BTC"])] == ["new"]
        assert [i.id for i in await sqlite_store.select_news(10)] == ["new"]


class TestFavoriteQueries:
    @pytest.mark.asyncio
    async def test_duplicate_favorite_raises(self, sqlite_store):
        await sqlite_store.insert_favorite("u1", "1")
        with pytest.raises(DuplicateConstraint):
            await sqlite_store.insert_favorite("u1", "1")

    @pytest.mark.asyncio
    async def test_same_item_different_users(self, sqlite_store):
        await sqlite_store.insert_favorite("u1", "1")
        await sqlite_store.insert_favorite("u2", "1")
        assert await sqlite_store.favorite_exists("u2", "1") is True

    @pytest.mark.asyncio
    async def test_favorite_items_most_recent_first(self, sqlite_store, make_item):
        await sqlite_store.upsert_news([make_item("1"), make_item("2"), make_item("3")])
        await sqlite_store.insert_favorite("u1", "1")
        await sqlite_store.insert_favorite("u1", "3")
        await sqlite_store.insert_favorite("u1", "missing")

        items = await sqlite_store.select_favorite_items("u1")
        assert [i.id for i in items] == ["3", "1"]
        assert set(await sqlite_store.select_favorite_ids("u1")) == {"1", "3", "missing"}

    @pytest.mark.asyncio
    async def test_delete_favorite(self, sqlite_store):
        await sqlite_store.insert_favorite("u1", "1")
        await sqlite_store.delete_favorite("u1", "1")
        assert await sqlite_store.favorite_exists("u1", "1") is False


class TestPreferenceAndInteractionQueries:
    @pytest.mark.asyncio
    async def test_preferences_upsert(self, sqlite_store):
        assert await sqlite_store.select_preferences("u1") is None

        await sqlite_store.upsert_preferences("u1", ["BTC", "NFT"])
        await sqlite_store.upsert_preferences("u1", ["ETH"])

        record = await sqlite_store.select_preferences("u1")
        assert record.preferred_categories == ["ETH"]
        assert record.user_id == "u1"

    @pytest.mark.asyncio
    async def test_interactions_append_only(self, sqlite_store):
        event = InteractionEvent("u1", "1", InteractionType.DISLIKE, datetime.now().isoformat())
        await sqlite_store.insert_interaction(event)
        await sqlite_store.insert_interaction(event)

        with sqlite3.connect(sqlite_store.db.path) as conn:
            rows = conn.execute(
                "SELECT interaction_type FROM user_interactions WHERE user_id = ?", ("u1",)
            ).fetchall()
        assert rows == [("dislike",), ("dislike",)]


class TestSQLiteStoreErrors:
    @pytest.mark.asyncio
    async def test_probe(self, sqlite_store):
        # Should not raise
        await sqlite_store.probe()

    @pytest.mark.asyncio
    async def test_sqlite_errors_become_store_unavailable(self, sqlite_store):
        with patch.object(sqlite_store.db, "ping", side_effect=sqlite3.OperationalError("disk I/O error")):
            with pytest.raises(StoreUnavailable, match="disk I/O error"):
                await sqlite_store.probe()

    def test_name(self, sqlite_store):
        assert sqlite_store.name == "sqlite"


class TestCreateStore:
    def test_sqlite_backend(self, temp_db_path):
        store = create_store("SQLite", db_path=temp_db_path)
        assert isinstance(store, SQLiteStore)
        assert isinstance(store.db, Database)

    def test_postgrest_backend(self):
        store = create_store("postgrest", base_url="https://db.example.com", api_key="k")
        assert isinstance(store, PostgrestStore)

    def test_postgrest_requires_settings(self):
        with pytest.raises(ValueError):
            create_store("postgrest", base_url="https://db.example.com")

    def test_sqlite_requires_path(self):
        with pytest.raises(ValueError):
            create_store("sqlite")

    def test_unknown_backend(self):
        with pytest.raises(ValueError, match="Unknown store backend"):
            create_store("mongo")
