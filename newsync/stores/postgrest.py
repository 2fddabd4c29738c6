"""
PostgREST-backed primary store.

Talks to a hosted relational data service (Supabase-style REST API) with
aiohttp. Column names follow the hosted schema: news_items.imageurl,
favorites.news_id, user_interactions.news_id.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any

import aiohttp

from ..exceptions import DuplicateConstraint, StoreUnavailable
from ..models import InteractionEvent, NewsItem, PreferenceRecord
from .base import RelationalStore

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"


def _quote(value: str) -> str:
    """Quote a value for a PostgREST array literal."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def row_to_news_item(row: dict[str, Any]) -> NewsItem:
    return NewsItem(
        id=str(row["id"]),
        title=row["title"],
        body=row.get("body") or "",
        url=row["url"],
        image_url=row.get("imageurl"),
        source_name=row.get("source_name") or "Unknown",
        published_on=int(row["published_on"]),
        categories=row.get("categories") or "",
    )


def news_item_to_row(item: NewsItem) -> dict[str, Any]:
    return {
        "id": item.id,
        "title": item.title,
        "body": item.body,
        "url": item.url,
        "imageurl": item.image_url,
        "source_name": item.source_name,
        "published_on": item.published_on,
        "categories": item.categories,
    }


class PostgrestStore(RelationalStore):
    """Primary store over a PostgREST endpoint."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: int = 15,
        session: aiohttp.ClientSession | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._session = session
        self._owns_session = session is None
        self.headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

    @property
    def name(self) -> str:
        return "postgrest"

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(headers=self.headers)
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()

    async def _request(
        self,
        method: str,
        table: str,
        params: dict[str, str] | None = None,
        json: Any = None,
        prefer: str | None = None,
    ) -> Any:
        """Issue one request; returns decoded JSON or None for empty bodies."""
        url = f"{self.base_url}/rest/v1/{table}"
        headers = {"Prefer": prefer} if prefer else None

        try:
            async with self._get_session().request(
                method,
                url,
                params=params,
                json=json,
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            ) as resp:
                if resp.status >= 400:
                    body = await resp.text()
                    if UNIQUE_VIOLATION in body:
                        raise DuplicateConstraint(f"{table}: {body}")
                    raise StoreUnavailable(f"{method} {table} failed with HTTP {resp.status}: {body}")

                text = await resp.text()
                if not text:
                    return None
                return await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise StoreUnavailable(f"{method} {table} failed: {e}") from e
        except ValueError as e:
            raise StoreUnavailable(f"{method} {table} returned invalid JSON") from e

    async def probe(self) -> None:
        await self._request("GET", "news_items", params={"select": "id", "limit": "1"})

    async def select_news(
        self,
        limit: int,
        categories: list[str] | None = None,
    ) -> list[NewsItem]:
        params = {
            "select": "*",
            "order": "published_on.desc",
            "limit": str(limit),
        }
        if categories:
            params["categories_array"] = "cs.{" + ",".join(_quote(c) for c in categories) + "}"

        rows = await self._request("GET", "news_items", params=params) or []
        return [row_to_news_item(row) for row in rows]

    async def upsert_news(self, items: list[NewsItem]) -> None:
        if not items:
            return
        await self._request(
            "POST",
            "news_items",
            params={"on_conflict": "id"},
            json=[news_item_to_row(item) for item in items],
            prefer="resolution=merge-duplicates,return=minimal",
        )

    async def select_categories(self) -> list[str]:
        rows = await self._request(
            "GET",
            "news_items",
            params={"select": "categories", "categories": "not.is.null"},
        ) or []
        return [row["categories"] for row in rows if row.get("categories")]

    async def delete_news_before(self, cutoff: int) -> None:
        await self._request(
            "DELETE", "news_items", params={"published_on": f"lt.{cutoff}"}
        )

    async def insert_favorite(self, user_id: str, news_item_id: str) -> None:
        await self._request(
            "POST",
            "favorites",
            json=[{"user_id": user_id, "news_id": news_item_id}],
            prefer="return=minimal",
        )

    async def delete_favorite(self, user_id: str, news_item_id: str) -> None:
        await self._request(
            "DELETE",
            "favorites",
            params={"user_id": f"eq.{user_id}", "news_id": f"eq.{news_item_id}"},
        )

    async def favorite_exists(self, user_id: str, news_item_id: str) -> bool:
        rows = await self._request(
            "GET",
            "favorites",
            params={
                "select": "id",
                "user_id": f"eq.{user_id}",
                "news_id": f"eq.{news_item_id}",
                "limit": "1",
            },
        ) or []
        return len(rows) > 0

    async def select_favorite_ids(self, user_id: str) -> list[str]:
        rows = await self._request(
            "GET",
            "favorites",
            params={"select": "news_id", "user_id": f"eq.{user_id}"},
        ) or []
        return [str(row["news_id"]) for row in rows]

    async def select_favorite_items(self, user_id: str) -> list[NewsItem]:
        rows = await self._request(
            "GET",
            "favorites",
            params={
                "select": "news_id,news_items(*)",
                "user_id": f"eq.{user_id}",
                "order": "created_at.desc",
            },
        ) or []
        return [row_to_news_item(row["news_items"]) for row in rows if row.get("news_items")]

    async def upsert_preferences(self, user_id: str, categories: list[str]) -> None:
        await self._request(
            "POST",
            "user_preferences",
            params={"on_conflict": "user_id"},
            json=[{
                "user_id": user_id,
                "preferred_categories": list(categories),
                "updated_at": datetime.now().isoformat(),
            }],
            prefer="resolution=merge-duplicates,return=minimal",
        )

    async def select_preferences(self, user_id: str) -> PreferenceRecord | None:
        rows = await self._request(
            "GET",
            "user_preferences",
            params={
                "select": "user_id,preferred_categories,updated_at",
                "user_id": f"eq.{user_id}",
                "order": "updated_at.desc",
                "limit": "1",
            },
        ) or []
        if not rows or not rows[0].get("preferred_categories"):
            return None
        row = rows[0]
        return PreferenceRecord(
            user_id=row["user_id"],
            preferred_categories=list(row["preferred_categories"]),
            updated_at=row.get("updated_at") or "",
        )

    async def insert_interaction(self, event: InteractionEvent) -> None:
        await self._request(
            "POST",
            "user_interactions",
            json=[{
                "user_id": event.user_id,
                "news_id": event.news_item_id,
                "interaction_type": event.type.value,
                "created_at": event.created_at,
            }],
            prefer="return=minimal",
        )
