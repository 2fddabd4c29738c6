"""
Remote Feed Client - Fetch news items from the news aggregation API.

Handles:
- One GET per fetch, parameterized by limit and API key
- Envelope validation ({Data, Type?, Message?})
- Structural mapping of upstream items to NewsItem, dropping malformed items

No retries happen here; retry policy belongs to the caller.
"""

import asyncio
import logging
from typing import Any

import aiohttp

from .exceptions import UpstreamError
from .models import NewsItem

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("id", "title", "url", "published_on")


def parse_news_item(raw: Any) -> NewsItem | None:
    """Map one upstream item to a NewsItem, or None if it is malformed."""
    if not isinstance(raw, dict):
        return None
    if any(raw.get(name) in (None, "") for name in REQUIRED_FIELDS):
        return None

    try:
        published_on = int(raw["published_on"])
    except (TypeError, ValueError):
        return None

    source_info = raw.get("source_info")
    source_name = None
    if isinstance(source_info, dict):
        source_name = source_info.get("name")

    return NewsItem(
        id=str(raw["id"]),
        title=str(raw["title"]),
        body=str(raw.get("body") or ""),
        url=str(raw["url"]),
        image_url=raw.get("imageurl") or None,
        source_name=str(source_name or "Unknown"),
        published_on=published_on,
        categories=str(raw.get("categories") or ""),
    )


def parse_envelope(data: Any) -> list[NewsItem]:
    """
    Validate the response envelope and map its items.

    Raises:
        UpstreamError: On an application-level error or malformed envelope
    """
    if not isinstance(data, dict):
        raise UpstreamError("Invalid response format")

    # Type 1 with a message is an error even on HTTP 200
    if data.get("Type") == 1 and data.get("Message"):
        raise UpstreamError(str(data["Message"]))

    items = data.get("Data")
    if not isinstance(items, list):
        raise UpstreamError("Invalid response format")

    parsed = []
    dropped = 0
    for raw in items:
        item = parse_news_item(raw)
        if item is None:
            dropped += 1
            continue
        parsed.append(item)

    if dropped:
        logger.warning(f"Dropped {dropped} malformed news items from upstream response")
    return parsed


class RemoteFeedClient:
    """Fetches bounded lists of news items from the news API."""

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout: int = 20,
        lang: str = "EN",
        session: aiohttp.ClientSession | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.lang = lang
        self._session = session
        self.headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    @property
    def news_url(self) -> str:
        return f"{self.base_url}/news/"

    def _redact(self, text: str) -> str:
        return text.replace(self.api_key, "***") if self.api_key else text

    async def fetch(self, limit: int = 50) -> list[NewsItem]:
        """
        Fetch the latest news items.

        Args:
            limit: Maximum number of items to request

        Returns:
            List of well-formed NewsItems (possibly fewer than limit)

        Raises:
            UpstreamError: On transport failure, non-2xx status, or bad envelope
        """
        params = {"lang": self.lang, "limit": str(limit)}
        if self.api_key:
            params["api_key"] = self.api_key

        logger.info(f"Fetching news from {self.news_url} (limit={limit})")

        try:
            if self._session is not None:
                data = await self._get_json(self._session, params)
            else:
                async with aiohttp.ClientSession(headers=self.headers) as session:
                    data = await self._get_json(session, params)
        except UpstreamError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise UpstreamError(self._redact(f"News API request failed: {e}")) from e

        items = parse_envelope(data)
        logger.info(f"Fetched {len(items)} news items")
        return items

    async def _get_json(self, session: aiohttp.ClientSession, params: dict) -> Any:
        async with session.get(
            self.news_url,
            params=params,
            timeout=aiohttp.ClientTimeout(total=self.timeout),
        ) as resp:
            if resp.status < 200 or resp.status >= 300:
                raise UpstreamError(
                    f"News API returned HTTP {resp.status}", status=resp.status
                )
            try:
                return await resp.json(content_type=None)
            except ValueError as e:
                raise UpstreamError("News API returned a non-JSON body") from e

    async def test_connection(self) -> bool:
        """Check that the API answers with at least one item. Never raises."""
        try:
            items = await self.fetch(1)
            return len(items) > 0
        except UpstreamError as e:
            logger.error(f"News API connection test failed: {e}")
            return False
