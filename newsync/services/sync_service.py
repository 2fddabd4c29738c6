"""
Sync service: the read/write contract consumed by the presentation layer.

Decides when to pull fresh items from the news API versus serving what the
gateway already has, and annotates items with per-user state.
"""

import asyncio
import logging
import random
import time
from dataclasses import dataclass, field
from typing import Callable

from ..exceptions import UpstreamError
from ..feed_client import RemoteFeedClient
from ..gateway import PrimaryStoreGateway
from ..models import (
    AnnotatedArticle,
    InteractionType,
    NewsItem,
    ReactionCounts,
    Tier,
)

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES = [
    "Bitcoin", "Ethereum", "Altcoins", "DeFi", "NFT", "Regulation", "Mining", "Trading",
]


@dataclass
class FeedResult:
    """A feed read plus how it was served."""
    articles: list[AnnotatedArticle]
    tier: Tier
    refreshed: bool = False
    upstream_error: str | None = None
    degraded: bool = False


@dataclass
class _Refresh:
    items: list[NewsItem] = field(default_factory=list)
    tier: Tier = Tier.NONE
    degraded: bool = False


class SyncOrchestrator:
    """Service for feed reads, search, favorites and interactions."""

    FEED_LIMIT = 100
    SEARCH_LIMIT = 100
    SYNC_LIMIT = 50
    # Reader is near the end of what was loaded; pull fresh content
    SMART_REFRESH_THRESHOLD = 80

    def __init__(
        self,
        gateway: PrimaryStoreGateway,
        feed_client: RemoteFeedClient,
        refresh_interval: int = 300,
        clock: Callable[[], float] = time.time,
        rng: random.Random | None = None,
    ):
        self.gateway = gateway
        self.feed_client = feed_client
        self.refresh_interval = refresh_interval
        self._clock = clock
        self._rng = rng or random.Random()

    @property
    def state(self):
        return self.gateway.state

    # ─────────────────────────────────────────────────────────────
    # Feed
    # ─────────────────────────────────────────────────────────────

    def should_refresh(self, force_refresh: bool = False, current_article_count: int | None = None) -> bool:
        if force_refresh:
            return True
        if current_article_count is not None and current_article_count >= self.SMART_REFRESH_THRESHOLD:
            logger.info("Reader reached the end of loaded articles, forcing fresh content")
            return True
        return self._clock() - self.state.last_fetch_at > self.refresh_interval

    async def fetch_news(
        self,
        categories: list[str] | None = None,
        force_refresh: bool = False,
        current_article_count: int | None = None,
        user_id: str | None = None,
    ) -> list[AnnotatedArticle]:
        """Annotated feed, refreshed from the news API when empty or stale."""
        result = await self.fetch_news_result(
            categories=categories,
            force_refresh=force_refresh,
            current_article_count=current_article_count,
            user_id=user_id,
        )
        return result.articles

    async def fetch_news_result(
        self,
        categories: list[str] | None = None,
        force_refresh: bool = False,
        current_article_count: int | None = None,
        user_id: str | None = None,
    ) -> FeedResult:
        """
        Same as fetch_news, but reports which tier served the items.

        A news API failure never propagates; the call degrades to whatever
        the first store read returned (possibly nothing).
        """
        should_refresh = self.should_refresh(force_refresh, current_article_count)

        stored = await self.gateway.get_news(self.FEED_LIMIT, categories)
        items, tier, degraded = stored.value, stored.tier, stored.degraded
        refreshed = False
        upstream_error = None

        if not items or should_refresh:
            try:
                fresh = await self._refresh(self.FEED_LIMIT, categories)
            except UpstreamError as e:
                logger.warning(f"News API fetch failed, serving stored news: {e}")
                upstream_error = str(e)
            else:
                items, tier, degraded = fresh.items, fresh.tier, fresh.degraded
                refreshed = True

        articles = await self.enrich(items, user_id=user_id)
        return FeedResult(
            articles=articles,
            tier=tier,
            refreshed=refreshed,
            upstream_error=upstream_error,
            degraded=degraded,
        )

    async def _refresh(self, limit: int, categories: list[str] | None) -> _Refresh:
        """Fetch from the news API, write through, and re-read from the store."""
        logger.info("Fetching fresh news from API...")
        fetched = await self.feed_client.fetch(limit)
        self.state.last_fetch_at = self._clock()

        await self.gateway.save_news_items(fetched)

        # Read the store directly so the items just written are visible
        reread = await self.gateway.get_news(limit, categories, refresh=True)
        return _Refresh(items=reread.value, tier=reread.tier, degraded=reread.degraded)

    async def enrich(
        self,
        items: list[NewsItem],
        user_id: str | None = None,
    ) -> list[AnnotatedArticle]:
        """Annotate items with favorite status, looked up concurrently."""
        if not items:
            return []

        uid = await self.gateway.resolve_user_id(user_id)
        lookups = await asyncio.gather(
            *(self.gateway.is_favorite(item.id, user_id=uid) for item in items)
        )
        return [
            AnnotatedArticle(
                item=item,
                is_favorite=lookup.value,
                reactions=self._synthetic_reactions(),
            )
            for item, lookup in zip(items, lookups)
        ]

    def _synthetic_reactions(self) -> ReactionCounts:
        # Display-only placeholder counts; there is no reaction aggregation backend
        return ReactionCounts(
            bull=self._rng.randrange(100),
            bear=self._rng.randrange(100),
            neutral=self._rng.randrange(100),
        )

    # ─────────────────────────────────────────────────────────────
    # Search & categories
    # ─────────────────────────────────────────────────────────────

    async def search_news(
        self,
        query: str,
        categories: list[str] | None = None,
        user_id: str | None = None,
    ) -> list[AnnotatedArticle]:
        """Case-insensitive substring search over title, body, source and tags."""
        term = query.strip().lower()
        if not term:
            return []

        result = await self.gateway.get_news(self.SEARCH_LIMIT, categories)
        matches = [
            item for item in result.value
            if term in item.title.lower()
            or term in item.body.lower()
            or term in item.source_name.lower()
            or term in item.categories.lower()
        ]
        return await self.enrich(matches, user_id=user_id)

    async def get_available_categories(self) -> list[str]:
        result = await self.gateway.get_available_categories()
        if not result.value:
            return list(DEFAULT_CATEGORIES)
        return result.value

    # ─────────────────────────────────────────────────────────────
    # Per-user state
    # ─────────────────────────────────────────────────────────────

    async def toggle_favorite(
        self,
        news_item_id: str,
        current_status: bool,
        user_id: str | None = None,
    ) -> bool:
        """Remove if currently a favorite, otherwise add. Returns success."""
        if current_status:
            result = await self.gateway.remove_favorite(news_item_id, user_id=user_id)
        else:
            result = await self.gateway.add_favorite(news_item_id, user_id=user_id)
        return result.value

    async def get_favorites(self, user_id: str | None = None) -> list[AnnotatedArticle]:
        result = await self.gateway.get_favorites(user_id=user_id)
        return [
            AnnotatedArticle(item=item, is_favorite=True, reactions=self._synthetic_reactions())
            for item in result.value
        ]

    async def track_interaction(
        self,
        news_item_id: str,
        interaction_type: InteractionType | str,
        user_id: str | None = None,
    ) -> bool:
        result = await self.gateway.track_interaction(
            news_item_id, InteractionType(interaction_type), user_id=user_id
        )
        return result.value

    async def get_preferences(self, user_id: str | None = None) -> list[str]:
        result = await self.gateway.get_preferences(user_id=user_id)
        return result.value

    async def save_preferences(self, categories: list[str], user_id: str | None = None) -> bool:
        result = await self.gateway.save_preferences(categories, user_id=user_id)
        return result.value

    # ─────────────────────────────────────────────────────────────
    # Maintenance
    # ─────────────────────────────────────────────────────────────

    async def sync_news(self, limit: int | None = None) -> bool:
        """
        Manually pull the latest news into the store.

        A user-initiated sync is also the retry trigger for an open circuit.
        """
        logger.info("Starting manual news sync...")
        await self.gateway.ensure_connection(force=True)

        try:
            fetched = await self.feed_client.fetch(limit or self.SYNC_LIMIT)
        except UpstreamError as e:
            logger.error(f"Error syncing news: {e}")
            return False

        result = await self.gateway.save_news_items(fetched)
        if result.value:
            self.state.last_fetch_at = self._clock()
            logger.info(f"News sync completed ({len(fetched)} items, tier={result.tier.value})")
        return result.value

    async def clear_old_news(self, days_to_keep: int = 30) -> bool:
        result = await self.gateway.clear_old_news(days_to_keep)
        return result.value
