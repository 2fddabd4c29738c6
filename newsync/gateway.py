"""
Primary Store Gateway - tiered access to news items and per-user state.

Read path:  in-memory cache -> primary store -> local fallback store
Write path: primary store -> local fallback store

Handles:
- Connection health with a probe-count circuit breaker
- Read-through TTL cache for news queries, with concurrent misses coalesced
- Write-through upserts and per-user mutations with local fallback
- Current user resolution (authenticated id, else a persisted anonymous id)

Every operation returns a StoreResult naming the tier that served it.
Failures of the primary store never propagate past this class.
"""

import asyncio
import logging
import secrets
import string
import time
from datetime import datetime
from typing import Awaitable, Callable

from .cache import MemoryCache, news_cache_key
from .exceptions import DuplicateConstraint, FallbackIOError, StoreUnavailable
from .local_store import LocalFallbackStore
from .models import (
    InteractionEvent,
    InteractionType,
    NewsItem,
    ResultStatus,
    StoreResult,
    SyncState,
    Tier,
    split_categories,
)
from .stores.base import RelationalStore

logger = logging.getLogger(__name__)

IdentityProvider = Callable[[], Awaitable[str | None]]

ANONYMOUS_USER_KEY = "anonymousUserId"
DEFAULT_PREFERENCES = ["All", "Bitcoin", "Ethereum", "Altcoins"]

_BASE36 = string.digits + string.ascii_lowercase


def mint_anonymous_id() -> str:
    return "anon-" + "".join(secrets.choice(_BASE36) for _ in range(9))


def filter_local_news(
    items: list[NewsItem],
    limit: int,
    categories: list[str] | None = None,
) -> list[NewsItem]:
    """
    Filter, sort and truncate items from the fallback store.

    A category matches as a case-insensitive substring of the pipe-delimited
    tag string, and an item matches if ANY requested category matches. This
    is looser than the primary store's exact tag containment.
    """
    if categories:
        wanted = [cat.lower() for cat in categories]
        items = [
            item for item in items
            if any(cat in item.categories.lower() for cat in wanted)
        ]
    return sorted(items, key=lambda item: item.published_on, reverse=True)[:limit]


class PrimaryStoreGateway:
    """Tiered access to the primary store with local fallback."""

    def __init__(
        self,
        store: RelationalStore,
        local: LocalFallbackStore,
        identity_provider: IdentityProvider | None = None,
        cache: MemoryCache | None = None,
        state: SyncState | None = None,
        max_retries: int = 3,
    ):
        self.store = store
        self.local = local
        self.identity_provider = identity_provider
        self.cache = cache or MemoryCache()
        self.state = state or SyncState()
        self.max_retries = max_retries
        self._inflight: dict[str, asyncio.Future] = {}
        self._anonymous_id: str | None = None

    @property
    def health(self):
        return self.state.health

    # ─────────────────────────────────────────────────────────────
    # Connection health
    # ─────────────────────────────────────────────────────────────

    async def ensure_connection(self, force: bool = False) -> bool:
        """
        Return whether the primary store is usable, probing at most once.

        Once max_retries consecutive probes have failed the circuit is open
        and no probe is issued until a caller passes force=True.
        """
        health = self.state.health
        if health.is_connected:
            return True

        if force:
            health.consecutive_failures = 0

        if health.circuit_open(self.max_retries):
            logger.warning("Max primary store connection retries reached, using fallback")
            return False

        logger.info(
            f"Probing {self.store.name} store "
            f"(attempt {health.consecutive_failures + 1}/{self.max_retries})"
        )
        try:
            await self.store.probe()
        except StoreUnavailable as e:
            health.record_failure()
            logger.error(f"Primary store connection test failed: {e}")
            return False

        health.record_success()
        logger.info("Primary store connection successful")
        return True

    def reset_connection(self):
        """Close the circuit without probing; the next call probes again."""
        self.state.health.is_connected = False
        self.state.health.consecutive_failures = 0

    def _mark_query_failure(self, operation: str, error: Exception):
        """A query failed after a good probe: re-probe next time, without tripping the circuit."""
        self.state.health.is_connected = False
        logger.error(f"Primary store {operation} failed, falling back to local storage: {error}")

    @staticmethod
    def _fallback_result(ok: bool, error: str | None) -> StoreResult[bool]:
        return StoreResult(
            ok,
            Tier.FALLBACK,
            ResultStatus.DEGRADED if ok else ResultStatus.FAILED,
            error,
        )

    # ─────────────────────────────────────────────────────────────
    # User identity
    # ─────────────────────────────────────────────────────────────

    async def resolve_user_id(self, user_id: str | None = None) -> str:
        """Explicit id, else the authenticated id, else a stable anonymous id."""
        if user_id:
            return user_id

        if self.identity_provider is not None:
            authenticated = await self.identity_provider()
            if authenticated:
                return authenticated

        return await self._get_anonymous_id()

    async def _get_anonymous_id(self) -> str:
        if self._anonymous_id:
            return self._anonymous_id

        kv = self.local.kv
        try:
            stored = await kv.get(ANONYMOUS_USER_KEY)
        except FallbackIOError as e:
            logger.error(f"Error reading anonymous user id: {e}")
            stored = None

        if not stored:
            stored = mint_anonymous_id()
            try:
                await kv.set(ANONYMOUS_USER_KEY, stored)
            except FallbackIOError as e:
                # Still stable for this process
                logger.error(f"Error persisting anonymous user id: {e}")

        self._anonymous_id = stored
        return stored

    # ─────────────────────────────────────────────────────────────
    # News items
    # ─────────────────────────────────────────────────────────────

    async def get_news(
        self,
        limit: int = 50,
        categories: list[str] | None = None,
        refresh: bool = False,
    ) -> StoreResult[list[NewsItem]]:
        """
        Read news items, newest first.

        Args:
            limit: Maximum number of items
            categories: Optional category filter
            refresh: Skip the cache lookup (the result still populates it)
        """
        key = news_cache_key(limit, categories)

        if refresh:
            return await self._load_news(key, limit, categories)

        cached = self.cache.get(key)
        if cached is not None:
            logger.info(f"Returning cached news for {key}")
            return StoreResult(list(cached), Tier.CACHE)

        # Concurrent misses for the same key share one query
        pending = self._inflight.get(key)
        if pending is None:
            pending = asyncio.ensure_future(self._load_news(key, limit, categories))
            self._inflight[key] = pending
            pending.add_done_callback(lambda _: self._inflight.pop(key, None))

        # One caller's cancellation must not cancel the shared query
        result = await asyncio.shield(pending)
        return StoreResult(list(result.value), result.tier, result.status, result.error)

    async def _load_news(
        self,
        key: str,
        limit: int,
        categories: list[str] | None,
    ) -> StoreResult[list[NewsItem]]:
        error = None
        if await self.ensure_connection():
            try:
                items = await self.store.select_news(limit, categories or None)
            except StoreUnavailable as e:
                self._mark_query_failure("news query", e)
                error = str(e)
            else:
                self.cache.set(key, items)
                logger.info(f"Retrieved {len(items)} news items from primary store")
                return StoreResult(items, Tier.REMOTE)
        else:
            error = "primary store unavailable"

        local_items = await self.local.get_items()
        items = filter_local_news(local_items, limit, categories)
        logger.info(f"Retrieved {len(items)} news items from local storage")
        return StoreResult(items, Tier.FALLBACK, ResultStatus.DEGRADED, error)

    async def save_news_items(self, items: list[NewsItem]) -> StoreResult[bool]:
        """Upsert items by id into the primary store, else the local store."""
        if not items:
            return StoreResult(True, Tier.NONE)

        error = "primary store unavailable"
        if await self.ensure_connection():
            try:
                await self.store.upsert_news(items)
            except StoreUnavailable as e:
                self._mark_query_failure("news upsert", e)
                error = str(e)
            else:
                logger.info(f"Upserted {len(items)} news items to primary store")
                return StoreResult(True, Tier.REMOTE)

        logger.warning("Saving news items to local storage as fallback")
        saved = await self.local.save_items(items)
        return self._fallback_result(saved, error)

    async def get_available_categories(self) -> StoreResult[list[str]]:
        """Distinct tags across stored items, sorted alphabetically."""
        error = "primary store unavailable"
        if await self.ensure_connection():
            try:
                strings = await self.store.select_categories()
            except StoreUnavailable as e:
                self._mark_query_failure("category query", e)
                error = str(e)
            else:
                return StoreResult(_distinct_tags(strings), Tier.REMOTE)

        local_items = await self.local.get_items()
        tags = _distinct_tags([item.categories for item in local_items])
        return StoreResult(tags, Tier.FALLBACK, ResultStatus.DEGRADED, error)

    async def clear_old_news(self, days_to_keep: int = 30) -> StoreResult[bool]:
        """Delete items published more than days_to_keep days ago."""
        cutoff = int(time.time()) - days_to_keep * 24 * 60 * 60
        error = "primary store unavailable"
        if await self.ensure_connection():
            try:
                await self.store.delete_news_before(cutoff)
            except StoreUnavailable as e:
                self._mark_query_failure("news cleanup", e)
                error = str(e)
            else:
                logger.info(f"Cleared news older than {days_to_keep} days")
                return StoreResult(True, Tier.REMOTE)

        cleared = await self.local.clear_old_items(days_to_keep)
        return self._fallback_result(cleared, error)

    def clear_cache(self):
        self.cache.clear()

    # ─────────────────────────────────────────────────────────────
    # Favorites
    # ─────────────────────────────────────────────────────────────

    async def add_favorite(self, news_item_id: str, user_id: str | None = None) -> StoreResult[bool]:
        uid = await self.resolve_user_id(user_id)
        error = "primary store unavailable"
        if await self.ensure_connection():
            try:
                await self.store.insert_favorite(uid, news_item_id)
            except DuplicateConstraint:
                logger.info(f"Item {news_item_id} already in favorites")
                return StoreResult(True, Tier.REMOTE)
            except StoreUnavailable as e:
                self._mark_query_failure("favorite insert", e)
                error = str(e)
            else:
                logger.info(f"Added {news_item_id} to favorites")
                return StoreResult(True, Tier.REMOTE)

        added = await self.local.add_favorite(uid, news_item_id)
        return self._fallback_result(added, error)

    async def remove_favorite(self, news_item_id: str, user_id: str | None = None) -> StoreResult[bool]:
        uid = await self.resolve_user_id(user_id)
        error = "primary store unavailable"
        if await self.ensure_connection():
            try:
                await self.store.delete_favorite(uid, news_item_id)
            except StoreUnavailable as e:
                self._mark_query_failure("favorite delete", e)
                error = str(e)
            else:
                logger.info(f"Removed {news_item_id} from favorites")
                return StoreResult(True, Tier.REMOTE)

        removed = await self.local.remove_favorite(uid, news_item_id)
        return self._fallback_result(removed, error)

    async def is_favorite(self, news_item_id: str, user_id: str | None = None) -> StoreResult[bool]:
        uid = await self.resolve_user_id(user_id)
        error = "primary store unavailable"
        if await self.ensure_connection():
            try:
                exists = await self.store.favorite_exists(uid, news_item_id)
            except StoreUnavailable as e:
                self._mark_query_failure("favorite lookup", e)
                error = str(e)
            else:
                return StoreResult(exists, Tier.REMOTE)

        exists = await self.local.is_favorite(uid, news_item_id)
        return StoreResult(exists, Tier.FALLBACK, ResultStatus.DEGRADED, error)

    async def get_favorite_ids(self, user_id: str | None = None) -> StoreResult[list[str]]:
        uid = await self.resolve_user_id(user_id)
        error = "primary store unavailable"
        if await self.ensure_connection():
            try:
                ids = await self.store.select_favorite_ids(uid)
            except StoreUnavailable as e:
                self._mark_query_failure("favorite id query", e)
                error = str(e)
            else:
                return StoreResult(ids, Tier.REMOTE)

        favorites = await self.local.list_favorites(uid)
        ids = [f.news_item_id for f in favorites]
        return StoreResult(ids, Tier.FALLBACK, ResultStatus.DEGRADED, error)

    async def get_favorites(self, user_id: str | None = None) -> StoreResult[list[NewsItem]]:
        """Favorited news items, most recently favorited first."""
        uid = await self.resolve_user_id(user_id)
        error = "primary store unavailable"
        if await self.ensure_connection():
            try:
                items = await self.store.select_favorite_items(uid)
            except StoreUnavailable as e:
                self._mark_query_failure("favorites query", e)
                error = str(e)
            else:
                return StoreResult(items, Tier.REMOTE)

        favorites = await self.local.list_favorites(uid)
        by_id = {item.id: item for item in await self.local.get_items()}
        items = [
            by_id[f.news_item_id]
            for f in reversed(favorites)
            if f.news_item_id in by_id
        ]
        return StoreResult(items, Tier.FALLBACK, ResultStatus.DEGRADED, error)

    # ─────────────────────────────────────────────────────────────
    # Preferences & interactions
    # ─────────────────────────────────────────────────────────────

    async def save_preferences(self, categories: list[str], user_id: str | None = None) -> StoreResult[bool]:
        uid = await self.resolve_user_id(user_id)
        error = "primary store unavailable"
        if await self.ensure_connection():
            try:
                await self.store.upsert_preferences(uid, categories)
            except StoreUnavailable as e:
                self._mark_query_failure("preferences upsert", e)
                error = str(e)
            else:
                logger.info(f"User preferences saved for {uid}")
                return StoreResult(True, Tier.REMOTE)

        saved = await self.local.save_preferences(categories)
        return self._fallback_result(saved, error)

    async def get_preferences(self, user_id: str | None = None) -> StoreResult[list[str]]:
        """Preferred categories; defaults when none are stored."""
        uid = await self.resolve_user_id(user_id)
        error = "primary store unavailable"
        if await self.ensure_connection():
            try:
                record = await self.store.select_preferences(uid)
            except StoreUnavailable as e:
                self._mark_query_failure("preferences query", e)
                error = str(e)
            else:
                if record is None or not record.preferred_categories:
                    logger.info("No user preferences found, using defaults")
                    return StoreResult(list(DEFAULT_PREFERENCES), Tier.REMOTE)
                return StoreResult(record.preferred_categories, Tier.REMOTE)

        stored = await self.local.get_preferences()
        if stored is None:
            stored = list(DEFAULT_PREFERENCES)
        return StoreResult(stored, Tier.FALLBACK, ResultStatus.DEGRADED, error)

    async def track_interaction(
        self,
        news_item_id: str,
        interaction_type: InteractionType,
        user_id: str | None = None,
    ) -> StoreResult[bool]:
        uid = await self.resolve_user_id(user_id)
        event = InteractionEvent(
            user_id=uid,
            news_item_id=news_item_id,
            type=InteractionType(interaction_type),
            created_at=datetime.now().isoformat(),
        )

        error = "primary store unavailable"
        if await self.ensure_connection():
            try:
                await self.store.insert_interaction(event)
            except StoreUnavailable as e:
                self._mark_query_failure("interaction insert", e)
                error = str(e)
            else:
                return StoreResult(True, Tier.REMOTE)

        appended = await self.local.append_interaction(event)
        return self._fallback_result(appended, error)


def _distinct_tags(category_strings: list[str]) -> list[str]:
    tags: set[str] = set()
    for categories in category_strings:
        tags.update(split_categories(categories))
    return sorted(tags)
