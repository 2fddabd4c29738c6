"""
News Sync API Server

FastAPI application exposing the sync layer to the presentation client:
- Feed, search and categories
- Favorites, interactions and preferences
- Manual sync
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from . import __version__
from .cache import MemoryCache
from .config import Config, config, state
from .feed_client import RemoteFeedClient
from .gateway import PrimaryStoreGateway
from .local_store import LocalFallbackStore
from .rate_limit import setup_rate_limiting
from .routes import misc_router, news_router, user_router
from .services import SyncOrchestrator
from .storage import FileKeyValueStore
from .stores import create_store

logger = logging.getLogger(__name__)


def build_sync_service(cfg: Config = config) -> SyncOrchestrator:
    """Wire the store tiers, gateway and orchestrator from configuration."""
    store = create_store(
        cfg.STORE_BACKEND,
        db_path=cfg.DB_PATH,
        base_url=cfg.POSTGREST_URL,
        api_key=cfg.POSTGREST_KEY,
    )
    local = LocalFallbackStore(
        FileKeyValueStore(cfg.LOCAL_STORE_DIR),
        max_items=cfg.LOCAL_ITEM_CAP,
    )
    gateway = PrimaryStoreGateway(
        store=store,
        local=local,
        cache=MemoryCache(ttl_seconds=cfg.CACHE_TTL_SECONDS),
        max_retries=cfg.MAX_CONNECTION_RETRIES,
    )
    feed_client = RemoteFeedClient(
        base_url=cfg.FEED_API_BASE_URL,
        api_key=cfg.FEED_API_KEY,
        timeout=cfg.FEED_TIMEOUT,
    )
    return SyncOrchestrator(
        gateway=gateway,
        feed_client=feed_client,
        refresh_interval=cfg.REFRESH_INTERVAL_SECONDS,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize and cleanup application resources."""
    # Startup - skip if already initialized (e.g., by tests)
    if state.sync_service is None:
        logging.basicConfig(level=config.LOG_LEVEL.upper())
        state.sync_service = build_sync_service(config)
        state.gateway = state.sync_service.gateway
        logger.info(f"Sync service initialized (store: {state.gateway.store.name})")

        if not config.has_feed_key():
            logger.warning("FEED_API_KEY not set; the news API may reject requests")

    yield

    # Shutdown
    if state.gateway is not None:
        try:
            await state.gateway.store.close()
        except Exception as e:
            logger.warning(f"Error closing primary store: {e}")


app = FastAPI(
    title="News Sync API",
    version=__version__,
    lifespan=lifespan
)

setup_rate_limiting(app)

# Include routers
app.include_router(misc_router)
app.include_router(news_router)
app.include_router(user_router)
