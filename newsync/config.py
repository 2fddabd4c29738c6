"""
Configuration and application state management.
"""

import os
from pathlib import Path
from typing import TYPE_CHECKING

from dotenv import load_dotenv
from fastapi import HTTPException

if TYPE_CHECKING:
    from .gateway import PrimaryStoreGateway
    from .services.sync_service import SyncOrchestrator

# Load environment variables
load_dotenv()


class Config:
    """Application configuration from environment."""
    # News API
    FEED_API_BASE_URL: str = os.getenv(
        "FEED_API_BASE_URL", "https://min-api.cryptocompare.com/data/v2"
    )
    FEED_API_KEY: str = os.getenv("FEED_API_KEY", "")
    FEED_TIMEOUT: int = int(os.getenv("FEED_TIMEOUT", "20"))  # seconds

    # Primary store: "sqlite" (local file) or "postgrest" (remote REST service)
    STORE_BACKEND: str = os.getenv("STORE_BACKEND", "sqlite")
    DB_PATH: Path = Path(os.getenv("DB_PATH", "./data/news.db"))
    POSTGREST_URL: str = os.getenv("POSTGREST_URL", "")
    POSTGREST_KEY: str = os.getenv("POSTGREST_KEY", "")

    # On-device fallback store
    LOCAL_STORE_DIR: Path = Path(os.getenv("LOCAL_STORE_DIR", "./data/local"))
    LOCAL_ITEM_CAP: int = int(os.getenv("LOCAL_ITEM_CAP", "100"))

    # Sync policy
    CACHE_TTL_SECONDS: int = int(os.getenv("CACHE_TTL_SECONDS", "600"))
    REFRESH_INTERVAL_SECONDS: int = int(os.getenv("REFRESH_INTERVAL_SECONDS", "300"))
    MAX_CONNECTION_RETRIES: int = int(os.getenv("MAX_CONNECTION_RETRIES", "3"))

    # Manual sync hits the upstream API; keep it bounded per client
    SYNC_RATE_LIMIT_PER_MINUTE: int = int(os.getenv("SYNC_RATE_LIMIT_PER_MINUTE", "10"))

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    @classmethod
    def has_feed_key(cls) -> bool:
        """Check if a news API key is configured."""
        return bool(cls.FEED_API_KEY)


config = Config()


class AppState:
    """Shared application state."""
    gateway: "PrimaryStoreGateway | None" = None
    sync_service: "SyncOrchestrator | None" = None


state = AppState()


def get_sync_service() -> "SyncOrchestrator":
    """Dependency to get the sync orchestrator instance."""
    if not state.sync_service:
        raise HTTPException(status_code=500, detail="Sync service not initialized")
    return state.sync_service
