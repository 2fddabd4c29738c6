"""
Service layer for business logic.

Services encapsulate the sync rules, keeping routes as thin HTTP adapters.

Usage in routes:
    from ..services import SyncServiceDep

    @router.get("/news")
    async def list_news(service: SyncServiceDep):
        return await service.fetch_news()
"""

from typing import Annotated

from fastapi import Depends

from ..config import get_sync_service
from .sync_service import DEFAULT_CATEGORIES, FeedResult, SyncOrchestrator

__all__ = [
    "SyncOrchestrator",
    "FeedResult",
    "DEFAULT_CATEGORIES",
    "get_sync_service",
    "SyncServiceDep",
]


SyncServiceDep = Annotated[SyncOrchestrator, Depends(get_sync_service)]
