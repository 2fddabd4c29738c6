"""
News routes: feed, search, manual sync, categories.
"""

from typing import Annotated

from fastapi import APIRouter, Query, Request

from ..rate_limit import get_sync_rate_limit, limiter
from ..schemas import ArticleResponse, FeedResponse, SuccessResponse
from ..services import SyncServiceDep
from .deps import UserIdDep

router = APIRouter(tags=["news"])


@router.get("/news")
async def get_feed(
    service: SyncServiceDep,
    user_id: UserIdDep,
    categories: Annotated[list[str] | None, Query()] = None,
    force_refresh: bool = False,
    current_article_count: Annotated[int | None, Query(ge=0)] = None,
) -> FeedResponse:
    """Annotated feed, refreshed from the news API when empty or stale."""
    result = await service.fetch_news_result(
        categories=categories,
        force_refresh=force_refresh,
        current_article_count=current_article_count,
        user_id=user_id,
    )
    return FeedResponse(
        articles=[ArticleResponse.from_article(a) for a in result.articles],
        tier=result.tier.value,
        refreshed=result.refreshed,
        degraded=result.degraded,
    )


@router.get("/news/search")
async def search_news(
    q: str,
    service: SyncServiceDep,
    user_id: UserIdDep,
    categories: Annotated[list[str] | None, Query()] = None,
) -> list[ArticleResponse]:
    """Substring search across title, body, source and categories."""
    articles = await service.search_news(q, categories=categories, user_id=user_id)
    return [ArticleResponse.from_article(a) for a in articles]


@router.post("/news/sync")
@limiter.limit(get_sync_rate_limit())
async def sync_news(
    request: Request,
    service: SyncServiceDep,
    limit: Annotated[int, Query(ge=1, le=100)] = 50,
) -> SuccessResponse:
    """Pull the latest items from the news API into the store."""
    success = await service.sync_news(limit)
    return SuccessResponse(success=success)


@router.get("/categories")
async def get_categories(service: SyncServiceDep) -> list[str]:
    """Distinct categories across stored items."""
    return await service.get_available_categories()
