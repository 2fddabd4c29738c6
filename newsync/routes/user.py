"""
Per-user routes: favorites, interactions, preferences.
"""

from fastapi import APIRouter

from ..schemas import (
    ArticleResponse,
    InteractionRequest,
    PreferencesRequest,
    PreferencesResponse,
    SuccessResponse,
    ToggleFavoriteRequest,
    ToggleFavoriteResponse,
)
from ..services import SyncServiceDep
from .deps import UserIdDep

router = APIRouter(tags=["user"])


# ─────────────────────────────────────────────────────────────
# Favorites
# ─────────────────────────────────────────────────────────────

@router.get("/favorites")
async def list_favorites(service: SyncServiceDep, user_id: UserIdDep) -> list[ArticleResponse]:
    """Favorited articles, most recent first."""
    articles = await service.get_favorites(user_id=user_id)
    return [ArticleResponse.from_article(a) for a in articles]


@router.post("/favorites/{news_item_id}/toggle")
async def toggle_favorite(
    news_item_id: str,
    request: ToggleFavoriteRequest,
    service: SyncServiceDep,
    user_id: UserIdDep,
) -> ToggleFavoriteResponse:
    """Flip the favorite status the client currently shows."""
    success = await service.toggle_favorite(
        news_item_id, request.current_status, user_id=user_id
    )
    is_favorite = (not request.current_status) if success else request.current_status
    return ToggleFavoriteResponse(success=success, is_favorite=is_favorite)


# ─────────────────────────────────────────────────────────────
# Interactions
# ─────────────────────────────────────────────────────────────

@router.post("/interactions")
async def track_interaction(
    request: InteractionRequest,
    service: SyncServiceDep,
    user_id: UserIdDep,
) -> SuccessResponse:
    """Append an interaction event."""
    success = await service.track_interaction(
        request.news_item_id, request.type, user_id=user_id
    )
    return SuccessResponse(success=success)


# ─────────────────────────────────────────────────────────────
# Preferences
# ─────────────────────────────────────────────────────────────

@router.get("/preferences")
async def get_preferences(service: SyncServiceDep, user_id: UserIdDep) -> PreferencesResponse:
    categories = await service.get_preferences(user_id=user_id)
    return PreferencesResponse(categories=categories)


@router.put("/preferences")
async def save_preferences(
    request: PreferencesRequest,
    service: SyncServiceDep,
    user_id: UserIdDep,
) -> SuccessResponse:
    success = await service.save_preferences(request.categories, user_id=user_id)
    return SuccessResponse(success=success)
