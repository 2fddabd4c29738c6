"""
Pydantic models for API request/response validation.
"""

from pydantic import BaseModel, Field

from .models import AnnotatedArticle, InteractionType


# ─────────────────────────────────────────────────────────────
# Article Schemas
# ─────────────────────────────────────────────────────────────

class ReactionsResponse(BaseModel):
    bull: int
    bear: int
    neutral: int


class ArticleResponse(BaseModel):
    """Annotated news item for feed and search views."""
    id: str
    title: str
    body: str
    url: str
    image_url: str | None = None
    source_name: str
    published_on: int
    categories: list[str]
    is_favorite: bool
    reactions: ReactionsResponse

    @classmethod
    def from_article(cls, article: AnnotatedArticle) -> "ArticleResponse":
        item = article.item
        return cls(
            id=item.id,
            title=item.title,
            body=item.body,
            url=item.url,
            image_url=item.image_url,
            source_name=item.source_name,
            published_on=item.published_on,
            categories=item.category_list(),
            is_favorite=article.is_favorite,
            reactions=ReactionsResponse(
                bull=article.reactions.bull,
                bear=article.reactions.bear,
                neutral=article.reactions.neutral,
            ),
        )


class FeedResponse(BaseModel):
    """Feed page plus the tier that served it."""
    articles: list[ArticleResponse]
    tier: str
    refreshed: bool
    degraded: bool


# ─────────────────────────────────────────────────────────────
# Per-user Schemas
# ─────────────────────────────────────────────────────────────

class ToggleFavoriteRequest(BaseModel):
    current_status: bool


class ToggleFavoriteResponse(BaseModel):
    success: bool
    is_favorite: bool


class InteractionRequest(BaseModel):
    news_item_id: str = Field(min_length=1)
    type: InteractionType


class PreferencesRequest(BaseModel):
    categories: list[str]


class PreferencesResponse(BaseModel):
    categories: list[str]


class SuccessResponse(BaseModel):
    success: bool
