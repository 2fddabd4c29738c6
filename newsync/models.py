"""
Domain models - dataclasses for news items, per-user records and sync state.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")


def split_categories(categories: str | None) -> list[str]:
    """Split a pipe-delimited tag string into trimmed, non-empty tags."""
    if not categories:
        return []
    return [cat.strip() for cat in categories.split("|") if cat.strip()]


@dataclass(frozen=True)
class NewsItem:
    id: str
    title: str
    body: str
    url: str
    source_name: str
    published_on: int  # epoch seconds
    categories: str = ""  # pipe-delimited, e.g. "BTC|Mining"
    image_url: str | None = None

    def category_list(self) -> list[str]:
        return split_categories(self.categories)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "body": self.body,
            "url": self.url,
            "image_url": self.image_url,
            "source_name": self.source_name,
            "published_on": self.published_on,
            "categories": self.categories,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "NewsItem":
        return cls(
            id=str(data["id"]),
            title=data["title"],
            body=data.get("body") or "",
            url=data["url"],
            image_url=data.get("image_url"),
            source_name=data.get("source_name") or "Unknown",
            published_on=int(data["published_on"]),
            categories=data.get("categories") or "",
        )


@dataclass(frozen=True)
class ReactionCounts:
    """Synthetic reaction counts for display. Not backed by any aggregation."""
    bull: int = 0
    bear: int = 0
    neutral: int = 0


@dataclass
class AnnotatedArticle:
    """A NewsItem enriched with per-user annotations. Never persisted."""
    item: NewsItem
    is_favorite: bool = False
    reactions: ReactionCounts = field(default_factory=ReactionCounts)

    @property
    def id(self) -> str:
        return self.item.id


@dataclass
class FavoriteRecord:
    user_id: str
    news_item_id: str
    created_at: str  # ISO timestamp


@dataclass
class PreferenceRecord:
    user_id: str
    preferred_categories: list[str]
    updated_at: str


class InteractionType(str, Enum):
    VIEW = "view"
    LIKE = "like"
    DISLIKE = "dislike"
    SHARE = "share"
    FAVORITE = "favorite"


@dataclass
class InteractionEvent:
    user_id: str
    news_item_id: str
    type: InteractionType
    created_at: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "news_item_id": self.news_item_id,
            "type": self.type.value,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "InteractionEvent":
        return cls(
            user_id=data["user_id"],
            news_item_id=data["news_item_id"],
            type=InteractionType(data["type"]),
            created_at=data["created_at"],
        )


# ─────────────────────────────────────────────────────────────
# Sync state
# ─────────────────────────────────────────────────────────────

@dataclass
class ConnectionHealth:
    """Primary store reachability as seen by the last probes."""
    is_connected: bool = False
    consecutive_failures: int = 0

    def record_success(self):
        self.is_connected = True
        self.consecutive_failures = 0

    def record_failure(self):
        self.is_connected = False
        self.consecutive_failures += 1

    def circuit_open(self, max_failures: int) -> bool:
        return not self.is_connected and self.consecutive_failures >= max_failures


@dataclass
class SyncState:
    """
    Mutable sync state for one gateway/orchestrator pair.

    Kept on an instance rather than at module level so tests can build
    isolated stacks.
    """
    health: ConnectionHealth = field(default_factory=ConnectionHealth)
    last_fetch_at: float = 0.0  # epoch seconds of last successful remote fetch


class Tier(str, Enum):
    """Which storage tier served a result."""
    CACHE = "cache"
    REMOTE = "remote"
    FALLBACK = "fallback"
    NONE = "none"


class ResultStatus(str, Enum):
    OK = "ok"
    DEGRADED = "degraded"
    FAILED = "failed"


@dataclass
class StoreResult(Generic[T]):
    """Outcome of a gateway operation, tagged with the tier that served it."""
    value: T
    tier: Tier
    status: ResultStatus = ResultStatus.OK
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status != ResultStatus.FAILED

    @property
    def degraded(self) -> bool:
        return self.status == ResultStatus.DEGRADED
