"""
Database module - SQLite persistence for news items and per-user state.

Uses repository pattern for better separation of concerns.
"""

from .connection import DatabaseConnection
from .news_repository import NewsRepository
from .favorite_repository import FavoriteRepository
from .preference_repository import PreferenceRepository
from .interaction_repository import InteractionRepository
from .database import Database

__all__ = [
    "Database",
    "DatabaseConnection",
    "NewsRepository",
    "FavoriteRepository",
    "PreferenceRepository",
    "InteractionRepository",
]
