"""
API route modules.
"""

from .misc import router as misc_router
from .news import router as news_router
from .user import router as user_router

__all__ = [
    "misc_router",
    "news_router",
    "user_router",
]
