"""
News Sync Layer

Offline-first synchronization and caching for the news reader client.
Fetches articles from the news API, persists and dedupes them, and serves
reads from the in-memory cache, the primary store, or the on-device fallback.
"""

__version__ = "1.0.0"
