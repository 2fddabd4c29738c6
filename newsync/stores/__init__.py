"""
Primary store backends.

Use create_store() to build the configured backend:
    from newsync.stores import create_store
    store = create_store("sqlite", db_path=Path("data/news.db"))
"""

from pathlib import Path

from .base import RelationalStore
from .postgrest import PostgrestStore
from .sqlite import SQLiteStore

__all__ = [
    "RelationalStore",
    "SQLiteStore",
    "PostgrestStore",
    "create_store",
]


def create_store(
    backend: str,
    db_path: Path | None = None,
    base_url: str | None = None,
    api_key: str | None = None,
) -> RelationalStore:
    """
    Create a primary store backend.

    Args:
        backend: "sqlite" or "postgrest"
        db_path: Database file for the sqlite backend
        base_url: Service URL for the postgrest backend
        api_key: Service key for the postgrest backend

    Raises:
        ValueError: If backend is unknown or its settings are missing
    """
    backend = backend.lower()

    if backend == "sqlite":
        if db_path is None:
            raise ValueError("sqlite backend requires db_path")
        return SQLiteStore.from_path(db_path)

    if backend == "postgrest":
        if not base_url or not api_key:
            raise ValueError("postgrest backend requires base_url and api_key")
        return PostgrestStore(base_url=base_url, api_key=api_key)

    raise ValueError(f"Unknown store backend: {backend}")
