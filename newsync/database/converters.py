"""
Database row converters - convert SQLite rows to domain dataclasses.
"""

import json
import sqlite3

from ..models import NewsItem, PreferenceRecord


def row_to_news_item(row: sqlite3.Row) -> NewsItem:
    """Convert a database row to a NewsItem."""
    return NewsItem(
        id=row["id"],
        title=row["title"],
        body=row["body"] or "",
        url=row["url"],
        image_url=row["image_url"],
        source_name=row["source_name"],
        published_on=int(row["published_on"]),
        categories=row["categories"] or "",
    )


def row_to_preference(row: sqlite3.Row) -> PreferenceRecord:
    categories = []
    if row["preferred_categories"]:
        try:
            categories = json.loads(row["preferred_categories"])
        except json.JSONDecodeError:
            pass

    return PreferenceRecord(
        user_id=row["user_id"],
        preferred_categories=categories,
        updated_at=row["updated_at"],
    )
