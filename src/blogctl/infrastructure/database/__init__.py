"""SQLite post index via SQLAlchemy Core."""

from blogctl.infrastructure.database.engine import create_db_engine, init_database
from blogctl.infrastructure.database.schema import (
    index_meta,
    metadata,
    post_categories,
    post_tags,
    posts,
)

__all__ = [
    "create_db_engine",
    "index_meta",
    "init_database",
    "metadata",
    "post_categories",
    "post_tags",
    "posts",
]
