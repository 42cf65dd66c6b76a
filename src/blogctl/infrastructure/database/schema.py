"""SQLAlchemy Core table definitions for the post index.

The index is derived from the Markdown files: every table can be dropped
and rebuilt at any time.  The FTS5 virtual table is created via raw DDL
since SQLAlchemy cannot express SQLite virtual tables natively.
"""

from __future__ import annotations

from sqlalchemy import (
    REAL,
    Column,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    Table,
    Text,
    UniqueConstraint,
)

# Bump when a table definition changes; the engine then recreates the index.
SCHEMA_VERSION = 1

metadata = MetaData()

posts = Table(
    "posts",
    metadata,
    Column("path", Text, primary_key=True),  # site-relative, forward slashes
    Column("kind", Text, nullable=False),  # post | draft | page
    Column("slug", Text, nullable=False),
    Column("title", Text, nullable=False),
    Column("author", Text),
    Column("layout", Text),
    Column("description", Text),
    Column("published", Integer, nullable=False, default=1, server_default="1"),
    Column("post_date", Text),  # YYYY-MM-DD
    Column("modified", Text),  # YYYY-MM-DD
    Column("permalink", Text),
    Column("mtime", REAL, nullable=False),
    Column("indexed_at", Text, nullable=False),
)

post_tags = Table(
    "post_tags",
    metadata,
    Column("path", Text, ForeignKey("posts.path", ondelete="CASCADE"), nullable=False),
    Column("tag", Text, nullable=False),
    UniqueConstraint("path", "tag"),
)

post_categories = Table(
    "post_categories",
    metadata,
    Column("path", Text, ForeignKey("posts.path", ondelete="CASCADE"), nullable=False),
    Column("category", Text, nullable=False),
    UniqueConstraint("path", "category"),
)

index_meta = Table(
    "index_meta",
    metadata,
    Column("key", Text, primary_key=True),
    Column("value", Text, nullable=False),
)

# ---------------------------------------------------------------------------
# Indexes for frequently filtered columns
# ---------------------------------------------------------------------------

Index("ix_posts_kind", posts.c.kind)
Index("ix_posts_modified", posts.c.modified)
Index("ix_posts_slug", posts.c.slug)
Index("ix_post_tags_tag", post_tags.c.tag)
Index("ix_post_categories_category", post_categories.c.category)

# FTS5 virtual table DDL: standalone (no content= clause).
# path is UNINDEXED: stored for joins but not searched.
FTS5_CREATE_SQL = (
    "CREATE VIRTUAL TABLE IF NOT EXISTS posts_fts "
    "USING fts5(path UNINDEXED, title, description, body)"
)
FTS5_DROP_SQL = "DROP TABLE IF EXISTS posts_fts"
