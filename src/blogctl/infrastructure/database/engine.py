"""Database engine setup for the SQLite post index.

The index lives at ``{site_root}/.blogctl/index.db``: WAL mode for
concurrent reads, FTS5 for full-text search over post bodies.

Queries go through SQLAlchemy Core, not the ORM.

There are no migrations.  The index is derived data, so a schema version
mismatch simply drops and recreates every table; the next sync refills it.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, event, select, text
from sqlalchemy.engine import Engine

from blogctl.infrastructure.database.schema import (
    FTS5_CREATE_SQL,
    FTS5_DROP_SQL,
    SCHEMA_VERSION,
    index_meta,
    metadata,
)

logger = logging.getLogger(__name__)

INDEX_DIRNAME = ".blogctl"
INDEX_FILENAME = "index.db"


def create_db_engine(db_path: Path) -> Engine:
    """Create a SQLite engine with WAL mode and foreign keys enabled."""
    engine = create_engine(f"sqlite:///{db_path}", echo=False)

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn: Any, _: Any) -> None:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


def _stored_version(engine: Engine) -> int | None:
    with engine.connect() as conn:
        has_meta = conn.execute(
            text("SELECT name FROM sqlite_master WHERE type='table' AND name='index_meta'")
        ).first()
        if has_meta is None:
            return None
        row = conn.execute(
            select(index_meta.c.value).where(index_meta.c.key == "schema_version")
        ).first()
    return int(row.value) if row is not None else None


def init_database(site_root: Path) -> Engine:
    """Initialize the index at ``{site_root}/.blogctl/index.db``.

    Idempotent: safe to call on an existing index.  Returns the engine
    ready for use.
    """
    index_dir = site_root / INDEX_DIRNAME
    index_dir.mkdir(parents=True, exist_ok=True)

    engine = create_db_engine(index_dir / INDEX_FILENAME)

    version = _stored_version(engine)
    if version is not None and version != SCHEMA_VERSION:
        logger.info("Index schema %s != %s, recreating", version, SCHEMA_VERSION)
        with engine.begin() as conn:
            conn.execute(text(FTS5_DROP_SQL))
        metadata.drop_all(engine)

    metadata.create_all(engine)
    with engine.begin() as conn:
        conn.execute(text(FTS5_CREATE_SQL))
        conn.execute(
            text("INSERT OR REPLACE INTO index_meta(key, value) VALUES ('schema_version', :v)"),
            {"v": str(SCHEMA_VERSION)},
        )

    return engine
