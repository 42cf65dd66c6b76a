"""Tests for index database initialization."""

from pathlib import Path

from sqlalchemy import inspect, select, text

from blogctl.infrastructure.database.engine import init_database
from blogctl.infrastructure.database.schema import SCHEMA_VERSION, index_meta


class TestInitDatabase:
    def test_creates_tables(self, tmp_path: Path) -> None:
        engine = init_database(tmp_path)
        try:
            tables = set(inspect(engine).get_table_names())
            assert {"posts", "post_tags", "post_categories", "index_meta", "posts_fts"} <= tables
        finally:
            engine.dispose()

    def test_records_schema_version(self, tmp_path: Path) -> None:
        engine = init_database(tmp_path)
        try:
            with engine.connect() as conn:
                value = conn.execute(
                    select(index_meta.c.value).where(index_meta.c.key == "schema_version")
                ).scalar_one()
            assert int(value) == SCHEMA_VERSION
        finally:
            engine.dispose()

    def test_idempotent(self, tmp_path: Path) -> None:
        init_database(tmp_path).dispose()
        engine = init_database(tmp_path)
        engine.dispose()
        assert (tmp_path / ".blogctl" / "index.db").exists()

    def test_version_mismatch_recreates(self, tmp_path: Path) -> None:
        engine = init_database(tmp_path)
        with engine.begin() as conn:
            conn.execute(
                text(
                    "INSERT INTO posts(path, kind, slug, title, published, mtime, indexed_at) "
                    "VALUES ('a.md', 'page', 'a', 'A', 1, 0, 'now')"
                )
            )
            conn.execute(text("UPDATE index_meta SET value = '0' WHERE key = 'schema_version'"))
        engine.dispose()

        engine = init_database(tmp_path)
        try:
            with engine.connect() as conn:
                assert conn.execute(text("SELECT COUNT(*) FROM posts")).scalar_one() == 0
        finally:
            engine.dispose()

    def test_wal_mode(self, tmp_path: Path) -> None:
        engine = init_database(tmp_path)
        try:
            with engine.connect() as conn:
                assert conn.execute(text("PRAGMA journal_mode")).scalar_one() == "wal"
        finally:
            engine.dispose()
