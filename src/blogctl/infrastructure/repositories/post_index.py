"""Repository for the derived post index (read and write sides)."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, func, insert, select, text

from blogctl.infrastructure.database.schema import post_categories, post_tags, posts

if TYPE_CHECKING:
    from sqlalchemy import Connection
    from sqlalchemy.engine import Engine

    from blogctl.domain.documents import Document

SORT_COLUMNS = {
    "modified": posts.c.modified,
    "date": posts.c.post_date,
    "title": posts.c.title,
}


class PostIndexRepository:
    """Encapsulates SQL for the ``posts`` tables and ``posts_fts``."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    # ------------------------------------------------------------------
    # Write side (caller owns the transaction)
    # ------------------------------------------------------------------

    @staticmethod
    def indexed_mtimes(conn: Connection) -> dict[str, float]:
        """Map of indexed path to the file mtime recorded at index time."""
        rows = conn.execute(select(posts.c.path, posts.c.mtime)).fetchall()
        return {str(row.path): float(row.mtime) for row in rows}

    @staticmethod
    def remove(conn: Connection, path: str) -> None:
        """Drop one document from every index table."""
        conn.execute(delete(post_tags).where(post_tags.c.path == path))
        conn.execute(delete(post_categories).where(post_categories.c.path == path))
        conn.execute(text("DELETE FROM posts_fts WHERE path = :path"), {"path": path})
        conn.execute(delete(posts).where(posts.c.path == path))

    @staticmethod
    def clear(conn: Connection) -> None:
        """Empty the index (rebuild)."""
        conn.execute(text("DELETE FROM posts_fts"))
        conn.execute(delete(post_tags))
        conn.execute(delete(post_categories))
        conn.execute(delete(posts))

    def upsert(
        self,
        conn: Connection,
        doc: Document,
        *,
        permalink: str | None,
        mtime: float,
        indexed_at: str,
    ) -> None:
        """Replace the index rows for *doc* (DELETE + INSERT).

        FTS5 virtual tables don't support UPDATE, so every table follows the
        same delete-then-insert pattern.
        """
        self.remove(conn, doc.rel_path)

        post_date = doc.post_date
        modified = doc.modified
        description = doc.get("description")
        author = doc.get("author")
        layout = doc.get("layout")
        conn.execute(
            insert(posts).values(
                path=doc.rel_path,
                kind=str(doc.kind),
                slug=doc.slug,
                title=doc.title,
                author=str(author) if author is not None else None,
                layout=str(layout) if layout is not None else None,
                description=str(description) if description is not None else None,
                published=1 if doc.published else 0,
                post_date=post_date.isoformat() if post_date else None,
                modified=modified.isoformat() if modified else None,
                permalink=permalink,
                mtime=mtime,
                indexed_at=indexed_at,
            )
        )
        for tag in doc.tags:
            conn.execute(insert(post_tags).values(path=doc.rel_path, tag=tag))
        for category in doc.categories:
            conn.execute(insert(post_categories).values(path=doc.rel_path, category=category))
        conn.execute(
            text(
                "INSERT INTO posts_fts(path, title, description, body) "
                "VALUES (:path, :title, :description, :body)"
            ),
            {
                "path": doc.rel_path,
                "title": doc.title,
                "description": str(description or ""),
                "body": doc.body,
            },
        )

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    def list_rows(
        self,
        *,
        kinds: tuple[str, ...] = ("post", "draft"),
        published: bool | None = None,
        tag: str | None = None,
        category: str | None = None,
        author: str | None = None,
        since: str | None = None,
        sort: str = "modified",
        descending: bool = True,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """Filtered, sorted post rows."""
        stmt = select(posts).where(posts.c.kind.in_(kinds))
        if published is not None:
            stmt = stmt.where(posts.c.published == (1 if published else 0))
        if tag:
            stmt = stmt.where(
                posts.c.path.in_(select(post_tags.c.path).where(post_tags.c.tag == tag))
            )
        if category:
            stmt = stmt.where(
                posts.c.path.in_(
                    select(post_categories.c.path).where(post_categories.c.category == category)
                )
            )
        if author:
            stmt = stmt.where(posts.c.author == author)
        if since:
            stmt = stmt.where(posts.c.modified >= since)

        column = SORT_COLUMNS.get(sort, posts.c.modified)
        if descending:
            stmt = stmt.order_by(column.desc().nulls_last(), posts.c.path)
        else:
            stmt = stmt.order_by(column.asc().nulls_last(), posts.c.path)
        if limit is not None:
            stmt = stmt.limit(limit)

        with self._engine.connect() as conn:
            rows = conn.execute(stmt).mappings().all()
        return [dict(row) for row in rows]

    def labels_for(self, path: str) -> tuple[list[str], list[str]]:
        """``(tags, categories)`` recorded for *path*."""
        with self._engine.connect() as conn:
            tags = conn.execute(
                select(post_tags.c.tag).where(post_tags.c.path == path).order_by(post_tags.c.tag)
            ).fetchall()
            cats = conn.execute(
                select(post_categories.c.category)
                .where(post_categories.c.path == path)
                .order_by(post_categories.c.category)
            ).fetchall()
        return [str(r.tag) for r in tags], [str(r.category) for r in cats]

    def search_fts_rows(
        self,
        query: str,
        *,
        published: bool | None = None,
        limit: int = 20,
    ) -> list[dict[str, Any]]:
        """Execute an FTS5 MATCH and return rows ordered by bm25 rank."""
        sql = """
            SELECT p.path, p.kind, p.slug, p.title, p.author, p.published,
                   p.post_date, p.modified, p.permalink,
                   bm25(posts_fts, 10.0, 5.0, 1.0) AS score
            FROM posts_fts AS fts
            JOIN posts AS p ON fts.path = p.path
            WHERE posts_fts MATCH :query
              AND p.kind != 'page'
        """
        params: dict[str, Any] = {"query": query, "limit": limit}
        if published is not None:
            sql += " AND p.published = :published"
            params["published"] = 1 if published else 0
        sql += " ORDER BY score LIMIT :limit"

        with self._engine.connect() as conn:
            rows = conn.execute(text(sql), params).mappings().all()
        return [dict(row) for row in rows]

    def label_counts(self, label: str, *, published_only: bool = False) -> list[dict[str, Any]]:
        """Usage counts for ``"tag"`` or ``"category"``, most used first."""
        table = post_tags if label == "tag" else post_categories
        column = table.c.tag if label == "tag" else table.c.category
        stmt = (
            select(column.label("name"), func.count().label("count"))
            .select_from(table.join(posts, table.c.path == posts.c.path))
            .where(posts.c.kind != "page")
            .group_by(column)
            .order_by(func.count().desc(), column)
        )
        if published_only:
            stmt = stmt.where(posts.c.published == 1)
        with self._engine.connect() as conn:
            rows = conn.execute(stmt).mappings().all()
        return [{"name": str(r["name"]), "count": int(r["count"])} for r in rows]
