"""QueryService: read-only answers about the posts.

Five operations: list_posts, get_post, search, tags, categories.
Listing and search run against the SQLite index, which is synced with the
files before every query.
"""

from __future__ import annotations

import re
from typing import Any

from sqlalchemy.exc import OperationalError

from blogctl.domain.links import KIND_IMAGE, KIND_LINK, extract_references
from blogctl.infrastructure.repositories.post_index import SORT_COLUMNS, PostIndexRepository
from blogctl.infrastructure.site import PostLookupError
from blogctl.services._helpers import parse_since, to_plain
from blogctl.services.base import BaseService
from blogctl.services.index import IndexService
from blogctl.services.result import ServiceResult
from blogctl.services.telemetry import trace_span, traced

STATUS_FILTERS = ("all", "published", "draft")

_FTS_TOKEN = re.compile(r"[\w'-]+\*?", re.UNICODE)


def fts_query(text: str) -> str:
    """Quote user input into an FTS5 expression of AND-ed terms.

    A trailing ``*`` keeps prefix matching.

    Examples:
        >>> fts_query('room migration*')
        '"room" "migration"*'
        >>> fts_query('AND OR "')
        '"AND" "OR"'
    """
    terms: list[str] = []
    for token in _FTS_TOKEN.findall(text):
        prefix = token.endswith("*")
        word = token.rstrip("*")
        if not word:
            continue
        terms.append(f'"{word}"*' if prefix else f'"{word}"')
    return " ".join(terms)


def _row_item(row: dict[str, Any]) -> dict[str, Any]:
    return {
        "path": row["path"],
        "kind": row["kind"],
        "slug": row["slug"],
        "title": row["title"],
        "author": row.get("author"),
        "status": "published" if row["published"] else "draft",
        "date": row["post_date"],
        "modified": row["modified"],
        "permalink": row["permalink"],
    }


class QueryService(BaseService):
    """Listing, lookup, and full-text search over posts and drafts."""

    def _sync(self) -> list[str]:
        with trace_span("sync"):
            return list(IndexService(self._site).sync().warnings)

    # ------------------------------------------------------------------
    # list_posts
    # ------------------------------------------------------------------

    @traced
    def list_posts(
        self,
        *,
        status: str = "all",
        tag: str | None = None,
        category: str | None = None,
        author: str | None = None,
        since: str | None = None,
        sort: str = "modified",
        limit: int | None = None,
    ) -> ServiceResult:
        """Filtered listing, newest ``modified`` first by default.

        ``title`` sorts ascending; ``modified`` and ``date`` descending.
        """
        op = "list_posts"
        if status not in STATUS_FILTERS:
            return ServiceResult.failure(
                op,
                "INVALID_FILTER",
                f"Unknown status '{status}' (use {', '.join(STATUS_FILTERS)})",
            )
        if sort not in SORT_COLUMNS:
            return ServiceResult.failure(
                op, "INVALID_SORT", f"Unknown sort '{sort}' (use {', '.join(SORT_COLUMNS)})"
            )
        try:
            since_date = parse_since(since)
        except ValueError:
            return ServiceResult.failure(op, "INVALID_DATE", f"'{since}' is not a YYYY-MM-DD date")

        warnings = self._sync()
        repo = PostIndexRepository(self._site.engine)
        with trace_span("select"):
            rows = repo.list_rows(
                published=None if status == "all" else status == "published",
                tag=tag,
                category=category,
                author=author,
                since=since_date.isoformat() if since_date else None,
                sort=sort,
                descending=sort != "title",
                limit=limit,
            )

        items = []
        for row in rows:
            item = _row_item(row)
            item["tags"], item["categories"] = repo.labels_for(row["path"])
            items.append(item)

        return ServiceResult(
            ok=True,
            op=op,
            data={"items": items, "count": len(items)},
            warnings=warnings,
        )

    # ------------------------------------------------------------------
    # get_post
    # ------------------------------------------------------------------

    @traced
    def get_post(self, ref: str) -> ServiceResult:
        """One post with front matter, body, permalink, and references."""
        op = "get_post"
        try:
            path = self._site.resolve_post(ref)
        except PostLookupError as exc:
            return ServiceResult.failure(
                op, exc.code, str(exc), detail={"ref": ref, "matches": exc.matches}
            )

        doc = self._site.load_document(path)
        if doc.parse_error is not None:
            return ServiceResult.failure(
                op,
                "INVALID_FRONTMATTER",
                f"{doc.rel_path}: {doc.parse_error}",
                detail={"path": doc.rel_path, "line": doc.parse_error.line},
            )

        references = []
        for ref_ in extract_references(doc.body, line_offset=doc.body_line):
            entry: dict[str, Any] = {"target": ref_.target, "kind": ref_.kind, "line": ref_.line}
            if ref_.kind in (KIND_IMAGE, KIND_LINK):
                entry["exists"] = self._site.resolve_asset(ref_.target, doc) is not None
            references.append(entry)

        modified = doc.modified
        post_date = doc.post_date
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "path": doc.rel_path,
                "kind": str(doc.kind),
                "slug": doc.slug,
                "title": doc.title,
                "status": str(doc.status),
                "date": post_date.isoformat() if post_date else None,
                "modified": modified.isoformat() if modified else None,
                "permalink": self._site.permalink_for(doc),
                "tags": doc.tags,
                "categories": doc.categories,
                "frontmatter": to_plain(doc.frontmatter),
                "body": doc.body,
                "references": references,
            },
        )

    # ------------------------------------------------------------------
    # search
    # ------------------------------------------------------------------

    @traced
    def search(
        self,
        query: str,
        *,
        limit: int = 20,
        include_drafts: bool = False,
    ) -> ServiceResult:
        """Full-text search via FTS5 BM25 (title > description > body)."""
        op = "search"
        expression = fts_query(query)
        if not expression:
            return ServiceResult.failure(op, "EMPTY_QUERY", "Search query cannot be empty")

        warnings = self._sync()
        repo = PostIndexRepository(self._site.engine)
        try:
            rows = repo.search_fts_rows(
                expression, published=None if include_drafts else True, limit=limit
            )
        except OperationalError as exc:
            return ServiceResult.failure(
                op, "INVALID_QUERY", f"Search failed: {exc.orig}", warnings=warnings
            )

        items = []
        for row in rows:
            item = _row_item(row)
            item["score"] = round(float(row["score"]), 4)
            items.append(item)

        return ServiceResult(
            ok=True,
            op=op,
            data={"query": query, "count": len(items), "items": items},
            warnings=warnings,
        )

    # ------------------------------------------------------------------
    # tags / categories
    # ------------------------------------------------------------------

    @traced
    def tags(self, *, published_only: bool = False) -> ServiceResult:
        """Every tag with the number of posts using it."""
        return self._labels("tags", "tag", published_only=published_only)

    @traced
    def categories(self, *, published_only: bool = False) -> ServiceResult:
        """Every category with the number of posts using it."""
        return self._labels("categories", "category", published_only=published_only)

    def _labels(self, op: str, label: str, *, published_only: bool) -> ServiceResult:
        warnings = self._sync()
        items = PostIndexRepository(self._site.engine).label_counts(
            label, published_only=published_only
        )
        return ServiceResult(
            ok=True,
            op=op,
            data={"items": items, "count": len(items)},
            warnings=warnings,
        )
