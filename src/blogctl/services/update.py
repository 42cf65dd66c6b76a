"""UpdateService: edit front matter of existing posts.

Pipeline: RESOLVE → LOAD → APPLY → PERSIST → RESPOND

Edits go through the round-trip parser, so the author's comments and key
order survive; new keys land at their canonical position.  Every edit
bumps ``modified`` to today.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

from blogctl.domain.content import set_frontmatter_key
from blogctl.domain.frontmatter import normalize_labels
from blogctl.domain.posts import post_filename
from blogctl.domain.types import DocumentKind
from blogctl.infrastructure.site import PostLookupError
from blogctl.services._helpers import today
from blogctl.services.base import BaseService
from blogctl.services.result import ServiceResult
from blogctl.services.telemetry import trace_span, traced

if TYPE_CHECKING:
    from blogctl.domain.documents import Document

_TEXT_FIELDS = ("title", "description", "author", "layout")


class UpdateService(BaseService):
    """Changes titles, labels, publication state and dates of posts."""

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @traced
    def update(self, ref: str, *, changes: dict[str, Any]) -> ServiceResult:
        """Apply *changes* to the post identified by *ref*.

        Recognized keys: ``title``, ``description``, ``author``, ``layout``,
        ``add_tags``, ``remove_tags``, ``add_categories``,
        ``remove_categories``.
        """
        op = "update"
        doc_or_error = self._load(op, ref)
        if isinstance(doc_or_error, ServiceResult):
            return doc_or_error
        doc = doc_or_error
        fm = doc.frontmatter
        fields_changed: list[str] = []

        with trace_span("apply"):
            layout = changes.get("layout")
            if layout and layout not in self._site.known_layouts():
                return ServiceResult.failure(
                    op,
                    "INVALID_LAYOUT",
                    f"Unknown layout '{layout}'",
                    detail={"known": sorted(self._site.known_layouts())},
                )
            if "title" in changes and changes["title"] is not None:
                if not str(changes["title"]).strip():
                    return ServiceResult.failure(op, "INVALID_FRONTMATTER", "Title is empty")

            for key in _TEXT_FIELDS:
                value = changes.get(key)
                if value is None:
                    continue
                value = str(value).strip()
                if fm.get(key) != value:
                    set_frontmatter_key(fm, key, value)
                    fields_changed.append(key)

            for key in ("tags", "categories"):
                current = normalize_labels(fm.get(key))
                wanted = [v for v in current if v not in (changes.get(f"remove_{key}") or [])]
                for value in normalize_labels(changes.get(f"add_{key}") or []):
                    if value not in wanted:
                        wanted.append(value)
                if wanted != current:
                    set_frontmatter_key(fm, key, wanted)
                    fields_changed.append(key)

        if not fields_changed:
            return ServiceResult.failure(
                op, "NO_CHANGES", "Nothing to change", detail={"path": doc.rel_path}
            )

        return self._persist(op, doc, fields_changed)

    @traced
    def publish(self, ref: str) -> ServiceResult:
        """Make a post live.

        A post marked ``published: false`` gets the flag set to true.  A
        file in the drafts directory moves to ``_posts/<today>-<slug>.md``.
        """
        op = "publish"
        doc_or_error = self._load(op, ref)
        if isinstance(doc_or_error, ServiceResult):
            return doc_or_error
        doc = doc_or_error

        if doc.kind is DocumentKind.DRAFT:
            return self._promote_draft(doc)
        if doc.published:
            return ServiceResult.failure(
                op,
                "NO_CHANGES",
                f"{doc.rel_path} is already published",
                detail={"path": doc.rel_path},
            )
        set_frontmatter_key(doc.frontmatter, "published", True)
        return self._persist(op, doc, ["published"])

    @traced
    def unpublish(self, ref: str) -> ServiceResult:
        """Mark a post ``published: false``."""
        op = "unpublish"
        doc_or_error = self._load(op, ref)
        if isinstance(doc_or_error, ServiceResult):
            return doc_or_error
        doc = doc_or_error

        if not doc.published:
            return ServiceResult.failure(
                op,
                "NO_CHANGES",
                f"{doc.rel_path} is already a draft",
                detail={"path": doc.rel_path},
            )
        set_frontmatter_key(doc.frontmatter, "published", False)
        return self._persist(op, doc, ["published"])

    @traced
    def touch(self, ref: str) -> ServiceResult:
        """Set ``modified`` to today without other edits."""
        op = "touch"
        doc_or_error = self._load(op, ref)
        if isinstance(doc_or_error, ServiceResult):
            return doc_or_error
        return self._persist(op, doc_or_error, [])

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _load(self, op: str, ref: str) -> Document | ServiceResult:
        with trace_span("resolve"):
            try:
                path = self._site.resolve_post(ref)
            except PostLookupError as exc:
                detail = {"ref": ref}
                if exc.matches:
                    detail["matches"] = exc.matches  # type: ignore[assignment]
                return ServiceResult.failure(op, exc.code, str(exc), detail=detail)

        doc = self._site.load_document(path)
        if doc.parse_error is not None:
            return ServiceResult.failure(
                op,
                "INVALID_FRONTMATTER",
                f"Cannot edit {doc.rel_path}: {doc.parse_error}",
                detail={"path": doc.rel_path, "line": doc.parse_error.line},
            )
        return doc

    def _persist(self, op: str, doc: Document, fields_changed: list[str]) -> ServiceResult:
        fm = doc.frontmatter
        day = today()
        if fm.get("modified") != day:
            set_frontmatter_key(fm, "modified", day)
            fields_changed = [*fields_changed, "modified"]

        with trace_span("persist"):
            with self._site.transaction() as txn:
                txn.write_content(doc.path, fm, doc.body)

        return ServiceResult(
            ok=True,
            op=op,
            data={
                "path": doc.rel_path,
                "title": str(fm.get("title", "")),
                "fields_changed": fields_changed,
                "modified": day.isoformat(),
                "published": doc.kind is not DocumentKind.DRAFT
                and fm.get("published", True) is not False,
            },
        )

    def _promote_draft(self, doc: Document) -> ServiceResult:
        day = today()
        ext = Path(doc.rel_path).suffix.lstrip(".") or "md"
        target = self._site.posts_dir / post_filename(day, doc.slug, ext=ext)
        rel_target = self._site.relative(target)
        if target.exists():
            return ServiceResult.failure(
                "publish",
                "ALREADY_EXISTS",
                f"A post already exists at {rel_target}",
                detail={"path": rel_target},
            )

        fm = doc.frontmatter
        set_frontmatter_key(fm, "modified", day)
        if fm.get("published") is False:
            fm["published"] = True

        with trace_span("persist"):
            with self._site.transaction() as txn:
                txn.write_content(target, fm, doc.body)
                txn.delete_file(doc.path)

        return ServiceResult(
            ok=True,
            op="publish",
            data={
                "path": rel_target,
                "moved_from": doc.rel_path,
                "title": str(fm.get("title", "")),
                "fields_changed": ["published", "modified"],
                "modified": day.isoformat(),
                "published": True,
            },
        )
