"""CreateService: new posts and drafts.

Pipeline: VALIDATE → GENERATE → PERSIST → RESPOND

New files get canonical front matter (config defaults filled in) and a
Markdown body rendered from the ``post`` template, which a site can
override under ``.blogctl/templates/post/``.
"""

from __future__ import annotations

from datetime import date
from typing import Any

from blogctl.domain.frontmatter import normalize_labels
from blogctl.domain.posts import post_filename, slugify
from blogctl.domain.types import DocumentKind
from blogctl.infrastructure.templates import build_template_environment
from blogctl.services._helpers import today
from blogctl.services.base import BaseService
from blogctl.services.result import ServiceResult
from blogctl.services.telemetry import trace_span, traced


class CreateService(BaseService):
    """Scaffolds posts from the body template."""

    @traced
    def new_post(
        self,
        title: str,
        *,
        tags: list[str] | None = None,
        categories: list[str] | None = None,
        description: str | None = None,
        author: str | None = None,
        layout: str | None = None,
        draft: bool = False,
        post_date: date | None = None,
    ) -> ServiceResult:
        """Create ``_posts/<date>-<slug>.md`` (or ``_drafts/<slug>.md``)."""
        op = "new_post"
        warnings: list[str] = []
        posts_cfg = self._settings.posts

        # ── VALIDATE ──────────────────────────────────────────────
        with trace_span("validate"):
            title = title.strip()
            slug = slugify(title)
            if not title or not slug:
                return ServiceResult.failure(
                    op, "EMPTY_TITLE", "Title must contain at least one letter or digit"
                )

            layout = layout or posts_cfg.default_layout
            if layout not in self._site.known_layouts():
                warnings.append(f"Layout '{layout}' is not a known layout")

        # ── GENERATE ──────────────────────────────────────────────
        with trace_span("generate"):
            day = post_date or today()
            ext = posts_cfg.markdown_extensions[0] if posts_cfg.markdown_extensions else "md"
            if draft:
                path = self._site.drafts_dir / f"{slug}.{ext}"
            else:
                path = self._site.posts_dir / post_filename(day, title, ext=ext)
            rel_path = self._site.relative(path)

            if path.exists():
                return ServiceResult.failure(
                    op,
                    "ALREADY_EXISTS",
                    f"A file already exists at {rel_path}",
                    detail={"path": rel_path},
                )

            fm: dict[str, Any] = {
                "layout": layout,
                "title": title,
                "author": author or posts_cfg.default_author or None,
                "description": description or None,
                "modified": day,
                "published": True,
                "categories": normalize_labels(
                    categories if categories is not None else posts_cfg.default_categories
                ),
                "tags": normalize_labels(tags or []),
            }
            fm = {k: v for k, v in fm.items() if v not in (None, [])}

            env = build_template_environment("post", site_root=self._site.root)
            body = env.get_template("post.md.j2").render(
                title=title,
                slug=slug,
                description=description or "",
                tags=fm.get("tags", []),
                categories=fm.get("categories", []),
                date=day.isoformat(),
                site=self._settings.site,
            )

        # ── PERSIST ───────────────────────────────────────────────
        with trace_span("persist"):
            with self._site.transaction() as txn:
                txn.write_content(path, fm, body, reorder=True)

        # ── RESPOND ───────────────────────────────────────────────
        kind = DocumentKind.DRAFT if draft else DocumentKind.POST
        doc = self._site.load_document(path, kind)
        for other, other_kind in self._site.find_documents():
            if other == path or other_kind is DocumentKind.PAGE:
                continue
            if self._site.path_slug(other, other_kind) == slug:
                warnings.append(f"Slug '{slug}' is also used by {self._site.relative(other)}")

        return ServiceResult(
            ok=True,
            op=op,
            data={
                "path": rel_path,
                "slug": slug,
                "title": title,
                "draft": draft,
                "date": day.isoformat(),
                "permalink": self._site.permalink_for(doc),
            },
            warnings=warnings,
        )
