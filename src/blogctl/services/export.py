"""ExportService: JSON manifest and per-tag pages.

Both exports cover published posts only and are built from the files, not
from the index.
"""

from __future__ import annotations

import json
from collections import defaultdict
from pathlib import Path
from typing import TYPE_CHECKING, Any

from blogctl.domain.content import render_frontmatter
from blogctl.domain.posts import slugify
from blogctl.domain.types import DocumentKind
from blogctl.infrastructure.templates import build_template_environment
from blogctl.services.base import BaseService
from blogctl.services.result import ServiceResult
from blogctl.services.telemetry import trace_span, traced

if TYPE_CHECKING:
    from blogctl.domain.documents import Document


class ExportService(BaseService):
    """Export post metadata in portable formats."""

    def _published_posts(self, warnings: list[str]) -> list[Document]:
        posts: list[Document] = []
        for doc in self._site.load_documents():
            if doc.kind is not DocumentKind.POST:
                continue
            if not doc.ok:
                warnings.append(f"Skipped {doc.rel_path}: {doc.parse_error}")
                continue
            if doc.published:
                posts.append(doc)
        # Newest first; undated posts last, ties broken by path.
        posts.sort(key=lambda d: d.rel_path)
        posts.sort(key=lambda d: (d.modified is not None, d.modified), reverse=True)
        return posts

    def _entry(self, doc: Document) -> dict[str, Any]:
        modified = doc.modified
        return {
            "title": doc.title,
            "permalink": self._site.permalink_for(doc),
            "modified": modified.isoformat() if modified else None,
            "tags": doc.tags,
            "categories": doc.categories,
            "description": str(doc.get("description") or ""),
            "path": doc.rel_path,
        }

    @traced
    def export_manifest(self, output: Path | None = None) -> ServiceResult:
        """Write a JSON list of published posts, newest ``modified`` first.

        Without *output* the manifest is only returned in the result data.
        """
        warnings: list[str] = []
        with trace_span("collect"):
            entries = [self._entry(doc) for doc in self._published_posts(warnings)]

        data: dict[str, Any] = {"count": len(entries), "posts": entries}
        if output is not None:
            output.parent.mkdir(parents=True, exist_ok=True)
            output.write_text(json.dumps(entries, indent=2, ensure_ascii=False) + "\n", "utf-8")
            data["output"] = str(output)

        return ServiceResult(ok=True, op="export_manifest", data=data, warnings=warnings)

    @traced
    def export_tag_pages(self, output_dir: Path) -> ServiceResult:
        """Render one Markdown page per tag into *output_dir*."""
        warnings: list[str] = []
        cfg = self._settings.export

        by_tag: dict[str, list[Document]] = defaultdict(list)
        for doc in self._published_posts(warnings):
            for tag in doc.tags:
                by_tag[tag].append(doc)

        env = build_template_environment("export", site_root=self._site.root)
        template = env.get_template("tag_page.md.j2")

        output_dir.mkdir(parents=True, exist_ok=True)
        files: list[str] = []
        claimed: dict[str, str] = {}
        with trace_span("render") as span, self._site.transaction() as txn:
            for tag in sorted(by_tag, key=str.lower):
                slug = slugify(tag)
                if not slug:
                    warnings.append(f"Tag '{tag}' has no usable slug; skipped")
                    continue
                if slug in claimed:
                    warnings.append(f"Tag '{tag}' collides with '{claimed[slug]}' ({slug}.md)")
                    continue
                claimed[slug] = tag

                fm = {
                    "layout": cfg.tag_layout,
                    "title": f"Posts tagged {tag}",
                    "tag": tag,
                    "permalink": cfg.tag_permalink.replace(":tag", slug),
                }
                body = template.render(
                    tag=tag,
                    posts=[self._entry(doc) for doc in by_tag[tag]],
                    site=self._settings.site,
                )
                path = output_dir / f"{slug}.md"
                txn.write_file(path, render_frontmatter(fm, body), confined=False)
                files.append(str(path))
            if span:
                span.annotate("pages", len(files))

        return ServiceResult(
            ok=True,
            op="export_tag_pages",
            data={"output_dir": str(output_dir), "count": len(files), "files": files},
            warnings=warnings,
        )
