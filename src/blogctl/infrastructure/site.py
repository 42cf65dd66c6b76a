"""Site: repository over the blog's Markdown files and its post index.

The Site is the single dependency injected into every service.  It owns
document discovery and loading, permalink and reference resolution, the
lazily created index engine, and the :meth:`transaction` context manager
that makes multi-file edits all-or-nothing.

File writes are compensation-based: on rollback newly created files are
deleted and modified files are restored from backup.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import TYPE_CHECKING, Any

from blogctl.domain.content import render_frontmatter
from blogctl.domain.documents import Document, build_document
from blogctl.domain.posts import (
    PostFilenameError,
    build_permalink,
    page_permalink,
    parse_post_filename,
)
from blogctl.domain.types import DocumentKind
from blogctl.infrastructure.filesystem import (
    ensure_within,
    find_markdown_files,
    find_pages,
    relative_posix,
)

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy.engine import Engine

    from blogctl.config.settings import BlogSettings

logger = logging.getLogger(__name__)


class PostLookupError(LookupError):
    """A post reference matched nothing, or more than one post.

    ``code`` is ``"NOT_FOUND"`` or ``"AMBIGUOUS"``.
    """

    def __init__(self, message: str, *, code: str, matches: list[str] | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.matches = matches or []


# ---------------------------------------------------------------------------
# File operation tracking for compensation-based rollback
# ---------------------------------------------------------------------------


@dataclass
class _FileOp:
    """A tracked file write within a site transaction."""

    path: Path
    backup: bytes | None  # original bytes for updates, None for creates

    def rollback(self) -> None:
        """Undo this file operation (best-effort)."""
        try:
            if self.backup is not None:
                self.path.write_bytes(self.backup)
            else:
                self.path.unlink(missing_ok=True)
        except OSError:
            logger.warning("Failed to roll back file write: %s", self.path)


@dataclass
class SiteTransaction:
    """Active transaction with tracked file I/O.

    All file writes must go through :meth:`write_file` so the Site can
    compensate on rollback.
    """

    _site: Site
    _file_ops: list[_FileOp] = field(default_factory=list, repr=False)

    def write_file(self, path: Path, content: str, *, confined: bool = True) -> None:
        """Write *content* to *path*, tracking for rollback.

        If the file already exists, its current bytes are backed up.
        Parent directories are created as needed.  With ``confined=False``
        *path* may lie outside the site root (export destinations).
        """
        if confined:
            ensure_within(self._site.root, path)
        backup: bytes | None = None
        if path.exists():
            backup = path.read_bytes()

        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        self._file_ops.append(_FileOp(path=path, backup=backup))

    def write_content(
        self,
        path: Path,
        frontmatter: dict[str, Any],
        body: str,
        *,
        reorder: bool = False,
    ) -> None:
        """Render front matter + body and write to *path* (tracked)."""
        self.write_file(path, render_frontmatter(frontmatter, body, reorder=reorder))

    def delete_file(self, path: Path) -> None:
        """Delete *path*, keeping its content so rollback can restore it."""
        ensure_within(self._site.root, path)
        backup = path.read_bytes()
        path.unlink()
        self._file_ops.append(_FileOp(path=path, backup=backup))

    @property
    def files_written(self) -> list[Path]:
        return [op.path for op in self._file_ops]


# ---------------------------------------------------------------------------
# Site
# ---------------------------------------------------------------------------


class Site:
    """Repository encapsulating the site's files and the derived index.

    Constructed lazily by the CLI context from :class:`BlogSettings`.
    Services receive the Site via their :class:`BaseService` constructor.
    """

    def __init__(self, settings: BlogSettings) -> None:
        self._settings = settings
        self._engine: Engine | None = None

    @property
    def root(self) -> Path:
        """The site root directory."""
        return self._settings.site_root

    @property
    def settings(self) -> BlogSettings:
        """The resolved settings for this site."""
        return self._settings

    @property
    def engine(self) -> Engine:
        """The index engine, created on first access."""
        if self._engine is None:
            from blogctl.infrastructure.database.engine import init_database

            self._engine = init_database(self.root)
        return self._engine

    def close(self) -> None:
        """Dispose the index engine, if one was created."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------

    @property
    def posts_dir(self) -> Path:
        return self.root / self._settings.site.posts_dir

    @property
    def drafts_dir(self) -> Path:
        return self.root / self._settings.site.drafts_dir

    @property
    def extensions(self) -> tuple[str, ...]:
        return tuple(e.lower().lstrip(".") for e in self._settings.posts.markdown_extensions)

    def relative(self, path: Path) -> str:
        return relative_posix(self.root, path)

    def known_layouts(self) -> set[str]:
        """Configured layouts plus any template found in ``_layouts/``."""
        layouts = set(self._settings.check.known_layouts)
        layouts_dir = self.root / self._settings.site.layouts_dir
        if layouts_dir.is_dir():
            layouts.update(p.stem for p in layouts_dir.iterdir() if p.is_file())
        return layouts

    # ------------------------------------------------------------------
    # Discovery and loading
    # ------------------------------------------------------------------

    def find_documents(self) -> list[tuple[Path, DocumentKind]]:
        """Every content file with its kind: posts, drafts, then pages."""
        s = self._settings
        found: list[tuple[Path, DocumentKind]] = []
        found.extend(
            (p, DocumentKind.POST)
            for p in find_markdown_files(self.root, s.site.posts_dir, extensions=self.extensions)
        )
        found.extend(
            (p, DocumentKind.DRAFT)
            for p in find_markdown_files(self.root, s.site.drafts_dir, extensions=self.extensions)
        )
        found.extend(
            (p, DocumentKind.PAGE)
            for p in find_pages(self.root, include=s.pages.include, exclude=s.pages.exclude)
        )
        return found

    def load_document(self, path: Path, kind: DocumentKind | None = None) -> Document:
        """Read and parse one file.

        Never raises for content problems, including invalid UTF-8; only
        ``OSError`` from the read itself propagates.
        """
        if kind is None:
            kind = self.kind_for(path)
        return build_document(
            path, self.relative(path), kind, path.read_bytes(), extensions=self.extensions
        )

    def load_documents(self) -> list[Document]:
        return [self.load_document(path, kind) for path, kind in self.find_documents()]

    def kind_for(self, path: Path) -> DocumentKind:
        resolved = path.resolve()
        if resolved.is_relative_to(self.posts_dir.resolve()):
            return DocumentKind.POST
        if resolved.is_relative_to(self.drafts_dir.resolve()):
            return DocumentKind.DRAFT
        return DocumentKind.PAGE

    def required_fields(self, doc: Document) -> list[str]:
        if doc.kind is DocumentKind.PAGE:
            return list(self._settings.pages.required_fields)
        return list(self._settings.posts.required_fields)

    # ------------------------------------------------------------------
    # Permalinks and references
    # ------------------------------------------------------------------

    def permalink_for(self, doc: Document) -> str | None:
        """URL the generator will serve *doc* at, or None if undeterminable."""
        if not doc.ok:
            return None
        override = doc.get("permalink")
        override = str(override) if override else None
        style = self._settings.posts.permalink
        if doc.kind is DocumentKind.PAGE:
            return page_permalink(doc.rel_path, style=style, override=override)

        post_date = doc.post_date
        if post_date is None:
            if doc.kind is DocumentKind.POST:
                return None
            # Drafts are previewed with today's date.
            post_date = date.today()
        return build_permalink(
            style,
            post_date=post_date,
            slug=doc.slug,
            categories=doc.categories,
            override=override,
        )

    def resolve_asset(self, target: str, doc: Document) -> Path | None:
        """Return the file an asset *target* points at, or None if missing.

        Leading ``/`` is site-root relative (after the configured baseurl).
        Other targets are tried against the site root, then the document's
        own directory.
        """
        baseurl = self._settings.site.baseurl.rstrip("/")
        candidates: list[Path] = []
        if target.startswith("/"):
            if baseurl and (target == baseurl or target.startswith(baseurl + "/")):
                target = target[len(baseurl) :]
            candidates.append(self.root / target.lstrip("/"))
        else:
            candidates.append(self.root / target)
            candidates.append(doc.path.parent / target)

        root = self.root.resolve()
        for candidate in candidates:
            resolved = candidate.resolve()
            if not resolved.is_relative_to(root):
                continue
            if resolved.is_file():
                return resolved
            if resolved.is_dir() and (resolved / "index.html").is_file():
                return resolved / "index.html"
        return None

    def post_names(self) -> set[str]:
        """Post filename stems (``2019-03-01-room``) under the posts dir."""
        names: set[str] = set()
        for path in find_markdown_files(
            self.root, self._settings.site.posts_dir, extensions=self.extensions
        ):
            names.add(path.stem)
            names.add(relative_posix(self.posts_dir, path).rsplit(".", 1)[0])
        return names

    # ------------------------------------------------------------------
    # Post lookup
    # ------------------------------------------------------------------

    def path_slug(self, path: Path, kind: DocumentKind) -> str:
        """Slug implied by a file name (front matter ``slug`` not consulted)."""
        if kind is DocumentKind.POST:
            try:
                return parse_post_filename(path.name, extensions=self.extensions).slug
            except PostFilenameError:
                return path.stem
        return path.stem

    def resolve_post(self, ref: str) -> Path:
        """Find a post or draft by site-relative path, filename, or slug.

        Raises:
            PostLookupError: ``NOT_FOUND`` or ``AMBIGUOUS``.
        """
        direct = self.root / ref
        if direct.is_file() and direct.resolve().is_relative_to(self.root.resolve()):
            return direct

        candidates: list[Path] = []
        for path, kind in self.find_documents():
            if kind is DocumentKind.PAGE:
                continue
            if ref in (path.name, path.stem):
                candidates.append(path)
                continue
            if self.path_slug(path, kind) == ref:
                candidates.append(path)

        if not candidates:
            raise PostLookupError(f"No post found for: {ref}", code="NOT_FOUND")
        if len(candidates) > 1:
            rels = [self.relative(p) for p in candidates]
            raise PostLookupError(
                f"'{ref}' matches {len(candidates)} posts: {', '.join(rels)}",
                code="AMBIGUOUS",
                matches=rels,
            )
        return candidates[0]

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    @contextmanager
    def transaction(self) -> Iterator[SiteTransaction]:
        """All-or-nothing file writes.

        File writes are tracked for compensation: on failure created files
        are deleted and modified files restored.  Rollback is best-effort per
        file; the original error is re-raised.  The index is not touched;
        it catches up on the next sync.

        Usage::

            with site.transaction() as txn:
                txn.write_content(path, frontmatter, body)
        """
        txn = SiteTransaction(_site=self)
        try:
            yield txn
        except BaseException:
            for op in reversed(txn._file_ops):
                op.rollback()
            raise
