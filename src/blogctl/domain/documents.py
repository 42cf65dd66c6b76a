"""Document: one parsed Markdown file of the site.

Parsing never raises: a broken front matter block or a malformed post
filename is recorded on the document so the linter can report it and the
other files keep flowing.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from pathlib import Path, PurePosixPath
from typing import Any

from blogctl.domain.content import FrontmatterError, has_frontmatter, parse_frontmatter
from blogctl.domain.frontmatter import normalize_labels, to_date
from blogctl.domain.posts import (
    DEFAULT_MARKDOWN_EXTENSIONS,
    PostFilename,
    PostFilenameError,
    parse_post_filename,
    slugify,
)
from blogctl.domain.types import DocumentKind, PostStatus


@dataclass(frozen=True)
class Document:
    """A post, draft, or page with its front matter and body."""

    path: Path
    rel_path: str
    kind: DocumentKind
    frontmatter: dict[str, Any] = field(default_factory=dict)
    body: str = ""
    body_line: int = 0
    has_block: bool = False
    parse_error: FrontmatterError | None = None
    filename: PostFilename | None = None
    filename_error: PostFilenameError | None = None

    @property
    def ok(self) -> bool:
        """Front matter parsed (possibly empty)."""
        return self.parse_error is None

    @property
    def title(self) -> str:
        value = self.frontmatter.get("title")
        return str(value) if value is not None else ""

    @property
    def slug(self) -> str:
        explicit = self.frontmatter.get("slug")
        if explicit:
            return str(explicit)
        if self.filename is not None:
            return self.filename.slug
        return slugify(PurePosixPath(self.rel_path).stem) or PurePosixPath(self.rel_path).stem

    @property
    def published(self) -> bool:
        if self.kind is DocumentKind.DRAFT:
            return False
        return self.frontmatter.get("published", True) is not False

    @property
    def status(self) -> PostStatus:
        return PostStatus.PUBLISHED if self.published else PostStatus.DRAFT

    @property
    def modified(self) -> date | None:
        value = to_date(self.frontmatter.get("modified"))
        return value if isinstance(value, date) else None

    @property
    def post_date(self) -> date | None:
        """Publication date: front matter ``date``, else the filename date."""
        value = to_date(self.frontmatter.get("date"))
        if isinstance(value, date):
            return value
        return self.filename.date if self.filename is not None else None

    @property
    def tags(self) -> list[str]:
        return normalize_labels(self.frontmatter.get("tags"))

    @property
    def categories(self) -> list[str]:
        return normalize_labels(self.frontmatter.get("categories"))

    def get(self, key: str, default: Any = None) -> Any:
        return self.frontmatter.get(key, default)


def _body_start_line(text: str, body: str) -> int:
    """Number of file lines preceding the body."""
    normalized = text.replace("\r\n", "\n")
    return normalized[: len(normalized) - len(body)].count("\n")


def build_document(
    path: Path,
    rel_path: str,
    kind: DocumentKind,
    text: str | bytes,
    *,
    extensions: tuple[str, ...] | list[str] = DEFAULT_MARKDOWN_EXTENSIONS,
) -> Document:
    """Parse *text* into a :class:`Document`.

    Raw bytes are decoded as UTF-8; undecodable content becomes a
    ``parse_error``.  Post filenames are parsed for ``kind=POST``; drafts
    and pages carry no date in their name.
    """
    filename: PostFilename | None = None
    filename_error: PostFilenameError | None = None
    if kind is DocumentKind.POST:
        try:
            filename = parse_post_filename(path.name, extensions=extensions)
        except PostFilenameError as exc:
            filename_error = exc

    if isinstance(text, bytes):
        try:
            text = text.decode("utf-8").replace("\r\n", "\n").replace("\r", "\n")
        except UnicodeDecodeError as exc:
            return Document(
                path=path,
                rel_path=rel_path,
                kind=kind,
                parse_error=FrontmatterError(
                    f"File is not valid UTF-8 (byte {exc.start})",
                    line=text.count(b"\n", 0, exc.start) + 1,
                ),
                filename=filename,
                filename_error=filename_error,
            )

    block = has_frontmatter(text)
    try:
        fm, body = parse_frontmatter(text)
    except FrontmatterError as exc:
        return Document(
            path=path,
            rel_path=rel_path,
            kind=kind,
            body=text,
            has_block=block,
            parse_error=exc,
            filename=filename,
            filename_error=filename_error,
        )

    return Document(
        path=path,
        rel_path=rel_path,
        kind=kind,
        frontmatter=fm,
        body=body,
        body_line=_body_start_line(text, body) if block else 0,
        has_block=block,
        filename=filename,
        filename_error=filename_error,
    )
