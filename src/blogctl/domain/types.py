"""Document kinds and issue classification enums."""

from __future__ import annotations

from enum import StrEnum


class DocumentKind(StrEnum):
    """Where a Markdown document lives in the site."""

    POST = "post"
    DRAFT = "draft"
    PAGE = "page"


class PostStatus(StrEnum):
    """Publication state derived from location and ``published``."""

    PUBLISHED = "published"
    DRAFT = "draft"


class Severity(StrEnum):
    """Issue severity reported by the content linter."""

    WARNING = "warning"
    ERROR = "error"

    @property
    def rank(self) -> int:
        return 1 if self is Severity.ERROR else 0


class IssueCategory(StrEnum):
    """Groups of linter rules."""

    FRONTMATTER = "frontmatter"
    LAYOUT = "layout"
    FILENAME = "filename"
    DATES = "dates"
    PERMALINKS = "permalinks"
    ASSETS = "assets"
    LINKS = "links"
