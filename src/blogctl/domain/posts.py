"""Post filenames, slugs, and permalinks.

Posts follow the ``YYYY-MM-DD-slug.<ext>`` convention.  Permalinks are
expanded the way Jekyll does it: a named style or a template of
``:placeholder`` tokens, overridable per document with ``permalink:``.

INVARIANT: every document in a site resolves to a unique permalink.
"""

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass
from datetime import date
from pathlib import PurePosixPath

POST_FILENAME_PATTERN = re.compile(
    r"^(?P<year>\d{4})-(?P<month>\d{2})-(?P<day>\d{2})-(?P<slug>.+)\.(?P<ext>[A-Za-z0-9]+)$"
)

DEFAULT_MARKDOWN_EXTENSIONS: tuple[str, ...] = ("md", "markdown")

PERMALINK_STYLES: dict[str, str] = {
    "date": "/:categories/:year/:month/:day/:title:output_ext",
    "pretty": "/:categories/:year/:month/:day/:title/",
    "ordinal": "/:categories/:year/:y_day/:title:output_ext",
    "none": "/:categories/:title:output_ext",
}

_PLACEHOLDER = re.compile(r":([a-z_]+)")


class PostFilenameError(ValueError):
    """A post filename does not follow ``YYYY-MM-DD-slug.ext``.

    ``reason`` is ``"pattern"`` or ``"date"``.
    """

    def __init__(self, message: str, *, reason: str) -> None:
        super().__init__(message)
        self.reason = reason


@dataclass(frozen=True)
class PostFilename:
    """Date and slug embedded in a post filename."""

    date: date
    slug: str
    ext: str

    @property
    def name(self) -> str:
        return f"{self.date.isoformat()}-{self.slug}.{self.ext}"


def parse_post_filename(
    name: str,
    *,
    extensions: tuple[str, ...] | list[str] = DEFAULT_MARKDOWN_EXTENSIONS,
) -> PostFilename:
    """Parse a post filename such as ``2019-03-01-room-migrations.md``.

    Raises:
        PostFilenameError: With ``reason="pattern"`` when the name does not
            have the shape, ``reason="date"`` when the date is not a real day.
    """
    match = POST_FILENAME_PATTERN.match(name)
    if match is None or match["ext"].lower() not in extensions:
        msg = f"'{name}' does not match YYYY-MM-DD-slug.{{{','.join(extensions)}}}"
        raise PostFilenameError(msg, reason="pattern")

    try:
        post_date = date(int(match["year"]), int(match["month"]), int(match["day"]))
    except ValueError as exc:
        msg = f"'{name}' has an invalid date: {exc}"
        raise PostFilenameError(msg, reason="date") from exc

    return PostFilename(date=post_date, slug=match["slug"], ext=match["ext"])


def slugify(title: str) -> str:
    """URL slug for *title*.

    Examples:
        >>> slugify("Room: Migrations 101!")
        'room-migrations-101'
        >>> slugify("  Über Café  ")
        'uber-cafe'
    """
    text = unicodedata.normalize("NFKD", title)
    text = text.encode("ascii", "ignore").decode("ascii").lower()
    text = re.sub(r"[^a-z0-9]+", "-", text)
    return text.strip("-")


def post_filename(post_date: date, title: str, *, ext: str = "md") -> str:
    """Filename for a new post."""
    return f"{post_date.isoformat()}-{slugify(title)}.{ext}"


# ---------------------------------------------------------------------------
# Permalinks
# ---------------------------------------------------------------------------


def _expand(template: str, values: dict[str, str]) -> str:
    def replace(match: re.Match[str]) -> str:
        key = match.group(1)
        return values.get(key, match.group(0))

    return _PLACEHOLDER.sub(replace, template)


def _normalize_url(url: str) -> str:
    url = re.sub(r"/{2,}", "/", url)
    if not url.startswith("/"):
        url = "/" + url
    return url


def _categories_path(categories: list[str]) -> str:
    seen: list[str] = []
    for category in categories:
        lowered = str(category).lower()
        if lowered and lowered not in seen:
            seen.append(lowered)
    return "/".join(seen)


def build_permalink(
    style: str,
    *,
    post_date: date,
    slug: str,
    categories: list[str] | None = None,
    override: str | None = None,
    output_ext: str = ".html",
) -> str:
    """Expand the permalink for a post.

    *style* is a named style from :data:`PERMALINK_STYLES` or a template.
    A front matter *override* wins over *style*; it may use placeholders too.

    Examples:
        >>> from datetime import date
        >>> day = date(2019, 3, 1)
        >>> build_permalink("date", post_date=day, slug="room", categories=["Android"])
        '/android/2019/03/01/room.html'
        >>> build_permalink("pretty", post_date=day, slug="room")
        '/2019/03/01/room/'
    """
    template = override or PERMALINK_STYLES.get(style, style)
    values = {
        "year": f"{post_date.year:04d}",
        "month": f"{post_date.month:02d}",
        "day": f"{post_date.day:02d}",
        "i_month": str(post_date.month),
        "i_day": str(post_date.day),
        "short_year": f"{post_date.year % 100:02d}",
        "y_day": f"{post_date.timetuple().tm_yday:03d}",
        "title": slug,
        "slug": slug,
        "categories": _categories_path(categories or []),
        "output_ext": output_ext,
    }
    return _normalize_url(_expand(template, values))


def page_permalink(rel_path: str, *, style: str = "date", override: str | None = None) -> str:
    """Permalink for an undated page such as ``about.md``.

    Examples:
        >>> page_permalink("about.md")
        '/about.html'
        >>> page_permalink("about.md", style="pretty")
        '/about/'
        >>> page_permalink("docs/index.md")
        '/docs/'
    """
    if override:
        return _normalize_url(override)

    path = PurePosixPath(rel_path)
    parent = "" if str(path.parent) == "." else f"{path.parent}/"
    if path.stem == "index":
        return _normalize_url(f"/{parent}")
    if style == "pretty":
        return _normalize_url(f"/{parent}{path.stem}/")
    return _normalize_url(f"/{parent}{path.stem}.html")
