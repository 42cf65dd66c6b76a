"""Front matter parsing and rendering.

Documents are Markdown files with an optional YAML block delimited by
``---`` lines.  Parsing uses ruamel.yaml in round-trip mode so that an
edit (``blogctl touch``, ``check --fix``) keeps the author's comments,
quoting, and key order.  The body after the closing delimiter is kept
byte-for-byte.
"""

from __future__ import annotations

from io import StringIO
from typing import Any

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

# ---------------------------------------------------------------------------
# YAML parser
# ---------------------------------------------------------------------------


def _new_yaml() -> YAML:
    """Create a fresh round-trip YAML parser.

    ruamel.yaml's YAML object is stateful; a failed dump can leave a shared
    instance broken, so every call gets its own.
    """
    y = YAML()
    y.preserve_quotes = True
    y.default_flow_style = False
    y.width = 4096
    return y


# ---------------------------------------------------------------------------
# Canonical key ordering
# ---------------------------------------------------------------------------

CANONICAL_KEY_ORDER: list[str] = [
    "layout",
    "title",
    "author",
    "description",
    "date",
    "modified",
    "published",
    "categories",
    "tags",
    "slug",
    "permalink",
]

FRONTMATTER_DELIMITER = "---"


class FrontmatterError(ValueError):
    """Front matter block exists but cannot be decoded.

    ``line`` is the 1-based file line of the problem when known.
    """

    def __init__(self, message: str, *, line: int | None = None) -> None:
        super().__init__(message)
        self.line = line


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def split_frontmatter(content: str) -> tuple[str | None, str]:
    """Split *content* into ``(yaml_block, body)``.

    Returns ``(None, content)`` when the first line is not ``---``.

    Raises:
        FrontmatterError: The opening delimiter has no closing partner.
    """
    normalized = content.replace("\r\n", "\n")
    if normalized.startswith("\ufeff"):
        normalized = normalized[1:]
    lines = normalized.split("\n")
    if not lines or lines[0].rstrip() != FRONTMATTER_DELIMITER:
        return None, content

    for i, line in enumerate(lines[1:], start=1):
        if line.rstrip() == FRONTMATTER_DELIMITER:
            return "\n".join(lines[1:i]), "\n".join(lines[i + 1 :])

    raise FrontmatterError("Front matter block is not terminated by '---'", line=1)


def has_frontmatter(content: str) -> bool:
    """True when *content* opens with a front matter delimiter."""
    first = content.lstrip("\ufeff").split("\n", 1)[0]
    return first.rstrip("\r").rstrip() == FRONTMATTER_DELIMITER


def parse_frontmatter(content: str) -> tuple[dict[str, Any], str]:
    """Parse YAML front matter and body from Markdown *content*.

    Returns:
        A ``(frontmatter, body)`` tuple.  Without a front matter block the
        result is ``({}, content)``.  An empty block gives an empty mapping.

    Raises:
        FrontmatterError: Unterminated block, invalid YAML (duplicate keys
            included), or YAML that is not a mapping.
    """
    block, body = split_frontmatter(content)
    if block is None:
        return {}, content

    try:
        data = _new_yaml().load(block)
    except YAMLError as exc:
        mark = getattr(exc, "problem_mark", None)
        line = mark.line + 2 if mark is not None else None
        problem = getattr(exc, "problem", None) or str(exc).splitlines()[0]
        raise FrontmatterError(f"Invalid YAML: {problem}", line=line) from exc

    if data is None:
        return {}, body
    if not isinstance(data, dict):
        raise FrontmatterError(
            f"Front matter must be a mapping, got {type(data).__name__}", line=2
        )
    return data, body


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def order_frontmatter(fm: dict[str, Any]) -> dict[str, Any]:
    """Return *fm* with keys in canonical order.

    Keys from :data:`CANONICAL_KEY_ORDER` come first, the rest follow
    alphabetically.  ``None`` values are dropped.
    """
    ordered: dict[str, Any] = {}
    for key in CANONICAL_KEY_ORDER:
        if key in fm and fm[key] is not None:
            ordered[key] = fm[key]

    for key in sorted(fm.keys(), key=str):
        if key not in ordered and fm[key] is not None:
            ordered[key] = fm[key]

    return ordered


def render_frontmatter(fm: dict[str, Any], body: str, *, reorder: bool = False) -> str:
    """Render *fm* and *body* back into a Markdown document.

    With ``reorder=False`` the mapping is dumped as given, which keeps a
    round-tripped mapping's comments and layout intact.
    """
    data = order_frontmatter(fm) if reorder else fm
    buf = StringIO()
    if data:
        _new_yaml().dump(data, buf)
    return f"{FRONTMATTER_DELIMITER}\n{buf.getvalue()}{FRONTMATTER_DELIMITER}\n{body}"


def set_frontmatter_key(fm: dict[str, Any], key: str, value: Any) -> None:
    """Set *key* on *fm*, inserting a new canonical key at its canonical slot.

    Round-tripped mappings support positional insert; plain dicts just
    append.
    """
    if key in fm or key not in CANONICAL_KEY_ORDER or not hasattr(fm, "insert"):
        fm[key] = value
        return
    rank = CANONICAL_KEY_ORDER.index(key)
    position = 0
    for i, existing in enumerate(fm):
        if existing in CANONICAL_KEY_ORDER and CANONICAL_KEY_ORDER.index(existing) < rank:
            position = i + 1
    fm.insert(position, key, value)  # type: ignore[attr-defined]
