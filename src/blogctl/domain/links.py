"""Reference extraction: local assets and cross-post links in a body.

Pure functions, no filesystem access.  The site resolves what is extracted
here against the files on disk.

Post bodies are mostly tutorial prose wrapped around Java/Kotlin/XML
samples, so anything inside fenced code, ``{% highlight %}`` / ``{% raw %}``
blocks, or inline code spans is ignored.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import PurePosixPath
from urllib.parse import unquote

# ![alt](target "title") and [text](target "title")
_INLINE_LINK = re.compile(
    r"(?P<bang>!?)\[(?:[^\[\]]|\[[^\]]*\])*\]\(\s*"
    r"(?P<target><[^>]*>|(?:\{\{.*?\}\}|[^)\s])+)"
)
# [id]: target "title"
_REFERENCE_DEF = re.compile(r"^ {0,3}\[[^\]]+\]:\s*(?P<target><[^>]*>|\S+)")
# <img src="..."> <source src=...> <a href=...>
_HTML_ATTR = re.compile(
    r"<(?P<tag>img|source|video|audio|a|link|script)\b[^>]*?\s(?P<attr>src|href)\s*=\s*"
    r"(?P<quote>[\"'])(?P<target>.*?)(?P=quote)",
    re.IGNORECASE,
)
# {% post_url 2019-03-01-room %}  /  {% link _posts/2019-03-01-room.md %}
_LIQUID_POST_URL = re.compile(r"{%-?\s*post_url\s+(?P<target>\S+?)\s*-?%}")
_LIQUID_LINK = re.compile(r"{%-?\s*link\s+(?P<target>\S+?)\s*-?%}")

_FENCE = re.compile(r"^ {0,3}(?P<fence>`{3,}|~{3,})")
_LIQUID_BLOCK_OPEN = re.compile(r"{%-?\s*(?P<tag>highlight|raw)\b[^%]*-?%}")
_INLINE_CODE = re.compile(r"(`+)(?:(?!\1).)+?\1")

_SCHEME = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*:")
_SITE_VARIABLE = re.compile(r"^\{\{-?\s*site\.(?:baseurl|url)\s*-?\}\}")

_PAGE_EXTENSIONS = frozenset({".html", ".htm", ""})

KIND_IMAGE = "image"
KIND_LINK = "link"
KIND_POST_URL = "post_url"
KIND_LIQUID_LINK = "liquid_link"


@dataclass(frozen=True)
class Reference:
    """A reference found in a document body.

    ``target`` is the cleaned local path (no query or fragment, unescaped).
    ``raw`` is the text as written.
    """

    raw: str
    target: str
    kind: str
    line: int


def _strip_angle(target: str) -> str:
    if target.startswith("<") and target.endswith(">"):
        return target[1:-1].strip()
    return target


def clean_target(raw: str) -> str | None:
    """Turn a raw link target into a checkable local path.

    Returns ``None`` for external URLs, pure anchors, and targets that still
    carry Liquid after the ``{{ site.baseurl }}`` prefix is removed.

    Examples:
        >>> clean_target("/images/room.png?v=2#top")
        '/images/room.png'
        >>> clean_target("{{ site.baseurl }}/assets/My%20Diagram.svg")
        '/assets/My Diagram.svg'
        >>> clean_target("https://developer.android.com") is None
        True
    """
    target = _SITE_VARIABLE.sub("", _strip_angle(raw.strip()))
    if not target or target.startswith(("#", "//")) or _SCHEME.match(target):
        return None
    if "{{" in target or "{%" in target:
        return None
    target = target.split("#", 1)[0].split("?", 1)[0]
    if not target:
        return None
    return unquote(target)


def _is_asset_link(target: str) -> bool:
    """Plain links only count as assets when they name a non-HTML file."""
    if target.endswith("/"):
        return False
    return PurePosixPath(target).suffix.lower() not in _PAGE_EXTENSIONS


def _strip_inline_code(line: str) -> str:
    return _INLINE_CODE.sub(lambda m: " " * len(m.group(0)), line)


def _prose_lines(body: str) -> list[tuple[int, str]]:
    """Return ``(line_no, text)`` for body lines outside code blocks."""
    result: list[tuple[int, str]] = []
    fence: str | None = None
    liquid_block: str | None = None

    for line_no, line in enumerate(body.split("\n"), start=1):
        if fence is not None:
            stripped = line.strip()
            if stripped.startswith(fence) and set(stripped) == {fence[0]}:
                fence = None
            continue
        if liquid_block is not None:
            if re.search(r"{%-?\s*end" + liquid_block + r"\s*-?%}", line):
                liquid_block = None
            continue

        fence_match = _FENCE.match(line)
        if fence_match:
            fence = fence_match["fence"]
            continue

        block_match = _LIQUID_BLOCK_OPEN.search(line)
        if block_match:
            tag = block_match["tag"]
            head = line[: block_match.start()]
            tail = line[block_match.end() :]
            if not re.search(r"{%-?\s*end" + tag + r"\s*-?%}", tail):
                liquid_block = tag
            result.append((line_no, _strip_inline_code(head)))
            continue

        result.append((line_no, _strip_inline_code(line)))
    return result


def extract_references(body: str, *, line_offset: int = 0) -> list[Reference]:
    """Extract local asset and post references from Markdown *body*.

    *line_offset* is added to line numbers so they match the file (the body
    starts after the front matter block).
    """
    refs: list[Reference] = []

    def add(raw: str, kind: str, line_no: int) -> None:
        if kind in (KIND_POST_URL, KIND_LIQUID_LINK):
            refs.append(Reference(raw=raw, target=raw.strip(), kind=kind, line=line_no))
            return
        target = clean_target(raw)
        if target is None:
            return
        if kind == KIND_LINK and not _is_asset_link(target):
            return
        refs.append(Reference(raw=raw, target=target, kind=kind, line=line_no))

    for line_no, line in _prose_lines(body):
        file_line = line_no + line_offset
        for match in _LIQUID_POST_URL.finditer(line):
            add(match["target"], KIND_POST_URL, file_line)
        for match in _LIQUID_LINK.finditer(line):
            add(match["target"], KIND_LIQUID_LINK, file_line)
        for match in _INLINE_LINK.finditer(line):
            add(match["target"], KIND_IMAGE if match["bang"] else KIND_LINK, file_line)
        ref_def = _REFERENCE_DEF.match(line)
        if ref_def:
            add(ref_def["target"], KIND_LINK, file_line)
        for match in _HTML_ATTR.finditer(line):
            tag = match["tag"].lower()
            kind = KIND_LINK if tag == "a" else KIND_IMAGE
            add(match["target"], kind, file_line)

    return refs
