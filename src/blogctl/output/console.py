"""Rich Console factory and theme for blogctl output.

Consoles render into a StringIO buffer so renderers keep the
``format_result() -> str`` contract.  Rich drops color codes by itself
when the output is not a terminal (tests, pipes).
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

BLOG_THEME = Theme(
    {
        "blog.ok": "bold green",
        "blog.error": "bold red",
        "blog.warning": "bold yellow",
        "blog.op": "bold cyan",
        "blog.key": "dim",
        "blog.path": "dim",
        "blog.title": "bold",
        "blog.url": "blue",
        "blog.published": "green",
        "blog.draft": "yellow",
        "blog.score": "magenta",
    }
)

_STATUS_STYLES: dict[str, str] = {
    "published": "blog.published",
    "draft": "blog.draft",
}


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer."""
    return Console(
        file=StringIO(),
        theme=BLOG_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Rendered text of a StringIO-backed Console."""
    buffer = console.file
    if not isinstance(buffer, StringIO):
        msg = "console was not created by create_console()"
        raise TypeError(msg)
    return buffer.getvalue()


def style_for_status(status: str) -> str:
    """Rich style name for a post status."""
    return _STATUS_STYLES.get(status, "")
