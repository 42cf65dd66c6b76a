"""Command group: export post metadata."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from blogctl.commands._base import BlogGroup

if TYPE_CHECKING:
    from blogctl.commands._context import AppContext

_EXPORT_EXAMPLES = """\
  blogctl export manifest --output _data/posts.json
  blogctl export tag-pages --output tags/"""


@click.group(cls=BlogGroup, examples=_EXPORT_EXAMPLES)
@click.pass_obj
def export(app: AppContext) -> None:
    """Export post metadata for the site generator."""


@export.command(
    examples="""\
  blogctl export manifest
  blogctl export manifest --output _data/posts.json"""
)
@click.option(
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="File to write (prints the manifest when omitted).",
)
@click.pass_obj
def manifest(app: AppContext, output: Path | None) -> None:
    """JSON list of published posts, newest first."""
    from blogctl.services.export import ExportService

    app.emit(ExportService(app.site).export_manifest(output))


@export.command(
    "tag-pages",
    examples="""\
  blogctl export tag-pages --output tags/""",
)
@click.option(
    "--output",
    type=click.Path(file_okay=False, path_type=Path),
    required=True,
    help="Directory for the generated pages.",
)
@click.pass_obj
def tag_pages(app: AppContext, output: Path) -> None:
    """One Markdown page per tag."""
    from blogctl.services.export import ExportService

    app.emit(ExportService(app.site).export_tag_pages(output))
