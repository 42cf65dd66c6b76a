"""Command: site initialization (named init_cmd to avoid shadowing builtins)."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from blogctl.commands._base import BlogCommand

if TYPE_CHECKING:
    from blogctl.commands._context import AppContext

_INIT_EXAMPLES = """\
  blogctl init
  blogctl init ~/blog --name "Android Notes" --author "Jane Doe"
  blogctl init . --url https://example.github.io --baseurl /blog
  blogctl --no-interact init /tmp/site --name demo"""


@click.command("init", cls=BlogCommand, examples=_INIT_EXAMPLES)
@click.argument("path", required=False, default=".")
@click.option("--name", default=None, help="Site name.")
@click.option("--author", default=None, help="Default post author.")
@click.option("--url", default=None, help="Site URL (e.g. https://example.com).")
@click.option("--baseurl", default="", help="Subpath the site is served under.")
@click.pass_obj
def init_cmd(
    app: AppContext,
    path: str,
    name: str | None,
    author: str | None,
    url: str | None,
    baseurl: str,
) -> None:
    """Initialize blogctl in a Jekyll-style site directory."""
    site_path = Path(path).resolve()
    interactive = not app.settings.no_interact

    if name is None:
        name = click.prompt("Site name", default=site_path.name) if interactive else site_path.name
    if author is None:
        author = click.prompt("Default author", default="") if interactive else ""
    if url is None:
        url = click.prompt("Site URL", default="") if interactive else ""

    from blogctl.services.init import InitService

    app.emit(InitService.init_site(site_path, name=name, author=author, url=url, baseurl=baseurl))
