"""Command: scaffold a new post or draft."""

from __future__ import annotations

import datetime as dt
from typing import TYPE_CHECKING

import click

from blogctl.commands._base import BlogCommand

if TYPE_CHECKING:
    from blogctl.commands._context import AppContext


def split_csv(value: str | None) -> list[str] | None:
    """``"a, b"`` -> ``["a", "b"]``; None stays None."""
    if value is None:
        return None
    return [part.strip() for part in value.split(",") if part.strip()]


@click.command(
    cls=BlogCommand,
    examples="""\
  blogctl new "Room Database Migrations"
  blogctl new "Kotlin Flows" --tags kotlin,coroutines --categories android
  blogctl new "Half-baked idea" --draft
  blogctl new "Release notes" --date 2024-05-01 --layout post""",
)
@click.argument("title")
@click.option("--tags", default=None, help="Comma-separated tags.")
@click.option("--categories", default=None, help="Comma-separated categories.")
@click.option("--description", default=None, help="Subtitle / summary.")
@click.option("--author", default=None, help="Byline (defaults to posts.default_author).")
@click.option("--layout", default=None, help="Layout (defaults to posts.default_layout).")
@click.option("--draft", is_flag=True, help="Write to the drafts directory.")
@click.option(
    "--date",
    "post_date",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    default=None,
    help="Post date (YYYY-MM-DD, default today).",
)
@click.pass_obj
def new(
    app: AppContext,
    title: str,
    tags: str | None,
    categories: str | None,
    description: str | None,
    author: str | None,
    layout: str | None,
    draft: bool,
    post_date: dt.datetime | None,
) -> None:
    """Create a new post from the post template."""
    from blogctl.services.create import CreateService

    app.emit(
        CreateService(app.site).new_post(
            title,
            tags=split_csv(tags),
            categories=split_csv(categories),
            description=description,
            author=author,
            layout=layout,
            draft=draft,
            post_date=post_date.date() if post_date else None,
        )
    )
