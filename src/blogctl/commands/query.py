"""Command group: list, look up, and search posts."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from blogctl.commands._base import BlogGroup

if TYPE_CHECKING:
    from blogctl.commands._context import AppContext

_QUERY_EXAMPLES = """\
  blogctl query list --status published --limit 10
  blogctl query get room-migrations
  blogctl query search "room migration"
  blogctl query tags
  blogctl query categories"""


@click.group(cls=BlogGroup, examples=_QUERY_EXAMPLES)
@click.pass_obj
def query(app: AppContext) -> None:
    """List, retrieve, and search posts."""


@query.command(
    name="list",
    examples="""\
  blogctl query list
  blogctl query list --status draft
  blogctl query list --tag kotlin --sort date
  blogctl query list --category android --since 2023-01-01
  blogctl query list --author "Jane Doe" --sort title --limit 5
  blogctl -q query list --status published""",
)
@click.option(
    "--status",
    type=click.Choice(["all", "published", "draft"]),
    default="all",
    help="Publication state filter.",
)
@click.option("--tag", default=None, help="Only posts with this tag.")
@click.option("--category", default=None, help="Only posts in this category.")
@click.option("--author", default=None, help="Only posts by this author.")
@click.option("--since", default=None, help="Modified on or after (YYYY-MM-DD).")
@click.option(
    "--sort",
    type=click.Choice(["modified", "date", "title"]),
    default="modified",
    help="Sort key (dates newest first, title A-Z).",
)
@click.option("--limit", default=None, type=int, help="Max results.")
@click.pass_obj
def list_cmd(
    app: AppContext,
    status: str,
    tag: str | None,
    category: str | None,
    author: str | None,
    since: str | None,
    sort: str,
    limit: int | None,
) -> None:
    """List posts and drafts."""
    from blogctl.services.query import QueryService

    app.emit(
        QueryService(app.site).list_posts(
            status=status,
            tag=tag,
            category=category,
            author=author,
            since=since,
            sort=sort,
            limit=limit,
        )
    )


@query.command(
    examples="""\
  blogctl query get room-migrations
  blogctl -v query get _posts/2019-03-01-room-migrations.md
  blogctl --json query get 2019-03-01-room-migrations"""
)
@click.argument("ref")
@click.pass_obj
def get(app: AppContext, ref: str) -> None:
    """Show one post: metadata, permalink, and references (body with -v)."""
    from blogctl.services.query import QueryService

    app.emit(QueryService(app.site).get_post(ref))


@query.command(
    examples="""\
  blogctl query search "room"
  blogctl query search "coroutine flow*" --limit 5
  blogctl query search "todo" --include-drafts"""
)
@click.argument("query_text")
@click.option("--limit", default=20, type=int, help="Max results.")
@click.option("--include-drafts", is_flag=True, help="Search unpublished posts too.")
@click.pass_obj
def search(app: AppContext, query_text: str, limit: int, include_drafts: bool) -> None:
    """Full-text search over titles, descriptions, and bodies."""
    from blogctl.services.query import QueryService

    app.emit(
        QueryService(app.site).search(query_text, limit=limit, include_drafts=include_drafts)
    )


@query.command(
    examples="""\
  blogctl query tags
  blogctl query tags --published-only"""
)
@click.option("--published-only", is_flag=True, help="Count published posts only.")
@click.pass_obj
def tags(app: AppContext, published_only: bool) -> None:
    """Tags with post counts."""
    from blogctl.services.query import QueryService

    app.emit(QueryService(app.site).tags(published_only=published_only))


@query.command(
    examples="""\
  blogctl query categories
  blogctl --json query categories"""
)
@click.option("--published-only", is_flag=True, help="Count published posts only.")
@click.pass_obj
def categories(app: AppContext, published_only: bool) -> None:
    """Categories with post counts."""
    from blogctl.services.query import QueryService

    app.emit(QueryService(app.site).categories(published_only=published_only))
