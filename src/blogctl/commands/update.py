"""Commands: edit front matter, publish, unpublish, touch."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import click

from blogctl.commands._base import BlogCommand
from blogctl.commands.create import split_csv

if TYPE_CHECKING:
    from blogctl.commands._context import AppContext


@click.command(
    cls=BlogCommand,
    examples="""\
  blogctl update room-migrations --title "Room Migrations, Revisited"
  blogctl update 2019-03-01-room-migrations.md --add-tags room,sqlite
  blogctl update _posts/2019-03-01-room-migrations.md --remove-tags java
  blogctl update room-migrations --layout post --description "Schema changes" """,
)
@click.argument("ref")
@click.option("--title", default=None, help="New title.")
@click.option("--description", default=None, help="New description.")
@click.option("--author", default=None, help="New author.")
@click.option("--layout", default=None, help="New layout.")
@click.option("--add-tags", default=None, help="Comma-separated tags to add.")
@click.option("--remove-tags", default=None, help="Comma-separated tags to remove.")
@click.option("--add-categories", default=None, help="Comma-separated categories to add.")
@click.option("--remove-categories", default=None, help="Comma-separated categories to remove.")
@click.pass_obj
def update(
    app: AppContext,
    ref: str,
    title: str | None,
    description: str | None,
    author: str | None,
    layout: str | None,
    add_tags: str | None,
    remove_tags: str | None,
    add_categories: str | None,
    remove_categories: str | None,
) -> None:
    """Edit a post's front matter and bump its modified date.

    REF is a slug, a filename, or a site-relative path.
    """
    from blogctl.services.update import UpdateService

    changes: dict[str, Any] = {
        "title": title,
        "description": description,
        "author": author,
        "layout": layout,
        "add_tags": split_csv(add_tags),
        "remove_tags": split_csv(remove_tags),
        "add_categories": split_csv(add_categories),
        "remove_categories": split_csv(remove_categories),
    }
    changes = {k: v for k, v in changes.items() if v is not None}
    app.emit(UpdateService(app.site).update(ref, changes=changes))


@click.command(
    cls=BlogCommand,
    examples="""\
  blogctl publish room-migrations
  blogctl publish _drafts/kotlin-flows.md""",
)
@click.argument("ref")
@click.pass_obj
def publish(app: AppContext, ref: str) -> None:
    """Publish a post (drafts move into the posts directory)."""
    from blogctl.services.update import UpdateService

    app.emit(UpdateService(app.site).publish(ref))


@click.command(
    cls=BlogCommand,
    examples="""\
  blogctl unpublish room-migrations""",
)
@click.argument("ref")
@click.pass_obj
def unpublish(app: AppContext, ref: str) -> None:
    """Mark a post ``published: false``."""
    from blogctl.services.update import UpdateService

    app.emit(UpdateService(app.site).unpublish(ref))


@click.command(
    cls=BlogCommand,
    examples="""\
  blogctl touch room-migrations""",
)
@click.argument("ref")
@click.pass_obj
def touch(app: AppContext, ref: str) -> None:
    """Set a post's modified date to today."""
    from blogctl.services.update import UpdateService

    app.emit(UpdateService(app.site).touch(ref))
