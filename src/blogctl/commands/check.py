"""Command: lint site content, repair it, or rebuild the index."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from blogctl.commands._base import BlogCommand

if TYPE_CHECKING:
    from blogctl.commands._context import AppContext


@click.command(
    cls=BlogCommand,
    examples="""\
  blogctl check
  blogctl check --errors-only
  blogctl -q check
  blogctl --json check
  blogctl check --fix
  blogctl check --fix --level aggressive
  blogctl check --rebuild""",
)
@click.option(
    "--min-severity",
    type=click.Choice(["warning", "error"]),
    default="warning",
    help="Hide issues below this severity.",
)
@click.option("--errors-only", is_flag=True, help="Shortcut for --min-severity error.")
@click.option("--fix", is_flag=True, help="Repair fixable issues in place.")
@click.option(
    "--level",
    type=click.Choice(["safe", "aggressive"]),
    default="safe",
    help="Repair aggressiveness level.",
)
@click.option("--rebuild", is_flag=True, help="Rebuild the post index from the files.")
@click.pass_obj
def check(
    app: AppContext,
    min_severity: str,
    errors_only: bool,
    fix: bool,
    level: str,
    rebuild: bool,
) -> None:
    """Check posts and pages for content problems.

    Exits with status 1 when any error-level issue is found.
    """
    from blogctl.services.check import CheckService

    svc = CheckService(app.site)

    if rebuild:
        app.emit(svc.rebuild())
    elif fix:
        app.emit(svc.fix(level=level))
    else:
        threshold = "error" if errors_only else min_severity
        result = svc.check(min_severity=threshold)
        app.emit(result, fail=not result.data.get("healthy", True))
