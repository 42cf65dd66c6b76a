"""Subcommand modules for blogctl.

:func:`register_commands` imports lazily so ``blogctl --help`` stays fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register command groups and standalone commands on the root group."""
    # --- Groups ---
    from blogctl.commands.export import export
    from blogctl.commands.query import query

    cli.add_command(query)
    cli.add_command(export)

    # --- Standalone commands ---
    from blogctl.commands.check import check
    from blogctl.commands.create import new
    from blogctl.commands.init_cmd import init_cmd
    from blogctl.commands.update import publish, touch, unpublish, update

    cli.add_command(init_cmd)
    cli.add_command(new)
    cli.add_command(check)
    cli.add_command(update)
    cli.add_command(publish)
    cli.add_command(unpublish)
    cli.add_command(touch)
