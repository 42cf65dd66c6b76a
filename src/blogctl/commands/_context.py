"""AppContext: shared Click context for all commands.

Created once by the root CLI group and passed to subcommands with
``@click.pass_obj``.  Owns the lazily created Site and routes results to
stdout/stderr with the right exit code.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from blogctl.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from blogctl.config.settings import BlogSettings
    from blogctl.infrastructure.site import Site
    from blogctl.services.result import ServiceResult


class AppContext:
    """State shared by every command of one invocation.

    The Site is built on first access so ``--help`` and ``--version``
    never touch the index.
    """

    def __init__(self, settings: BlogSettings) -> None:
        self.settings = settings
        self._site: Site | None = None

        from blogctl.config.logging import bind_site, configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)
        bind_site(settings.site_root)

        if settings.verbose:
            from blogctl.services.telemetry import enable_telemetry

            enable_telemetry()

    @property
    def site(self) -> Site:
        """The Site for the resolved site root (created lazily)."""
        if self._site is None:
            from blogctl.infrastructure.site import Site

            self._site = Site(self.settings)
        return self._site

    def close(self) -> None:
        if self._site is not None:
            self._site.close()

    def emit(self, result: ServiceResult, *, fail: bool = False) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success: stdout, warnings on stderr (already inside the payload
          in JSON mode).
        * Failure, or *fail* for a successful run that found problems
          (``check``): exit code 1.  Failures go to stderr.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            if output:
                click.echo(output)
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
            if fail:
                raise SystemExit(1)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
