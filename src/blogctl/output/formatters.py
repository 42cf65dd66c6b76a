"""Output mode selection: Rich for people, JSON for machines.

Commands never format results themselves.  They hand the ServiceResult to
:meth:`AppContext.emit`, which picks the mode from the global flags and
calls :func:`format_result`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from blogctl.output.renderers import render_quiet, render_result

if TYPE_CHECKING:
    from blogctl.services.result import ServiceResult


@dataclass(frozen=True)
class OutputSettings:
    """Global output flags (``--json``, ``-q``, ``-v``)."""

    json_output: bool = False
    quiet: bool = False
    verbose: bool = False


def format_result(
    result: ServiceResult,
    *,
    settings: OutputSettings | None = None,
    json_output: bool = False,
) -> str:
    """Format a ServiceResult for display.

    ``json_output`` is shorthand for ``OutputSettings(json_output=True)``.
    JSON wins over quiet, quiet wins over verbose.
    """
    settings = settings or OutputSettings(json_output=json_output)
    if settings.json_output:
        return result.model_dump_json(indent=2, exclude_none=False)
    if settings.quiet:
        return render_quiet(result)
    return render_result(result, verbose=settings.verbose)
