"""Shared Jinja2 template loading with per-site override support."""

from __future__ import annotations

from pathlib import Path

from jinja2 import BaseLoader, ChoiceLoader, Environment, FileSystemLoader, PackageLoader


def build_template_environment(group: str, *, site_root: Path | None = None) -> Environment:
    """Build a Jinja2 environment with site overrides before packaged defaults.

    Overrides are loaded from ``.blogctl/templates/`` inside the site.  Both
    a namespaced directory (for example ``.blogctl/templates/post/``) and
    the shared root are searched.

    Templates produce Markdown that itself contains Liquid, so the Jinja2
    delimiters are changed to ``<< >>`` / ``<% %>`` to let ``{{ }}`` and
    ``{% %}`` pass through untouched.
    """
    loaders: list[BaseLoader] = []
    if site_root is not None:
        template_root = site_root / ".blogctl" / "templates"
        loaders.append(FileSystemLoader([str(template_root / group), str(template_root)]))

    loaders.append(PackageLoader("blogctl", f"templates/{group}"))
    return Environment(
        loader=ChoiceLoader(loaders),
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
        variable_start_string="<<",
        variable_end_string=">>",
        block_start_string="<%",
        block_end_string="%>",
        comment_start_string="<#",
        comment_end_string="#>",
    )
