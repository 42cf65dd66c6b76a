"""Shared pytest fixtures and test helpers for blogctl tests."""

from __future__ import annotations

import logging
from collections.abc import Generator
from datetime import date
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from blogctl.config.settings import BlogSettings
from blogctl.domain.content import render_frontmatter
from blogctl.infrastructure.site import Site
from blogctl.services.telemetry import disable_telemetry


@pytest.fixture(autouse=True)
def _clean_environment(monkeypatch: pytest.MonkeyPatch) -> Generator[None]:
    """No config override from the developer's shell; logging and telemetry reset afterwards."""
    monkeypatch.delenv("BLOGCTL_CONFIG", raising=False)
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    logging.getLogger("blogctl").setLevel(logging.NOTSET)
    disable_telemetry()


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def site_root(tmp_path: Path) -> Path:
    """Temporary site directory with the standard Jekyll layout.

    Single source of truth for the site directory structure; the
    ``site`` and ``_isolated_site`` fixtures build on it.
    """
    (tmp_path / "_posts").mkdir()
    (tmp_path / "_drafts").mkdir()
    (tmp_path / "_layouts").mkdir()
    (tmp_path / "_layouts" / "post.html").write_text("{{ content }}\n", encoding="utf-8")
    (tmp_path / "images").mkdir()
    (tmp_path / "blogctl.toml").write_text('[site]\nname = "test-blog"\n', encoding="utf-8")
    return tmp_path


@pytest.fixture
def site(site_root: Path) -> Generator[Site]:
    """Site over the temporary directory; the index is created on demand."""
    s = Site(BlogSettings.from_cli(site_root=site_root))
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def _isolated_site(site_root: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Change CWD to the temp site so the CLI discovers its blogctl.toml.

    Use via ``@pytest.mark.usefixtures("_isolated_site")`` on command test
    classes.
    """
    monkeypatch.chdir(site_root)


# ---------------------------------------------------------------------------
# Shared test helpers
# ---------------------------------------------------------------------------


def write_post(
    root: Path,
    rel_path: str,
    body: str = "Some text.\n",
    **frontmatter: Any,
) -> Path:
    """Write a Markdown file with *frontmatter* under *root*.

    Without keyword arguments the file gets a minimal valid post header.
    """
    if not frontmatter:
        frontmatter = {"layout": "post", "title": "Untitled", "modified": date(2020, 1, 1)}
    path = root / rel_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_frontmatter(frontmatter, body), encoding="utf-8")
    return path


def write_raw(root: Path, rel_path: str, text: str) -> Path:
    """Write *text* verbatim (for malformed documents)."""
    path = root / rel_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def new_post(site: Site, title: str, **kwargs: Any) -> dict[str, Any]:
    """Create a post via CreateService, asserting success."""
    from blogctl.services.create import CreateService

    result = CreateService(site).new_post(title, **kwargs)
    assert result.ok, result.error
    return result.data
