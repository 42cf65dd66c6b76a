"""Filesystem operations for site content.

INVARIANT: Files are truth. The index database is derived and
``blogctl check --rebuild`` must always be able to recreate it from the
Markdown files alone.

Pure parsing lives in :mod:`blogctl.domain`.  This module handles path checks
and content discovery.
"""

from __future__ import annotations

import fnmatch
from pathlib import Path

# Directories never searched for content.
_SKIP_DIRS = frozenset({".blogctl", ".git", ".jekyll-cache", "_site", "node_modules", "vendor"})


# ---------------------------------------------------------------------------
# Path resolution
# ---------------------------------------------------------------------------


def ensure_within(root: Path, path: Path) -> Path:
    """Return *path* if it stays inside *root*.

    Raises:
        ValueError: *path* escapes *root* (e.g. through ``..`` segments).
    """
    if not path.resolve().is_relative_to(root.resolve()):
        msg = f"Path escapes site root: {path}"
        raise ValueError(msg)
    return path


def relative_posix(root: Path, path: Path) -> str:
    """Site-relative path with forward slashes."""
    return path.relative_to(root).as_posix()


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------


def _is_markdown(path: Path, extensions: tuple[str, ...]) -> bool:
    return path.suffix.lstrip(".").lower() in extensions


def _skipped(root: Path, path: Path) -> bool:
    return any(part in _SKIP_DIRS for part in path.relative_to(root).parts)


def find_markdown_files(
    site_root: Path,
    directory: str,
    *,
    extensions: tuple[str, ...] | list[str],
) -> list[Path]:
    """All Markdown files below ``site_root / directory``, sorted."""
    base = site_root / directory
    if not base.is_dir():
        return []
    exts = tuple(e.lower() for e in extensions)
    return sorted(
        path
        for path in base.rglob("*")
        if path.is_file() and _is_markdown(path, exts) and not _skipped(site_root, path)
    )


def find_pages(
    site_root: Path,
    *,
    include: list[str],
    exclude: list[str],
) -> list[Path]:
    """Root-level pages matching *include* globs and none of *exclude*."""
    if not site_root.is_dir():
        return []
    results: list[Path] = []
    for path in site_root.iterdir():
        if not path.is_file():
            continue
        name = path.name
        if not any(fnmatch.fnmatch(name, pattern) for pattern in include):
            continue
        if any(fnmatch.fnmatch(name, pattern) for pattern in exclude):
            continue
        results.append(path)
    return sorted(results)
