"""Shared service-layer helper functions."""

from __future__ import annotations

from datetime import UTC, date, datetime
from typing import Any


def today() -> date:
    """Today's date (local calendar, as Jekyll sees it)."""
    return date.today()


def now_iso() -> str:
    """Current UTC time as ISO 8601 (index bookkeeping)."""
    return datetime.now(UTC).isoformat()


def parse_since(value: str | None) -> date | None:
    """Parse a ``YYYY-MM-DD`` filter value.

    Raises:
        ValueError: *value* is not an ISO date.
    """
    if not value:
        return None
    return date.fromisoformat(value)


def to_plain(value: Any) -> Any:
    """Convert round-tripped YAML values to JSON-friendly builtins."""
    if isinstance(value, dict):
        return {str(k): to_plain(v) for k, v in value.items()}
    if isinstance(value, list | tuple):
        return [to_plain(v) for v in value]
    if isinstance(value, date):
        return value.isoformat()
    if value is None or isinstance(value, bool | int | float):
        return value
    return str(value)
