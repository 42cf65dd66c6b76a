"""Front matter schema for posts and pages.

Fields follow the Jekyll conventions the blog relies on::

    layout, title, author, modified, published, tags, categories,
    description

plus ``date``, ``slug`` and ``permalink`` which Jekyll itself interprets.
Unknown keys are allowed and left untouched.

Which keys are *required* is configuration, not schema: every field here is
optional and :func:`validate_frontmatter` applies the required list.
"""

from __future__ import annotations

import datetime as dt
from collections import Counter
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


def split_labels(value: Any) -> Any:
    """Coerce a Jekyll tag/category value into a list.

    Jekyll accepts ``tags: android kotlin`` as shorthand for a list, so a
    string is split on whitespace.  Anything else is passed through for
    pydantic to judge.
    """
    if value is None:
        return []
    if isinstance(value, str):
        return value.split()
    return value


# Jekyll's documented front matter datetime, e.g. "2019-03-01 10:00:00 +0100".
_JEKYLL_DATETIME_FORMATS = ("%Y-%m-%d %H:%M:%S %z", "%Y-%m-%d %H:%M %z")


def to_date(value: Any) -> Any:
    """Reduce datetimes (and ISO or Jekyll datetime strings) to their date."""
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, str):
        text = value.strip()
        if len(text) > 10 and text[:10].count("-") == 2 and text[10] in " T":
            try:
                return dt.datetime.fromisoformat(text).date()
            except ValueError:
                pass
            for fmt in _JEKYLL_DATETIME_FORMATS:
                try:
                    return dt.datetime.strptime(text, fmt).date()
                except ValueError:
                    continue
    return value


class PostFrontmatter(BaseModel):
    """Typed view over a document's front matter."""

    model_config = ConfigDict(frozen=True, extra="allow")

    layout: str | None = None
    title: str | None = None
    author: str | None = None
    description: str | None = None
    date: dt.date | None = None
    modified: dt.date | None = None
    published: bool = True
    categories: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    slug: str | None = None
    permalink: str | None = None

    @field_validator("tags", "categories", mode="before")
    @classmethod
    def _split_labels(cls, value: Any) -> Any:
        value = split_labels(value)
        if isinstance(value, list):
            # Numbers are legal YAML tags (``tags: [2019]``); keep them as text.
            return [str(v) if isinstance(v, int | float) else v for v in value]
        return value

    @field_validator("date", "modified", mode="before")
    @classmethod
    def _reduce_datetime(cls, value: Any) -> Any:
        return to_date(value)

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            msg = "title must not be empty"
            raise ValueError(msg)
        return value


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating one front matter mapping."""

    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    model: PostFrontmatter | None = None


def _format_error(err: dict[str, Any]) -> str:
    loc = ".".join(str(part) for part in err.get("loc", ()))
    msg = str(err.get("msg", "invalid value"))
    msg = msg.removeprefix("Value error, ")
    return f"{loc}: {msg}" if loc else msg


def label_warnings(fm: dict[str, Any]) -> list[str]:
    """Non-fatal problems in ``tags`` / ``categories`` values."""
    warnings: list[str] = []
    for key in ("tags", "categories"):
        raw = fm.get(key)
        if isinstance(raw, str):
            warnings.append(f"{key} is a string; use a YAML list")
            continue
        if not isinstance(raw, list):
            continue
        items = [str(v).strip() if v is not None else "" for v in raw]
        if any(not item for item in items):
            warnings.append(f"{key} contains empty entries")
        counts = Counter(item for item in items if item)
        dupes = sorted(item for item, n in counts.items() if n > 1)
        if dupes:
            warnings.append(f"{key} has duplicate entries: {', '.join(dupes)}")
    return warnings


def validate_frontmatter(
    fm: dict[str, Any],
    *,
    required: list[str] | tuple[str, ...] = (),
) -> ValidationResult:
    """Validate *fm* against the schema and the *required* key list.

    A key is missing when absent or null.  Type problems are reported per
    field as ``"<field>: <reason>"``.
    """
    errors = [
        f"missing required field '{key}'" for key in required if fm.get(key) in (None, "")
    ]

    model: PostFrontmatter | None = None
    try:
        model = PostFrontmatter.model_validate(dict(fm))
    except ValidationError as exc:
        errors.extend(_format_error(err) for err in exc.errors())

    return ValidationResult(
        valid=not errors,
        errors=errors,
        warnings=label_warnings(fm),
        model=model,
    )


def normalize_labels(value: Any) -> list[str]:
    """Clean a tag/category value: list of stripped, unique, non-empty strings."""
    result: list[str] = []
    raw = split_labels(value)
    if not isinstance(raw, list):
        raw = [raw]
    for item in raw:
        text = str(item).strip() if item is not None else ""
        if text and text not in result:
            result.append(text)
    return result
