"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, blogctl.toml only contains
overrides.  A fresh site needs only ``[site] name``.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

# --- blogctl.toml sections ---


class SiteConfig(BaseModel):
    """[site] section."""

    model_config = {"frozen": True}

    name: str = "my-blog"
    url: str = ""
    baseurl: str = ""
    posts_dir: str = "_posts"
    drafts_dir: str = "_drafts"
    layouts_dir: str = "_layouts"


class PostsConfig(BaseModel):
    """[posts] section."""

    model_config = {"frozen": True}

    default_layout: str = "post"
    default_author: str = ""
    default_categories: list[str] = Field(default_factory=list)
    required_fields: list[str] = Field(default_factory=lambda: ["layout", "title", "modified"])
    permalink: str = "date"
    markdown_extensions: list[str] = Field(default_factory=lambda: ["md", "markdown"])


class PagesConfig(BaseModel):
    """[pages] section."""

    model_config = {"frozen": True}

    include: list[str] = Field(default_factory=lambda: ["*.md", "*.markdown"])
    exclude: list[str] = Field(
        default_factory=lambda: ["README.md", "CHANGELOG.md", "LICENSE.md", "CONTRIBUTING.md"]
    )
    required_fields: list[str] = Field(default_factory=lambda: ["layout", "title"])


class CheckConfig(BaseModel):
    """[check] section."""

    model_config = {"frozen": True}

    known_layouts: list[str] = Field(default_factory=lambda: ["default", "home", "page", "post"])
    check_assets: bool = True
    future_tolerance_days: int = 0


class ExportConfig(BaseModel):
    """[export] section."""

    model_config = {"frozen": True}

    tag_layout: str = "tag"
    tag_permalink: str = "/tags/:tag/"
