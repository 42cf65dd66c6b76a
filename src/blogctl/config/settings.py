"""Settings for one blogctl invocation.

Sources, highest priority first:

1. CLI flags, passed to :meth:`BlogSettings.from_cli` as keyword arguments
2. ``BLOGCTL_*`` environment variables (``__`` separates nested keys, e.g.
   ``BLOGCTL_POSTS__DEFAULT_AUTHOR``)
3. ``blogctl.toml``, found by :func:`blogctl.config.discovery.find_config`
4. The defaults in :mod:`blogctl.config.models`

A broken config file or an invalid value is reported as a
``click.ClickException`` so the CLI prints it without a traceback.
"""

from __future__ import annotations

import threading
import tomllib
from pathlib import Path
from typing import Any

import click
from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, TomlConfigSettingsSource

from blogctl.config.discovery import find_config
from blogctl.config.models import (
    CheckConfig,
    ExportConfig,
    PagesConfig,
    PostsConfig,
    SiteConfig,
)

# Config file of the settings object being built.  Sources are created in a
# classmethod, so the path travels through thread-local state.
_pending = threading.local()


def _resolve_config_file(config_path: str | None, site_root: Path | None) -> Path | None:
    if not config_path:
        return find_config(site_root)
    path = Path(config_path)
    if not path.is_file():
        msg = f"Config file not found: {config_path}"
        raise click.ClickException(msg)
    return path


def _describe(exc: ValidationError) -> str:
    lines = []
    for err in exc.errors():
        where = ".".join(str(part) for part in err["loc"]) or "(root)"
        lines.append(f"  {where}: {err['msg']}")
    return "\n".join(lines)


class BlogSettings(BaseSettings):
    """Everything a command needs to know about the site and the flags.

    Attributes:
        site_root: Directory holding ``_posts/``: the config file's
            directory, or the CWD when there is no config file.
        config_path: Config file in effect, or None.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "BLOGCTL_",
        "env_nested_delimiter": "__",
    }

    site_root: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None

    # Global CLI flags
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False
    no_interact: bool = False

    # blogctl.toml sections
    site: SiteConfig = Field(default_factory=SiteConfig)
    posts: PostsConfig = Field(default_factory=PostsConfig)
    pages: PagesConfig = Field(default_factory=PagesConfig)
    check: CheckConfig = Field(default_factory=CheckConfig)
    export: ExportConfig = Field(default_factory=ExportConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """CLI flags, then environment, then ``blogctl.toml``."""
        sources: list[PydanticBaseSettingsSource] = [init_settings, env_settings]
        toml_path = getattr(_pending, "toml_path", None)
        if toml_path is not None:
            sources.append(TomlConfigSettingsSource(settings_cls, toml_file=toml_path))
        return tuple(sources)

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        site_root: Path | None = None,
        **cli_flags: Any,
    ) -> BlogSettings:
        """Build settings for a CLI invocation.

        *config_path* (``--config``) wins over discovery; discovery starts
        at *site_root* or the CWD.  Without an explicit *site_root* the
        config file's directory becomes the site root.
        """
        toml_path = _resolve_config_file(config_path, site_root)
        if site_root is None:
            site_root = toml_path.parent if toml_path else Path.cwd()

        _pending.toml_path = toml_path
        try:
            return cls(site_root=site_root, config_path=toml_path, **cli_flags)
        except tomllib.TOMLDecodeError as exc:
            msg = f"Invalid TOML in {toml_path}: {exc}"
            raise click.ClickException(msg) from exc
        except ValidationError as exc:
            source = f" ({toml_path})" if toml_path else ""
            msg = f"Invalid configuration{source}:\n{_describe(exc)}"
            raise click.ClickException(msg) from exc
        finally:
            _pending.toml_path = None
