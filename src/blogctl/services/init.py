"""InitService: scaffold a new blog site.

Runs before any Site exists, so it takes a path rather than a Site.
"""

from __future__ import annotations

import logging
from pathlib import Path

from blogctl.config.discovery import CONFIG_FILENAME
from blogctl.infrastructure.database.engine import INDEX_DIRNAME, init_database
from blogctl.infrastructure.templates import build_template_environment
from blogctl.services.result import ServiceResult
from blogctl.services.telemetry import traced

logger = logging.getLogger(__name__)

SITE_DIRS = ("_posts", "_drafts", "images", INDEX_DIRNAME)


class InitService:
    """Creates ``blogctl.toml``, the content directories, and the index."""

    @staticmethod
    @traced
    def init_site(
        path: Path,
        *,
        name: str,
        author: str = "",
        url: str = "",
        baseurl: str = "",
    ) -> ServiceResult:
        """Initialize a site at *path*.

        Existing content directories are kept; an existing config is not
        overwritten.
        """
        op = "init_site"
        config_path = path / CONFIG_FILENAME
        if config_path.exists():
            return ServiceResult.failure(
                op,
                "ALREADY_INITIALIZED",
                f"{config_path} already exists",
                detail={"path": str(config_path)},
            )

        created: list[str] = []
        try:
            path.mkdir(parents=True, exist_ok=True)
            for dirname in SITE_DIRS:
                directory = path / dirname
                if not directory.exists():
                    directory.mkdir(parents=True)
                    created.append(f"{dirname}/")

            env = build_template_environment("site")
            config_path.write_text(
                env.get_template("blogctl.toml.j2").render(
                    name=name, author=author, url=url, baseurl=baseurl
                ),
                encoding="utf-8",
            )
            created.append(CONFIG_FILENAME)

            ignore = path / INDEX_DIRNAME / ".gitignore"
            if not ignore.exists():
                ignore.write_text("index.db*\n", encoding="utf-8")
                created.append(f"{INDEX_DIRNAME}/.gitignore")

            init_database(path).dispose()
        except OSError as exc:
            logger.debug("init failed", exc_info=True)
            return ServiceResult.failure(op, "INIT_FAILED", f"Cannot initialize {path}: {exc}")

        return ServiceResult(
            ok=True,
            op=op,
            data={"path": str(path), "name": name, "files_created": created},
        )
