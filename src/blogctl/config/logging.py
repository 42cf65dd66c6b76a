"""Log output for blogctl.

Modules log through ``logging.getLogger(__name__)`` or structlog; both end
up in one stderr handler whose renderer is picked by ``--log-json``:

- Human (default): structlog console renderer, colored on a terminal
- JSON: one object per line, keys sorted
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, TextIO

import structlog

if TYPE_CHECKING:
    from pathlib import Path

    from structlog.types import Processor

HANDLER_NAME = "blogctl"

# Third-party loggers that only matter when debugging them directly.
QUIET_LIBRARIES = ("sqlalchemy.engine", "sqlalchemy.pool")


def _pre_chain() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _build_handler(stream: TextIO, *, log_json: bool) -> logging.Handler:
    final: list[Processor] = [structlog.stdlib.ProcessorFormatter.remove_processors_meta]
    if log_json:
        final += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(sort_keys=True),
        ]
    else:
        final.append(structlog.dev.ConsoleRenderer(colors=stream.isatty()))

    handler = logging.StreamHandler(stream)
    handler.set_name(HANDLER_NAME)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(foreign_pre_chain=_pre_chain(), processors=final)
    )
    return handler


def configure_logging(
    *,
    verbose: bool = False,
    log_json: bool = False,
    stream: TextIO | None = None,
) -> None:
    """Route structlog and stdlib records to *stream* (default stderr).

    Calling it again replaces the previous blogctl handler; handlers that
    other code installed on the root logger are left alone.

    Args:
        verbose: ``blogctl.*`` at DEBUG instead of WARNING.
        log_json: JSON lines instead of the console renderer.
        stream: Destination, resolved at call time so redirected stderr
            (test runners, ``CliRunner``) is honored.
    """
    target = stream if stream is not None else sys.stderr

    structlog.configure(
        processors=[*_pre_chain(), structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    root = logging.getLogger()
    for existing in [h for h in root.handlers if h.get_name() == HANDLER_NAME]:
        root.removeHandler(existing)
    root.addHandler(_build_handler(target, log_json=log_json))
    root.setLevel(logging.WARNING)

    logging.getLogger("blogctl").setLevel(logging.DEBUG if verbose else logging.WARNING)
    for name in QUIET_LIBRARIES:
        logging.getLogger(name).setLevel(logging.WARNING)


def bind_site(site_root: Path) -> None:
    """Tag every log line of this invocation with the site root."""
    structlog.contextvars.bind_contextvars(site=str(site_root))
