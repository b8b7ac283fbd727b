"""
Logging configuration.

Single entry point for configuring structlog. Level and format come from
``FolioSettings`` (``log_level`` / ``log_format``, i.e. FOLIO_LOG_LEVEL and
FOLIO_LOG_FORMAT); explicit arguments win over the settings.

Usage:
    from folio.logging import configure_logging
    configure_logging(settings)
    configure_logging(level="DEBUG", format="json", force=True)
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Literal

import structlog
from structlog.types import Processor

from folio.logging.context import add_context_processor

if TYPE_CHECKING:
    from folio.core.settings import FolioSettings

_configured = False
_handler: logging.Handler | None = None


def configure_logging(
    settings: FolioSettings | None = None,
    *,
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] | None = None,
    format: Literal["json", "console"] | None = None,
    force: bool = False,
) -> None:
    """
    Configure structured logging for the application.

    Should be called once at startup (the CLI does this). Subsequent calls
    are no-ops unless force=True.

    Args:
        settings: Source of ``log_level``/``log_format``; loaded from the
            environment when omitted and an argument below is missing
        level: Log level, overrides ``settings.log_level``
        format: Output format, overrides ``settings.log_format``
        force: Reconfigure even if already configured

    Raises:
        ConfigError: If the settings are loaded here and are invalid
    """
    global _configured

    if _configured and not force:
        return

    if level is None or format is None:
        if settings is None:
            from folio.core.settings import FolioSettings

            settings = FolioSettings.from_env()
        level = level or settings.log_level
        format = format or settings.log_format

    numeric_level = logging.getLevelName(level.upper())
    structlog.configure(
        processors=[*_shared_processors(), _renderer(format)],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _route_to_stderr(numeric_level)

    _configured = True


def _shared_processors() -> list[Processor]:
    return [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        add_context_processor,
        structlog.processors.format_exc_info,
    ]


def _renderer(log_format: str) -> Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer(sort_keys=True)
    return structlog.dev.ConsoleRenderer(
        colors=sys.stderr.isatty(),
        exception_formatter=structlog.dev.plain_traceback,
    )


def _route_to_stderr(level: int) -> None:
    """Install one stderr handler on the root logger; stdout is left to the CLI."""
    global _handler

    root = logging.getLogger()
    if _handler is not None:
        root.removeHandler(_handler)
    _handler = logging.StreamHandler(sys.stderr)
    _handler.setFormatter(logging.Formatter("%(message)s"))
    root.addHandler(_handler)
    root.setLevel(level)
    logging.getLogger("folio").setLevel(level)


def is_configured() -> bool:
    """Check if logging has been configured."""
    return _configured
