"""
Logging configuration.

Modules log through ``logging.getLogger(__name__)``; the root handler renders
their records with structlog, as JSON or as console output depending on
``AppSettings.log_format``.
"""
import logging
import sys

import structlog

from estatehub.core.config import AppSettings


def _shared_processors() -> list:
    """Processors applied to every record before rendering."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.stdlib.ExtraAdder(),
        structlog.processors.StackInfoRenderer(),
    ]


def build_formatter(log_format: str) -> structlog.stdlib.ProcessorFormatter:
    """
    Formatter for stdlib handlers.

    Args:
        log_format: "json" for one JSON object per line, "pretty" for console output
    """
    if log_format == "json":
        renderers = [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        renderers = [structlog.dev.ConsoleRenderer(colors=False)]

    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_shared_processors(),
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, *renderers],
    )


def configure_logging(app_settings: AppSettings) -> None:
    """Install a stdout handler on the root logger and route structlog through it."""
    structlog.configure(
        processors=[
            *_shared_processors(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(build_formatter(app_settings.log_format))

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(app_settings.log_level)

    # SQL echo is controlled by DatabaseSettings.database_echo
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
