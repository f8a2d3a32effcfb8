"""Structured logging: a selectable console renderer plus a rotating JSON app log."""

import logging
import logging.handlers
from pathlib import Path

import structlog

from fragments.config import LoggingConfig

# Marks handlers installed here so a second configure_logging call replaces them
_HANDLER_ATTR = "_fragments_handler"


def _console_renderer(style: str) -> structlog.types.Processor:
    if style == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=style == "pretty")


def configure_logging(config: LoggingConfig) -> None:
    """Route structlog and stdlib logging to the console and the app log.

    ``config.console`` picks the console output: ``pretty`` (colored),
    ``plain``, ``json`` or ``off``. Setting ``app_log`` to None disables the
    file. Calling this again replaces the handlers from the previous call.
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, config.level.upper()))
    for handler in list(root_logger.handlers):
        if getattr(handler, _HANDLER_ATTR, False):
            root_logger.removeHandler(handler)
            handler.close()

    # HTTP and Redis clients log connection details at DEBUG
    for name in config.quiet_loggers:
        logging.getLogger(name).setLevel(logging.WARNING)

    handlers: list[logging.Handler] = []

    if config.console != "off":
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                processor=_console_renderer(config.console),
                foreign_pre_chain=shared_processors,
            )
        )
        handlers.append(console_handler)

    if config.app_log:
        Path(config.app_log).parent.mkdir(parents=True, exist_ok=True)
        app_handler = logging.handlers.RotatingFileHandler(
            config.app_log,
            maxBytes=config.max_bytes,
            backupCount=config.backup_count,
            encoding="utf-8",
        )
        app_handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                processor=structlog.processors.JSONRenderer(),
                foreign_pre_chain=shared_processors,
            )
        )
        handlers.append(app_handler)

    for handler in handlers:
        setattr(handler, _HANDLER_ATTR, True)
        root_logger.addHandler(handler)
