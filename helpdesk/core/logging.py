"""
Logging configuration for the helpdesk.
structlog everywhere: JSON lines in production, console rendering in dev.
Stdlib loggers (uvicorn, sqlalchemy) go through the same formatter.
"""

import logging
import sys
from typing import Any

import structlog
from asgi_correlation_id import correlation_id

from helpdesk.config import Settings, get_settings

_HANDLER_NAME = "helpdesk-structlog"

# RequestLoggingMiddleware already logs every request
_QUIETED_LOGGERS = {"uvicorn.access": logging.WARNING, "sqlalchemy.engine": logging.WARNING}


def add_correlation_id(logger, method_name, event_dict):
    request_id = correlation_id.get()
    if request_id:
        event_dict["request_id"] = request_id
    return event_dict


def _service_stamp(settings: Settings):
    def stamp(logger, method_name, event_dict):
        event_dict.setdefault("service", "helpdesk")
        event_dict.setdefault("env", settings.ENVIRONMENT)
        return event_dict
    return stamp


def _shared_processors(settings: Settings) -> list[Any]:
    return [
        structlog.contextvars.merge_contextvars,
        add_correlation_id,
        _service_stamp(settings),
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _renderers(settings: Settings) -> list[Any]:
    if settings.ENVIRONMENT == "production":
        return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer(ensure_ascii=False)]
    return [structlog.dev.ConsoleRenderer()]


def configure_logging() -> None:
    """Route structlog and stdlib logging to stdout. Safe to call more than once."""
    settings = get_settings()
    shared = _shared_processors(settings)

    structlog.configure(
        processors=shared + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, *_renderers(settings)],
        )
    )

    root_logger = logging.getLogger()
    for existing in [h for h in root_logger.handlers if h.get_name() == _HANDLER_NAME]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(settings.LOG_LEVEL.upper())

    for name, level in _QUIETED_LOGGERS.items():
        logging.getLogger(name).setLevel(level)
