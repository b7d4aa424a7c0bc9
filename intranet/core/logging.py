"""
Structured logging for the intranet API.

structlog renders JSON in production and console output elsewhere. Every
event carries the request correlation id when one is set, plus the service
and environment names so aggregated logs can be filtered per deployment.
"""

import logging
import sys
from typing import Any

import structlog
from asgi_correlation_id import correlation_id

from intranet.config import get_settings

settings = get_settings()

SERVICE_NAME = "intranet-api"

# Loggers whose records duplicate our own request / job logging
QUIET_LOGGERS = {
    "uvicorn.access": logging.WARNING,
    "apscheduler.executors.default": logging.WARNING,
    "sqlalchemy.engine": logging.WARNING,
    "httpx": logging.WARNING,
}


def add_correlation_id(logger, method_name, event_dict):
    request_id = correlation_id.get()
    if request_id:
        event_dict["request_id"] = request_id
    return event_dict


def add_service_context(logger, method_name, event_dict):
    event_dict.setdefault("service", SERVICE_NAME)
    event_dict.setdefault("env", settings.ENVIRONMENT)
    return event_dict


def _renderer(json_output: bool):
    return structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()


def configure_logging() -> None:
    """Configure structlog and route stdlib records (uvicorn, sqlalchemy, apscheduler) through it."""
    json_output = settings.ENVIRONMENT == "production"

    shared_processors: list[Any] = [
        add_correlation_id,
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if json_output:
        shared_processors.append(add_service_context)

    tail = [structlog.processors.format_exc_info] if json_output else []
    structlog.configure(
        processors=shared_processors + tail + [_renderer(json_output)],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, _renderer(json_output)],
        )
    )

    # Replace rather than append so repeated calls (reload, tests) do not duplicate output
    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(settings.LOG_LEVEL.upper())

    for name, level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(level)
