"""structlog setup for clc-exec.

Format, level and service name come from ``Settings`` (``LOG_FORMAT``,
``LOG_LEVEL``, ``SERVICE_NAME``). The CLI may force JSON output on top of them.

Usage:
    from clc_exec.logging_config import get_logger, setup_logging

    setup_logging()
    logger = get_logger(__name__)
    logger.info("package_execution_started", server_id=server_id)
"""

import logging
import sys
from typing import Any, Literal

import structlog
from structlog.types import EventDict, Processor

from clc_exec.config import Settings, get_settings

SECRET_KEYS = frozenset({"password", "bearer_token", "authorization"})

# Their request lines duplicate our own clc_* events.
NOISY_LOGGERS = ("httpx", "httpcore")


def redact_secrets(_logger: Any, _method: str, event_dict: EventDict) -> EventDict:
    """Mask credential values that end up in an event by accident."""
    for key in SECRET_KEYS.intersection(event_dict):
        event_dict[key] = "***"
    return event_dict


def _renderer(log_format: str) -> Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(
        colors=sys.stdout.isatty(),
        exception_formatter=structlog.dev.plain_traceback,
    )


def setup_logging(
    settings: Settings | None = None,
    *,
    log_format: Literal["json", "console"] | None = None,
) -> None:
    """Configure stdlib logging and structlog.

    Args:
        settings: Source of service name, format and level; the cached
            settings when omitted.
        log_format: Overrides settings.log_format.
    """
    settings = settings or get_settings()
    log_format = log_format or settings.log_format
    level = logging.getLevelName(settings.log_level)

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level, force=True)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        redact_secrets,
        structlog.processors.format_exc_info,
        _renderer(log_format),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    structlog.contextvars.bind_contextvars(service=settings.service_name)

    get_logger(__name__).debug(
        "logging_initialized", log_format=log_format, log_level=settings.log_level
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
