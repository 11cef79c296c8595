import logging
import os

import structlog
from dotenv import load_dotenv

load_dotenv()


def setup_logging(level: int | None = logging.INFO, json_logs: bool | None = None) -> None:
    """
    Configure structured logging for the predictive analytics services.

    Args:
        level: The logging level to use. Defaults to INFO.
        json_logs: Render events as JSON lines instead of the colored console
            output. Defaults to the LOG_FORMAT env var ("json" enables it).
    """
    if json_logs is None:
        json_logs = os.getenv("LOG_FORMAT", "console").lower() == "json"

    logging.basicConfig(level=level)

    if json_logs:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(
            colors=True,
            exception_formatter=structlog.dev.plain_traceback,
            pad_event=50,
        )

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        renderer,
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

setup_logging(level=_LEVELS.get(os.getenv("LOG_LEVEL", "DEBUG").upper(), logging.DEBUG))
