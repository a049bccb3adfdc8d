"""structlog configuration.

Diagnostic events (upstream payload shapes, record counts) are logged at
DEBUG and only emitted when SD_DEBUG_LOGGING is enabled.
"""

import logging

import structlog


def configure_logging(json_output: bool = False, debug: bool = False) -> None:
    """Configure structlog processors and the minimum level."""
    level = logging.DEBUG if debug else logging.INFO
    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )
