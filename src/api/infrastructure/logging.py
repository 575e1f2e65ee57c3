"""Structlog configuration for the access service.

Every access probe (group, share, resolver, repository and cache) logs
through structlog. Console output is rendered in color for development,
JSON lines otherwise, and every event carries the service name so that
decisions can be traced across processes sharing one Redis cache.
"""

import logging
import os
import sys

import structlog

DEFAULT_SERVICE_NAME = "collab-access"


def configure_logging(debug: bool = False, service: str = DEFAULT_SERVICE_NAME) -> None:
    """Configure structlog for the access probes.

    Access decisions and cache hits are logged at debug level, so they are
    only emitted when debug is True.

    Args:
        debug: Whether to emit debug-level events
        service: Service name bound to every event
    """
    # FORCE_COLOR=1 enables colors even in non-TTY environments (like Docker)
    force_color = os.environ.get("FORCE_COLOR", "").lower() in ("1", "true", "yes")
    use_colors = force_color or sys.stdout.isatty()

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]

    if use_colors:
        processors: list[structlog.types.Processor] = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(colors=True),
        ]
    else:
        processors = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.DEBUG if debug else logging.INFO
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
    structlog.contextvars.bind_contextvars(service=service)
