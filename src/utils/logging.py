# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Structured logging for the ledger service.

Every module logs through ``logging.getLogger(__name__)`` with %-style
arguments. ``setup_logging`` installs a single root handler whose formatter
runs those records through structlog, so the request context bound by the
request middleware (request id, method, path) and the service environment
are attached to each ledger line. Output is colored console text while
developing and JSON lines otherwise.
"""

import logging
import sys
from typing import TYPE_CHECKING

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

if TYPE_CHECKING:
    from src.core.config.settings import Settings

SERVICE_NAME = "tuition-ledger"

# Third-party loggers capped at WARNING regardless of the configured level
QUIET_LOGGERS = (
    "uvicorn.access",
    "sqlalchemy.engine",
    "sqlalchemy.pool",
    "asyncio",
)


def _service_tagger(environment: str) -> Processor:
    """Build a processor stamping the service name and environment."""

    def tag(_: WrappedLogger, __: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("service", SERVICE_NAME)
        event_dict.setdefault("environment", environment)
        return event_dict

    return tag


def _renderer(settings: "Settings") -> Processor:
    if settings.is_development or settings.debug:
        return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())
    return structlog.processors.JSONRenderer()


def setup_logging(settings: "Settings") -> None:
    """Route stdlib logging through structlog.

    Safe to call more than once; the root handler is replaced each time.

    Args:
        settings: Application settings (log level, environment, debug).
    """
    level = logging.getLevelName(settings.log_level)

    pre_chain: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _service_tagger(settings.environment),
        structlog.processors.format_exc_info,
    ]

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(settings),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def bind_context(**values: object) -> None:
    """Attach values to every log line emitted in the current context.

    Example:
        >>> bind_context(request_id="abc-123", path="/api/admin/enrollments")
    """
    structlog.contextvars.bind_contextvars(**values)


def clear_context() -> None:
    """Drop all values bound with ``bind_context``."""
    structlog.contextvars.clear_contextvars()
