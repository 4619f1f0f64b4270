from __future__ import annotations

import logging
import sys

import structlog

_CONFIGURED = False


def _stderr_logger_factory(*_args: object) -> structlog.PrintLogger:
    return structlog.PrintLogger(sys.stderr)


def configure_logging(log_level: str = "INFO", json_logs: bool = True, to_stderr: bool = False) -> None:
    global _CONFIGURED
    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
    ]

    renderer = structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[*shared_processors, structlog.processors.EventRenamer(to="event"), renderer],
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, log_level.upper(), logging.INFO)),
        # Generated text goes to stdout, so front ends route logs to stderr.
        logger_factory=_stderr_logger_factory if to_stderr else structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )
    _CONFIGURED = True


def get_logger(name: str):
    # Library callers keep stdout for their own output until they configure logging.
    if not _CONFIGURED:
        configure_logging(to_stderr=True)
    return structlog.get_logger(name)
