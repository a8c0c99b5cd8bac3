"""structlog setup for orchestrator runs.

Library modules log through ``logging.getLogger(__name__)``; the records are
rendered by structlog so that lines from a run carry its ``run_id``.
"""

import logging
import sys
from pathlib import Path

import structlog

_SHARED_PROCESSORS = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
]

# Chatty at INFO and never useful to an operator watching a batch
_QUIET_LOGGERS = ("sqlalchemy.engine", "aiosqlite", "asyncio")


def _formatter(renderer) -> structlog.stdlib.ProcessorFormatter:
    return structlog.stdlib.ProcessorFormatter(
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        foreign_pre_chain=_SHARED_PROCESSORS,
    )


def configure_logging(
    log_level: str = "info",
    json_output: bool = False,
    log_file: str | Path | None = None,
) -> None:
    """Route all logging to stderr, and optionally to a JSON-lines file.

    Args:
        log_level: debug/info/warning/error.
        json_output: Render stderr as JSON instead of the console format.
        log_file: Extra JSON-lines copy of the log, e.g. kept next to the
            map files of a long farm run.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    structlog.configure(
        processors=_SHARED_PROCESSORS + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    if json_output:
        console_renderer = structlog.processors.JSONRenderer()
    else:
        console_renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    handlers[0].setFormatter(_formatter(console_renderer))

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(_formatter(structlog.processors.JSONRenderer()))
        handlers.append(file_handler)

    root_logger = logging.getLogger()
    for old in root_logger.handlers[:]:
        root_logger.removeHandler(old)
        old.close()
    for handler in handlers:
        root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def bind_run_context(run_id: str, operation: str | None = None) -> None:
    """Tag every subsequent log line with the run and the CLI operation."""
    ctx = {"run_id": run_id}
    if operation:
        ctx["operation"] = operation
    structlog.contextvars.bind_contextvars(**ctx)


def clear_run_context() -> None:
    structlog.contextvars.clear_contextvars()
