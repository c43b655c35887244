"""Structured logging setup using structlog."""

import logging
import sys

import structlog


def setup_logging(*, json: bool = False, level: str = "INFO") -> None:
    """Configure structlog for the importer process.

    Non-fatal parse errors are reported through this channel, so the level
    decides whether they are visible (``WARNING`` and below shows them).

    Args:
        json: Output JSON lines instead of the human-friendly console renderer
        level: Root log level name (e.g. ``"DEBUG"``, ``"INFO"``)
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    # Documents go to stdout, diagnostics to stderr
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level.upper())


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger, optionally bound to a logger name."""
    return structlog.get_logger(name)


def _stderr_logger_factory(*args) -> structlog.PrintLogger:
    return structlog.PrintLogger(sys.stderr)


def configure_default_logging() -> None:
    """Install the library defaults unless structlog is configured already.

    Without setup_logging only warnings and errors are emitted, on stderr,
    so importing messages from library code stays quiet.
    """
    if structlog.is_configured():
        return

    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(logging.WARNING),
        logger_factory=_stderr_logger_factory,
    )
