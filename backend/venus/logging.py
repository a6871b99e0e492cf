"""structlog configuration shared by every entrypoint that builds a session."""

from __future__ import annotations

import logging
import sys
from typing import IO

import structlog

from venus.config import settings

_LOG_LEVEL_MAP: dict[str, int] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


class _TeeWriter:
    """Mirror log lines to stdout and an append-only file.

    A file that cannot be opened or written is dropped with a warning on
    stderr; stdout logging keeps working.
    """

    def __init__(self, file_path: str) -> None:
        self._file: IO[str] | None = None
        try:
            self._file = open(file_path, "a")  # noqa: SIM115
        except OSError as exc:
            # structlog is not configured yet
            print(
                f"WARNING: Could not open log file {file_path!r}: {exc}. Logging to stdout only.",
                file=sys.stderr,
            )

    def _disable(self, action: str) -> None:
        self._file = None
        print(f"WARNING: Log file {action} failed. File logging disabled.", file=sys.stderr)

    def write(self, data: str) -> None:
        sys.stdout.write(data)
        if self._file is None:
            return
        try:
            self._file.write(data)
            self._file.flush()
        except (OSError, ValueError):
            self._disable("write")

    def flush(self) -> None:
        sys.stdout.flush()
        if self._file is None:
            return
        try:
            self._file.flush()
        except (OSError, ValueError):
            self._disable("flush")


def resolve_level(name: str) -> int:
    """Map a level name from settings to a logging level, defaulting to INFO."""
    return _LOG_LEVEL_MAP.get(name.upper(), logging.INFO)


def configure_logging() -> None:
    """Configure structlog: console output in development, JSON lines elsewhere.

    With VENUS_LOG_FILE set, every line is also appended to that file.
    """
    renderer = (
        structlog.dev.ConsoleRenderer()
        if settings.environment == "development"
        else structlog.processors.JSONRenderer()
    )

    logger_factory: structlog.types.WrappedLogger
    if settings.log_file:
        # PrintLoggerFactory only needs write() and flush()
        logger_factory = structlog.PrintLoggerFactory(file=_TeeWriter(settings.log_file))  # type: ignore[arg-type]
    else:
        logger_factory = structlog.PrintLoggerFactory()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(resolve_level(settings.log_level)),
        context_class=dict,
        logger_factory=logger_factory,
        cache_logger_on_first_use=True,
    )
