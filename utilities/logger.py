"""
Structured logging using structlog.
Provides JSON or console output and a poll-specific logger helper.
"""

import logging
import sys
from pathlib import Path
from typing import Any, Optional, Union
import structlog
from structlog.stdlib import LoggerFactory


def _renderer(log_format: str):
    if log_format == "json":
        return structlog.processors.JSONRenderer(ensure_ascii=False)
    return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())


def setup_logging(
    log_level: str = "INFO",
    log_format: str = "json",
    log_file: Optional[Union[str, Path]] = None,
    debug: bool = False
) -> None:
    """
    Route structlog events through the stdlib root logger.

    Events go to stdout and, when ``log_file`` is set, are appended to that
    file as well. ``debug`` adds module, function and line to every event.
    """
    level = getattr(logging, log_level.upper())
    handlers = [logging.StreamHandler(sys.stdout)]

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    logging.basicConfig(format="%(message)s", level=level, handlers=handlers, force=True)

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if debug:
        processors.append(structlog.processors.CallsiteParameterAdder({
            structlog.processors.CallsiteParameter.MODULE,
            structlog.processors.CallsiteParameter.FUNC_NAME,
            structlog.processors.CallsiteParameter.LINENO,
        }))
    processors.append(_renderer(log_format))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )

    get_logger(__name__).info(
        "Logging system initialized",
        level=log_level,
        format=log_format,
        file=str(log_file) if log_file else None,
        debug=debug
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


class PollLogger:
    """
    Logs the fetch side of a poll cycle.

    Context bound with ``bind_context`` (event id, operation) is attached to
    every event until ``clear_context`` is called.
    """

    def __init__(self, name: str = "tracker"):
        self.logger = get_logger(name)
        self.context = {}

    def bind_context(self, **kwargs) -> 'PollLogger':
        self.context.update(kwargs)
        return self

    def clear_context(self) -> 'PollLogger':
        self.context.clear()
        return self

    def _emit(self, method: str, message: str, **fields: Any) -> None:
        getattr(self.logger, method)(message, **{**self.context, **fields})

    def log_poll_start(self, url: str) -> None:
        self._emit("info", "Schedule fetch started", url=url)

    def log_poll_complete(self, runs: int, duration_seconds: float) -> None:
        self._emit("info", "Schedule fetch completed", runs=runs, duration_seconds=round(duration_seconds, 3))

    def log_error(self, error: str, url: Optional[str] = None, retry_count: Optional[int] = None) -> None:
        self._emit("error", "Schedule fetch error", error=error, url=url, retry_count=retry_count)

    def log_retry(self, url: str, attempt: int, max_attempts: int, delay: float) -> None:
        """Log a retry that is about to wait ``delay`` seconds."""
        self._emit(
            "warning",
            "Retrying schedule fetch",
            url=url,
            attempt=attempt,
            max_attempts=max_attempts,
            delay_seconds=delay
        )
