"""
Application Logger

Every module logs through a child of ``app_logger`` (``practiceiq.<area>``),
so level, format and destinations are decided once, from the environment
or from a ``LoggingConfig`` section.
"""

import os
import sys
import json
import time
import logging
import datetime
import functools
from typing import Any, Callable, Dict, List, Optional, TypeVar, Union

APP_LOGGER_NAME = "practiceiq"

TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-36s | %(message)s"
TEXT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_Func = TypeVar('_Func', bound=Callable[..., Any])

__all__ = [
    'APP_LOGGER_NAME',
    'ContextAdapter',
    'JsonFormatter',
    'app_logger',
    'configure_logger',
    'log_execution_time',
    'with_context',
]


class JsonFormatter(logging.Formatter):
    """
    One JSON object per line.

    Context bound with ``with_context`` (user, unit, question of a
    submission) is written as top-level keys next to the message.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.datetime.fromtimestamp(record.created).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(getattr(record, "context", None) or {})
        if record.exc_info:
            entry["error"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def _handlers(formatter: logging.Formatter, console_output: bool, log_file: Optional[str]) -> List[logging.Handler]:
    handlers: List[logging.Handler] = []
    if console_output:
        handlers.append(logging.StreamHandler(sys.stdout))
    if log_file:
        directory = os.path.dirname(log_file)
        if directory:
            os.makedirs(directory, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


def configure_logger(
    name: str = APP_LOGGER_NAME,
    level: Union[str, int] = logging.INFO,
    use_json: bool = False,
    log_file: Optional[str] = None,
    console_output: bool = True
) -> logging.Logger:
    """
    (Re)configure a logger, replacing any handlers it already has.

    Args:
        name: Logger name
        level: Level name ("debug", "INFO", ...) or number
        use_json: Emit JSON lines instead of the text format
        log_file: Also write to this file, creating its directory
        console_output: Write to stdout

    Returns:
        The configured logger
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    formatter = JsonFormatter() if use_json else logging.Formatter(TEXT_FORMAT, TEXT_DATE_FORMAT)

    logger = logging.getLogger(name)
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    try:
        for handler in _handlers(formatter, console_output, log_file):
            logger.addHandler(handler)
    except OSError as e:
        logger.addHandler(logging.StreamHandler(sys.stderr))
        logger.warning(f"Could not open log file {log_file}: {e}")
    return logger


class ContextAdapter(logging.LoggerAdapter):
    """Logger adapter that stamps a fixed context onto every record."""

    def __init__(self, logger: logging.Logger, context: Optional[Dict[str, Any]] = None):
        super().__init__(logger, dict(context or {}))

    def process(self, msg: Any, kwargs: Any) -> tuple:
        extra = dict(kwargs.get("extra") or {})
        extra["context"] = {**self.extra, **extra.get("context", {})}
        return msg, {**kwargs, "extra": extra}

    def bind(self, **context: Any) -> 'ContextAdapter':
        """Adapter with ``context`` added to this one's."""
        return ContextAdapter(self.logger, {**self.extra, **context})


def with_context(logger: Optional[logging.Logger] = None, **context: Any) -> ContextAdapter:
    """Wrap ``logger`` (``app_logger`` by default) so its records carry ``context``."""
    return ContextAdapter(logger or app_logger, context)


def _from_environment() -> logging.Logger:
    logger = logging.getLogger(APP_LOGGER_NAME)
    if logger.handlers:
        return logger
    return configure_logger(
        level=os.environ.get("LOG_LEVEL", "INFO"),
        use_json=os.environ.get("LOG_JSON", "").lower() in ("1", "true", "yes"),
        log_file=os.environ.get("LOG_FILE"),
    )


app_logger = _from_environment()


def log_execution_time(logger: Optional[logging.Logger] = None) -> Callable[[_Func], _Func]:
    """Log the duration of each call at DEBUG, or at ERROR when it raises."""
    def decorator(func: _Func) -> _Func:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            target = logger or app_logger
            started = time.perf_counter()
            outcome = "failed"
            try:
                result = func(*args, **kwargs)
                outcome = "completed"
                return result
            finally:
                elapsed_ms = (time.perf_counter() - started) * 1000
                log = target.debug if outcome == "completed" else target.error
                log(f"{func.__qualname__} {outcome} in {elapsed_ms:.1f} ms")
        return wrapper  # type: ignore[return-value]
    return decorator
