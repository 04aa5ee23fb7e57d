r"""Logging configuration and context-scoped loggers.

Every module logs through ``logging.getLogger(__name__)``, so all the
records of the library go through the ``retransport`` logger. The
logger is configured once at process start from an explicit
``LogConfig``, typically read from the environment:

```python
from retransport.log import LogConfig, setup_logging

setup_logging(LogConfig())  # LOG_LEVEL=info LOG_FORMAT=json
```

A request may carry its own logger in its context; the retry transports
emit their diagnostics through ``logger_from_context``:

```python
import logging

from retransport.context import background
from retransport.log import with_logger

ctx = with_logger(background(), logging.getLogger("billing.outbound"))
```
"""

from __future__ import annotations

__all__ = [
    "LOG_FORMATS",
    "LOG_LEVELS",
    "LogConfig",
    "StructuredFormatter",
    "logger_from_context",
    "setup_logging",
    "with_logger",
]

import json
import logging
import sys
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from retransport.context import with_value

if TYPE_CHECKING:
    from typing import TextIO

    from retransport.context import Context

PACKAGE_LOGGER_NAME = "retransport"

# Map the level names accepted in LOG_LEVEL to logging levels
LOG_LEVELS: dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
    "fatal": logging.CRITICAL,
    "panic": logging.CRITICAL,
    "disabled": logging.CRITICAL + 10,
}

# auto: console on a terminal, json otherwise
LOG_FORMATS = ("auto", "console", "json")

CONSOLE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
CONSOLE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Attributes every LogRecord has; anything else was passed with ``extra``
_RECORD_ATTRIBUTES = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "msecs",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "sinfo",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "message",
        "taskName",
    }
)


class LogConfig(BaseSettings):
    """Configuration of the package logger.

    Unset fields are read from the ``LOG_LEVEL`` and ``LOG_FORMAT``
    environment variables, and fall back to the defaults below.
    Explicit keyword arguments win over the environment.

    Args:
        level: The minimum level name, one of ``LOG_LEVELS``
            (case-insensitive).
        format: The output format, one of ``LOG_FORMATS``.

    Raises:
        ValueError: If a level or a format is unknown.

    Example:
        ```pycon
        >>> from retransport.log import LogConfig
        >>> config = LogConfig(level="INFO", format="json")
        >>> config
        LogConfig(level='info', format='json')
        >>> config.levelno
        20

        ```
    """

    level: str = Field(default="debug", description="Minimum log level")
    format: str = Field(default="auto", description="Output format")

    model_config = SettingsConfigDict(env_prefix="LOG_", frozen=True, extra="ignore")

    @field_validator("level")
    @classmethod
    def validate_level(cls, value: str) -> str:
        level = value.lower()
        if level not in LOG_LEVELS:
            msg = f"Unknown log level: {value!r}"
            raise ValueError(msg)
        return level

    @field_validator("format")
    @classmethod
    def validate_format(cls, value: str) -> str:
        if value not in LOG_FORMATS:
            msg = f"log format must be one of {LOG_FORMATS}, got {value!r}"
            raise ValueError(msg)
        return value

    @property
    def levelno(self) -> int:
        return LOG_LEVELS[self.level]


class StructuredFormatter(logging.Formatter):
    """JSON formatter writing one object per log record.

    Standard fields: ``timestamp`` (ISO 8601, UTC), ``level``,
    ``logger``, ``message``, ``module``, ``function``, ``line``. Fields
    passed with ``extra`` are preserved, which is how the retry
    transports attach ``attempt``, ``method``, ``url`` and
    ``status_code``.

    Example:
        ```pycon
        >>> import json
        >>> import logging
        >>> from retransport.log import StructuredFormatter
        >>> record = logging.LogRecord("retransport", logging.INFO, "x.py", 1, "retrying", None, None)
        >>> record.attempt = 2
        >>> payload = json.loads(StructuredFormatter().format(record))
        >>> payload["message"], payload["attempt"]
        ('retrying', 2)

        ```
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        for key, value in record.__dict__.items():
            if key not in _RECORD_ATTRIBUTES:
                log_data[key] = value
        return json.dumps(log_data, default=str)

    def formatTime(  # noqa: N802
        self, record: logging.LogRecord, datefmt: str | None = None
    ) -> str:
        timestamp = datetime.fromtimestamp(record.created, tz=timezone.utc)
        if datefmt:
            return timestamp.strftime(datefmt)
        return timestamp.isoformat()


def setup_logging(config: LogConfig | None = None, stream: TextIO | None = None) -> logging.Logger:
    r"""Configure the package logger.

    Call it once at process start. Calling it again replaces the handler
    installed by the previous call instead of adding a second one.

    Args:
        config: The logging configuration. Defaults to
            ``LogConfig()``, read from the environment.
        stream: The output stream. Defaults to ``sys.stdout``.

    Returns:
        The configured ``retransport`` logger.

    Example:
        ```pycon
        >>> import io
        >>> from retransport.log import LogConfig, setup_logging
        >>> logger = setup_logging(LogConfig(level="info", format="json"), stream=io.StringIO())
        >>> logger.name, logger.level
        ('retransport', 20)

        ```
    """
    if config is None:
        config = LogConfig()
    if stream is None:
        stream = sys.stdout

    output_format = config.format
    if output_format == "auto":
        output_format = "console" if _isatty(stream) else "json"

    handler = logging.StreamHandler(stream)
    if output_format == "json":
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt=CONSOLE_DATE_FORMAT))
    handler._retransport_handler = True  # type: ignore[attr-defined]

    logger = logging.getLogger(PACKAGE_LOGGER_NAME)
    for existing in list(logger.handlers):
        if getattr(existing, "_retransport_handler", False):
            logger.removeHandler(existing)
    logger.addHandler(handler)
    logger.setLevel(config.levelno)
    return logger


def _isatty(stream: TextIO) -> bool:
    isatty = getattr(stream, "isatty", None)
    return bool(isatty is not None and isatty())


class _LoggerKey:
    def __repr__(self) -> str:
        return "retransport.logger"


_LOGGER_KEY = _LoggerKey()


def with_logger(ctx: Context, logger: logging.Logger | logging.LoggerAdapter) -> Context:
    r"""Derive a context carrying a logger.

    Args:
        ctx: The parent context.
        logger: The logger code downstream should use for this request.

    Returns:
        The derived context.
    """
    return with_value(ctx, _LOGGER_KEY, logger)


def logger_from_context(ctx: Context | None) -> logging.Logger | logging.LoggerAdapter:
    r"""Return the logger carried by a context.

    Args:
        ctx: The context to query, or ``None``.

    Returns:
        The logger attached with ``with_logger``, or the ``retransport``
            logger if there is none.

    Example:
        ```pycon
        >>> from retransport.context import background
        >>> from retransport.log import logger_from_context
        >>> logger_from_context(background()).name
        'retransport'

        ```
    """
    logger = None if ctx is None else ctx.value(_LOGGER_KEY)
    if logger is None:
        return logging.getLogger(PACKAGE_LOGGER_NAME)
    return logger
