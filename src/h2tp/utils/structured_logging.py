r"""Machine-readable log output for the request engine.

Every attempt emits one settlement record through ``log_structured``
with the method, URL, final status code or error type and the attempt
duration. The records are plain ``logging`` records: they only become
JSON when a handler uses ``StructuredFormatter``.

Example:
    Print the engine records as JSON lines:

    ```python
    import logging
    from h2tp.utils.structured_logging import enable_structured_logging

    enable_structured_logging(level=logging.DEBUG)
    ```

    Tag the records of a batch of requests:

    ```python
    from h2tp import request
    from h2tp.utils.structured_logging import clear_correlation_id, set_correlation_id

    set_correlation_id("batch-42")
    try:
        outcome = request("https://api.example.com/data")
    finally:
        clear_correlation_id()
    ```

"""

from __future__ import annotations

__all__ = [
    "StructuredFormatter",
    "clear_correlation_id",
    "enable_structured_logging",
    "get_correlation_id",
    "log_structured",
    "set_correlation_id",
]

import contextvars
import json
import logging
import time
from typing import Any

_correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "h2tp_correlation_id", default=None
)

# Attributes every ``logging.LogRecord`` carries, never copied as extra fields
_RECORD_ATTRIBUTES = frozenset(
    vars(logging.LogRecord("", logging.NOTSET, "", 0, "", (), None)).keys()
) | {"message", "asctime", "taskName"}


def get_correlation_id() -> str | None:
    """Return the correlation ID of the current context.

    Example:
        ```pycon
        >>> from h2tp.utils.structured_logging import get_correlation_id
        >>> get_correlation_id()

        ```
    """
    return _correlation_id.get()


def set_correlation_id(correlation_id: str) -> None:
    """Set the correlation ID of the current context.

    The value is stored in a context variable, so concurrent tasks
    started after this call inherit it without seeing each other's
    updates.

    Args:
        correlation_id: The identifier attached to every structured
            record, e.g. a trace ID.

    Example:
        ```pycon
        >>> from h2tp.utils.structured_logging import (
        ...     clear_correlation_id,
        ...     get_correlation_id,
        ...     set_correlation_id,
        ... )
        >>> set_correlation_id("batch-42")
        >>> get_correlation_id()
        'batch-42'
        >>> clear_correlation_id()

        ```
    """
    _correlation_id.set(correlation_id)


def clear_correlation_id() -> None:
    r"""Remove the correlation ID of the current context."""
    _correlation_id.set(None)


class StructuredFormatter(logging.Formatter):
    """Format log records as single-line JSON objects.

    The object holds ``timestamp`` (ISO 8601, UTC), ``level``,
    ``logger``, ``message``, ``module``, ``function`` and ``line``, the
    current correlation ID when one is set, the formatted exception when
    the record carries one, and every field passed through ``extra``.
    Values that are not JSON serializable are rendered with ``str``.

    Example:
        ```pycon
        >>> import json
        >>> import logging
        >>> from h2tp.utils.structured_logging import StructuredFormatter
        >>> record = logging.LogRecord(
        ...     "h2tp", logging.DEBUG, __file__, 1, "GET request settled", None, None
        ... )
        >>> record.status_code = 200
        >>> data = json.loads(StructuredFormatter().format(record))
        >>> data["message"], data["status_code"]
        ('GET request settled', 200)

        ```
    """

    def format(self, record: logging.LogRecord) -> str:
        data: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        correlation_id = get_correlation_id()
        if correlation_id is not None:
            data["correlation_id"] = correlation_id
        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)
        for key, value in record.__dict__.items():
            if key not in _RECORD_ATTRIBUTES:
                data[key] = value
        return json.dumps(data, default=str)

    def formatTime(  # noqa: N802
        self, record: logging.LogRecord, datefmt: str | None = None
    ) -> str:
        if datefmt is not None:
            return time.strftime(datefmt, time.gmtime(record.created))
        return (
            time.strftime("%Y-%m-%dT%H:%M:%S", time.gmtime(record.created))
            + f".{int(record.msecs):03d}Z"
        )


def log_structured(logger: logging.Logger, level: int, message: str, **extra: Any) -> None:
    """Log ``message`` with structured fields.

    Fields whose value is ``None`` are left out of the record.

    Args:
        logger: The logger to use.
        level: The log level, e.g. ``logging.DEBUG``.
        message: The human-readable message.
        **extra: The structured fields to attach to the record.

    Example:
        ```pycon
        >>> import logging
        >>> from h2tp.utils.structured_logging import log_structured
        >>> log_structured(
        ...     logging.getLogger("h2tp"),
        ...     logging.DEBUG,
        ...     "GET request to https://api.example.com settled",
        ...     status_code=200,
        ...     error=None,
        ... )

        ```
    """
    if not logger.isEnabledFor(level):
        return
    logger.log(level, message, extra={k: v for k, v in extra.items() if v is not None})


def enable_structured_logging(
    level: int = logging.INFO, handler: logging.Handler | None = None
) -> logging.Handler:
    """Attach a JSON handler to the ``h2tp`` logger.

    Args:
        level: The level of the ``h2tp`` logger.
        handler: The handler to configure. A ``StreamHandler`` writing
            to ``stderr`` is created if ``None``.

    Returns:
        The configured handler, so that callers can remove it later.
    """
    if handler is None:
        handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter())
    logger = logging.getLogger("h2tp")
    logger.addHandler(handler)
    logger.setLevel(level)
    return handler
