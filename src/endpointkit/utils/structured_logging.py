r"""Structured (JSON) logging with request correlation ids.

The request executor logs its terminal events with structured fields
(``endpoint``, ``method``, ``attempt``, ``error_kind``). Attach
``StructuredFormatter`` to a handler to get one JSON object per line,
ready for log aggregation.

Example:
    Enable structured logging for endpointkit:

    ```python
    import logging
    from endpointkit.utils.structured_logging import StructuredFormatter

    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter())
    logger = logging.getLogger("endpointkit")
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    ```

    Tag every log line of a logical request with a correlation id:

    ```python
    from endpointkit.utils.structured_logging import correlation_scope

    with correlation_scope("checkout-42"):
        result = await client.perform_request(endpoint)
    ```
"""

from __future__ import annotations

__all__ = [
    "StructuredFormatter",
    "clear_correlation_id",
    "correlation_scope",
    "get_correlation_id",
    "log_structured",
    "set_correlation_id",
]

import contextvars
import json
import logging
import time
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterator

# Context-local, so concurrent asyncio tasks keep their own id
_correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "endpointkit_correlation_id", default=None
)

# Attributes every LogRecord carries; anything else came from ``extra``
_RESERVED_ATTRS = frozenset(
    {
        "args",
        "asctime",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "message",
        "module",
        "msecs",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "taskName",
        "thread",
        "threadName",
    }
)


def get_correlation_id() -> str | None:
    """Return the correlation id of the current context, if any."""
    return _correlation_id.get()


def set_correlation_id(correlation_id: str) -> None:
    """Set the correlation id of the current context.

    Example:
        ```pycon
        >>> from endpointkit.utils.structured_logging import (
        ...     clear_correlation_id,
        ...     get_correlation_id,
        ...     set_correlation_id,
        ... )
        >>> set_correlation_id("req-1")
        >>> get_correlation_id()
        'req-1'
        >>> clear_correlation_id()

        ```
    """
    _correlation_id.set(correlation_id)


def clear_correlation_id() -> None:
    """Remove the correlation id of the current context."""
    _correlation_id.set(None)


@contextmanager
def correlation_scope(correlation_id: str) -> Iterator[None]:
    """Set a correlation id for the duration of a ``with`` block.

    The previous id is restored on exit.

    Example:
        ```pycon
        >>> from endpointkit.utils.structured_logging import (
        ...     correlation_scope,
        ...     get_correlation_id,
        ... )
        >>> with correlation_scope("req-2"):
        ...     get_correlation_id()
        ...
        'req-2'
        >>> get_correlation_id() is None
        True

        ```
    """
    token = _correlation_id.set(correlation_id)
    try:
        yield
    finally:
        _correlation_id.reset(token)


class StructuredFormatter(logging.Formatter):
    """Format log records as single-line JSON objects.

    Standard fields: ``timestamp`` (ISO 8601, UTC), ``level``,
    ``logger``, ``message``, ``module``, ``function``, ``line``, plus
    ``correlation_id`` when set and ``exception`` when the record carries
    exception info. Fields passed through ``extra`` are added as is;
    values that are not JSON serializable are rendered with ``str``.
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

        correlation_id = get_correlation_id()
        if correlation_id is not None:
            log_data["correlation_id"] = correlation_id

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and key not in log_data:
                log_data[key] = value

        return json.dumps(log_data, default=str)

    def formatTime(  # noqa: N802
        self, record: logging.LogRecord, datefmt: str | None = None  # noqa: ARG002
    ) -> str:
        return (
            time.strftime("%Y-%m-%dT%H:%M:%S", time.gmtime(record.created))
            + f".{int(record.msecs):03d}Z"
        )


def log_structured(logger: logging.Logger, level: int, message: str, **extra: Any) -> None:
    """Log ``message`` with structured fields.

    Args:
        logger: The logger to use.
        level: The log level (e.g. ``logging.INFO``).
        message: The log message.
        **extra: Structured fields added to the record.

    Example:
        ```pycon
        >>> import logging
        >>> from io import StringIO
        >>> from endpointkit.utils.structured_logging import (
        ...     StructuredFormatter,
        ...     log_structured,
        ... )
        >>> stream = StringIO()
        >>> handler = logging.StreamHandler(stream)
        >>> handler.setFormatter(StructuredFormatter())
        >>> logger = logging.getLogger("doctest_structured")
        >>> logger.addHandler(handler)
        >>> logger.setLevel(logging.INFO)
        >>> log_structured(logger, logging.INFO, "Request failed", error_kind="timeout")
        >>> '"error_kind": "timeout"' in stream.getvalue()
        True

        ```
    """
    if logger.isEnabledFor(level):
        logger.log(level, message, extra=extra)
