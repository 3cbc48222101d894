r"""Lifecycle callbacks for observability.

The request executor invokes optional callbacks at five points of a
logical request:

- on_request: before each attempt
- on_retry: before the backoff delay preceding a retry
- on_refresh: after a token refresh triggered by an expired credential
- on_success: when the request succeeds
- on_failure: when the request terminates with an error

Example:
    ```pycon
    >>> from endpointkit.callbacks import RetryInfo
    >>> from endpointkit.core import ClientConfig
    >>> def log_retry(info: RetryInfo) -> None:
    ...     print(f"retrying {info.endpoint} in {info.wait_time}s ({info.error.message})")
    ...
    >>> config = ClientConfig(on_retry=log_retry)

    ```
"""

from __future__ import annotations

__all__ = [
    "FailureInfo",
    "RefreshInfo",
    "RequestInfo",
    "ResponseInfo",
    "RetryInfo",
    "invoke_callback",
]

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeVar

if TYPE_CHECKING:
    from collections.abc import Callable

    from endpointkit.exceptions import NetworkError

logger: logging.Logger = logging.getLogger(__name__)

InfoT = TypeVar("InfoT")


@dataclass(frozen=True)
class RequestInfo:
    """Information passed to the on_request callback.

    Attributes:
        endpoint: Short label of the endpoint (e.g. ``GET /users``).
        url: The request URL.
        attempt: The attempt number (1-indexed).
        retry_budget: The endpoint's retry budget.
    """

    endpoint: str
    url: str
    attempt: int
    retry_budget: int


@dataclass(frozen=True)
class RetryInfo:
    """Information passed to the on_retry callback.

    Attributes:
        endpoint: Short label of the endpoint.
        attempt: The number of the attempt about to be made (1-indexed).
        retry_budget: The endpoint's retry budget.
        wait_time: The delay in seconds before the retry.
        error: The retryable error of the previous attempt.
    """

    endpoint: str
    attempt: int
    retry_budget: int
    wait_time: float
    error: NetworkError


@dataclass(frozen=True)
class RefreshInfo:
    """Information passed to the on_refresh callback.

    Attributes:
        endpoint: Short label of the endpoint that triggered the refresh.
        succeeded: Whether the refresh succeeded.
        error: The refresh error, if it failed.
    """

    endpoint: str
    succeeded: bool
    error: NetworkError | None = None


@dataclass(frozen=True)
class ResponseInfo:
    """Information passed to the on_success callback.

    Attributes:
        endpoint: Short label of the endpoint.
        attempt: The attempt number that succeeded (1-indexed).
        payload: The decoded payload.
        total_time: Seconds spent on all attempts, refresh and backoff.
    """

    endpoint: str
    attempt: int
    payload: Any
    total_time: float


@dataclass(frozen=True)
class FailureInfo:
    """Information passed to the on_failure callback.

    Attributes:
        endpoint: Short label of the endpoint.
        attempt: The number of attempts made.
        error: The terminal error.
        total_time: Seconds spent on all attempts, refresh and backoff.
    """

    endpoint: str
    attempt: int
    error: NetworkError
    total_time: float


def invoke_callback(callback: Callable[[InfoT], None] | None, info: InfoT) -> None:
    """Invoke ``callback`` with ``info`` if a callback is set.

    Exceptions raised by the callback propagate to the caller.
    """
    if callback is not None:
        callback(info)
