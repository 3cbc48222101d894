r"""Asynchronous request executor with connectivity gating, retry and
one-shot authentication refresh.

The executor reduces the sequence of attempts of one logical request to
exactly one ``Result``. Each attempt goes through the same steps:

1. The connectivity provider is queried. If the network is unreachable
   the request terminates with ``NO_CONNECTIVITY`` without consuming a
   retry slot.
2. The request is built from the endpoint and the current access token,
   sent through the transport and classified into an ``Outcome``.
3. The outcome decides what happens next:

   - ``Delivered``: the request succeeds with the decoded payload.
   - ``AuthExpired`` on the first attempt, when the request carried a
     non-empty access token from the token coordinator: the coordinator
     refreshes the tokens once and the request is attempted again with
     the new token. This extra attempt does not count against the
     endpoint's retry budget, and is made even when the budget is 0.
     A bearer credential with its own token is never refreshed.
   - ``Retryable`` with budget left: the executor waits for the backoff
     delay and tries again.
   - ``Retryable`` without budget left: the request fails with
     ``MAX_RETRIES_EXCEEDED``, chaining the last error as ``__cause__``.
   - anything else: the request fails with the classified error.
"""

from __future__ import annotations

__all__ = ["AttemptContext", "RequestExecutor"]

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from endpointkit.backoff import compute_delay
from endpointkit.callbacks import (
    FailureInfo,
    RefreshInfo,
    RequestInfo,
    ResponseInfo,
    RetryInfo,
    invoke_callback,
)
from endpointkit.classifier import ResponseClassifier
from endpointkit.connectivity import AlwaysReachable
from endpointkit.core.config import ClientConfig
from endpointkit.credentials import uses_access_token
from endpointkit.exceptions import ErrorKind, NetworkError
from endpointkit.outcome import AuthExpired, Delivered, Retryable
from endpointkit.request_builder import build_request
from endpointkit.result import Failure, Success
from endpointkit.utils.structured_logging import log_structured

if TYPE_CHECKING:
    from collections.abc import Callable

    from endpointkit.auth.coordinator import TokenRefreshCoordinator
    from endpointkit.connectivity import ConnectivityProvider
    from endpointkit.endpoint import EndpointDescriptor
    from endpointkit.outcome import Outcome
    from endpointkit.result import Result
    from endpointkit.transport import Transport

logger: logging.Logger = logging.getLogger(__name__)


@dataclass
class AttemptContext:
    """Mutable state of one logical request, threaded through the retry
    loop.

    Attributes:
        endpoint: The endpoint being requested.
        attempt_number: Index of the current attempt (0-indexed).
        retries_used: Number of retry slots consumed so far.
        has_used_auth_retry: Whether the auth refresh path already fired.
        start_time: Wall-clock time the logical request started.
    """

    endpoint: EndpointDescriptor
    attempt_number: int = 0
    retries_used: int = 0
    has_used_auth_retry: bool = False
    start_time: float = 0.0

    @property
    def has_retry_budget(self) -> bool:
        return self.retries_used < self.endpoint.retry_budget

    @property
    def elapsed(self) -> float:
        return time.time() - self.start_time


class RequestExecutor:
    r"""Execute logical requests described by ``EndpointDescriptor``.

    Args:
        transport: The transport used to send each attempt.
        token_coordinator: Optional owner of the access/refresh tokens.
            Without it, bearer credentials must carry an explicit token
            and expired credentials are never refreshed.
        connectivity: Optional connectivity provider queried before
            every attempt. Defaults to ``AlwaysReachable()``.
        config: Optional client configuration (backoff, envelope keys,
            callbacks). Defaults to ``ClientConfig()``.
        classifier: Optional response classifier. Defaults to a
            classifier using ``config.envelope_keys``.

    Example:
        ```pycon
        >>> import asyncio
        >>> from endpointkit.endpoint import EndpointDescriptor
        >>> from endpointkit.executor import RequestExecutor
        >>> from endpointkit.transport import TransportResult
        >>> class StaticTransport:
        ...     async def execute(self, request):
        ...         return TransportResult(status_code=200, body=b'{"id": 7}')
        ...
        >>> executor = RequestExecutor(StaticTransport())
        >>> result = asyncio.run(
        ...     executor.execute(EndpointDescriptor(host="api.example.com", path="/users"))
        ... )
        >>> result
        Success(value={'id': 7})

        ```
    """

    def __init__(
        self,
        transport: Transport,
        token_coordinator: TokenRefreshCoordinator | None = None,
        connectivity: ConnectivityProvider | None = None,
        config: ClientConfig | None = None,
        classifier: ResponseClassifier | None = None,
    ) -> None:
        self.transport = transport
        self.token_coordinator = token_coordinator
        self.connectivity = connectivity if connectivity is not None else AlwaysReachable()
        self.config = config if config is not None else ClientConfig()
        self.classifier = (
            classifier
            if classifier is not None
            else ResponseClassifier(self.config.envelope_keys)
        )

    async def execute(
        self,
        endpoint: EndpointDescriptor,
        decoder: Callable[[Any], Any] | None = None,
    ) -> Result[Any]:
        """Execute a logical request until it succeeds or terminally
        fails.

        Args:
            endpoint: The endpoint to request.
            decoder: Optional callable turning the parsed JSON payload into
                the target type. Defaults to returning the parsed JSON.

        Returns:
            ``Success`` with the decoded payload, or ``Failure`` with the
            terminal ``NetworkError``.

        Raises:
            EndpointConfigurationError: If the request cannot be built
                from the endpoint.
            asyncio.CancelledError: If the calling task is cancelled.
        """
        context = AttemptContext(endpoint=endpoint, start_time=time.time())

        while True:
            if not self.connectivity.is_reachable():
                logger.debug(f"{endpoint.name}: network unreachable, not sending attempt")
                return self._fail(context, NetworkError(ErrorKind.NO_CONNECTIVITY))

            prior_credential = self._current_credential(endpoint)
            outcome = await self._attempt(context, prior_credential, decoder)

            if isinstance(outcome, Delivered):
                return self._succeed(context, outcome.payload)

            if isinstance(outcome, AuthExpired):
                if not self._is_auth_retry_eligible(context, prior_credential):
                    return self._fail(context, outcome.error)
                refresh_error = await self._refresh(context)
                if refresh_error is not None:
                    error = NetworkError(ErrorKind.UNAUTHENTICATED)
                    error.__cause__ = refresh_error
                    return self._fail(context, error)
                context.has_used_auth_retry = True
                context.attempt_number += 1
                continue

            if isinstance(outcome, Retryable):
                if not context.has_retry_budget:
                    logger.debug(
                        f"{endpoint.name}: retry budget of {endpoint.retry_budget} exhausted "
                        f"({outcome.error.message})"
                    )
                    error = NetworkError(ErrorKind.MAX_RETRIES_EXCEEDED)
                    error.__cause__ = outcome.error
                    return self._fail(context, error)
                await self._wait_before_retry(context, outcome.error)
                context.retries_used += 1
                context.attempt_number += 1
                continue

            return self._fail(context, outcome.error)

    async def fetch(
        self,
        endpoint: EndpointDescriptor,
        decoder: Callable[[Any], Any] | None = None,
    ) -> Any:
        """Execute a logical request and return its payload.

        Raises:
            NetworkError: The terminal error if the request fails.
        """
        result = await self.execute(endpoint, decoder)
        return result.unwrap()

    def _current_credential(self, endpoint: EndpointDescriptor) -> str | None:
        """Return the coordinator access token the next attempt will carry,
        or ``None`` if the endpoint credential does not use it."""
        if self.token_coordinator is None or not uses_access_token(endpoint.credential):
            return None
        return self.token_coordinator.current_credential()

    def _is_auth_retry_eligible(
        self, context: AttemptContext, prior_credential: str | None
    ) -> bool:
        return (
            self.token_coordinator is not None
            and context.attempt_number == 0
            and not context.has_used_auth_retry
            and bool(prior_credential)
        )

    async def _attempt(
        self,
        context: AttemptContext,
        access_token: str | None,
        decoder: Callable[[Any], Any] | None,
    ) -> Outcome:
        endpoint = context.endpoint
        request = build_request(endpoint, access_token)
        invoke_callback(
            self.config.on_request,
            RequestInfo(
                endpoint=endpoint.name,
                url=request.url,
                attempt=context.attempt_number + 1,
                retry_budget=endpoint.retry_budget,
            ),
        )
        logger.debug(f"{endpoint.name}: attempt {context.attempt_number + 1}")
        result = await self.transport.execute(request)
        return self.classifier.classify(result, decoder)

    async def _refresh(self, context: AttemptContext) -> NetworkError | None:
        endpoint = context.endpoint
        logger.debug(f"{endpoint.name}: credential expired, refreshing tokens")
        try:
            await self.token_coordinator.refresh()
        except NetworkError as exc:
            logger.debug(f"{endpoint.name}: token refresh failed: {exc.message}")
            invoke_callback(
                self.config.on_refresh,
                RefreshInfo(endpoint=endpoint.name, succeeded=False, error=exc),
            )
            return exc
        invoke_callback(self.config.on_refresh, RefreshInfo(endpoint=endpoint.name, succeeded=True))
        return None

    async def _wait_before_retry(self, context: AttemptContext, error: NetworkError) -> None:
        endpoint = context.endpoint
        sleep_time = compute_delay(
            context.retries_used,
            self.config.backoff_strategy,
            jitter_factor=self.config.jitter_factor,
            max_wait_time=self.config.max_wait_time,
        )
        invoke_callback(
            self.config.on_retry,
            RetryInfo(
                endpoint=endpoint.name,
                attempt=context.attempt_number + 2,
                retry_budget=endpoint.retry_budget,
                wait_time=sleep_time,
                error=error,
            ),
        )
        logger.debug(
            f"{endpoint.name}: {error.message}, retrying in {sleep_time:.2f}s "
            f"(retry {context.retries_used + 1}/{endpoint.retry_budget})"
        )
        await asyncio.sleep(sleep_time)

    def _succeed(self, context: AttemptContext, payload: Any) -> Success[Any]:
        endpoint = context.endpoint
        total_time = context.elapsed
        log_structured(
            logger,
            logging.DEBUG,
            f"{endpoint.name} succeeded on attempt {context.attempt_number + 1}",
            endpoint=endpoint.path,
            method=endpoint.method.value,
            attempt=context.attempt_number + 1,
        )
        invoke_callback(
            self.config.on_success,
            ResponseInfo(
                endpoint=endpoint.name,
                attempt=context.attempt_number + 1,
                payload=payload,
                total_time=total_time,
            ),
        )
        return Success(payload)

    def _fail(self, context: AttemptContext, error: NetworkError) -> Failure:
        endpoint = context.endpoint
        total_time = context.elapsed
        log_structured(
            logger,
            logging.DEBUG,
            f"{endpoint.name} failed after {context.attempt_number + 1} attempt(s): "
            f"{error.message}",
            endpoint=endpoint.path,
            method=endpoint.method.value,
            attempt=context.attempt_number + 1,
            error_kind=error.kind.value,
        )
        invoke_callback(
            self.config.on_failure,
            FailureInfo(
                endpoint=endpoint.name,
                attempt=context.attempt_number + 1,
                error=error,
                total_time=total_time,
            ),
        )
        return Failure(error)
