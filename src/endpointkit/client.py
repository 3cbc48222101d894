r"""Asynchronous context manager client for endpoint requests.

``NetworkClient`` owns the ``httpx.AsyncClient`` used by its transport
and wires the transport, the token coordinator, the connectivity
provider and the client configuration into one ``RequestExecutor``.
"""

from __future__ import annotations

__all__ = ["NetworkClient"]

import asyncio
import logging
from typing import TYPE_CHECKING, Any

import httpx

from endpointkit.connectivity import AlwaysReachable
from endpointkit.core.config import DEFAULT_TIMEOUT, ClientConfig
from endpointkit.core.validation import validate_timeout
from endpointkit.exceptions import ErrorKind, NetworkError
from endpointkit.executor import RequestExecutor
from endpointkit.result import Failure
from endpointkit.transport import HttpxTransport

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType
    from typing import Self

    from endpointkit.auth.coordinator import TokenRefreshCoordinator
    from endpointkit.connectivity import ConnectivityProvider
    from endpointkit.endpoint import EndpointDescriptor
    from endpointkit.result import Result

logger: logging.Logger = logging.getLogger(__name__)


class NetworkClient:
    r"""Asynchronous context manager for endpoint requests.

    The underlying ``httpx.AsyncClient`` is created when entering the
    context and closed when leaving it.

    Args:
        config: Optional ``ClientConfig`` shared by every request. If
            ``None``, a default ``ClientConfig`` is used.
        token_coordinator: Optional owner of the access/refresh tokens.
        connectivity: Optional connectivity provider. Defaults to
            ``AlwaysReachable()``.
        timeout: Default timeout in seconds of the httpx client. Each
            attempt uses its endpoint's timeout. Must be > 0.
        **client_kwargs: Additional keyword arguments passed to
            ``httpx.AsyncClient`` (e.g. ``transport=``, ``verify=``).

    Example:
        ```pycon
        >>> import asyncio
        >>> import httpx
        >>> from endpointkit import EndpointDescriptor, NetworkClient
        >>> async def main():
        ...     mock = httpx.MockTransport(lambda request: httpx.Response(200, json={"id": 7}))
        ...     async with NetworkClient(transport=mock) as client:
        ...         return await client.fetch(
        ...             EndpointDescriptor(host="api.example.com", path="/users/7")
        ...         )
        ...
        >>> asyncio.run(main())
        {'id': 7}

        ```
    """

    def __init__(
        self,
        *,
        config: ClientConfig | None = None,
        token_coordinator: TokenRefreshCoordinator | None = None,
        connectivity: ConnectivityProvider | None = None,
        timeout: float | httpx.Timeout = DEFAULT_TIMEOUT,
        **client_kwargs: Any,
    ) -> None:
        validate_timeout(timeout)
        self._timeout = timeout
        self._client_kwargs = client_kwargs
        self._config = config if config is not None else ClientConfig()
        self._token_coordinator = token_coordinator
        self._connectivity = connectivity if connectivity is not None else AlwaysReachable()

        self._client: httpx.AsyncClient | None = None
        self._executor: RequestExecutor | None = None
        self._tasks: set[asyncio.Task[Any]] = set()
        self._canceled_tasks: set[asyncio.Task[Any]] = set()

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def token_coordinator(self) -> TokenRefreshCoordinator | None:
        return self._token_coordinator

    async def __aenter__(self) -> Self:
        """Enter the async context manager and create the underlying
        httpx client.

        Returns:
            The ``NetworkClient`` instance for making requests.
        """
        self._client = httpx.AsyncClient(timeout=self._timeout, **self._client_kwargs)
        self._executor = RequestExecutor(
            HttpxTransport(self._client),
            token_coordinator=self._token_coordinator,
            connectivity=self._connectivity,
            config=self._config,
        )
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit the async context manager, cancel the requests still in
        flight and close the underlying httpx client."""
        self.cancel_all_requests()
        if self._client is not None:
            await self._client.aclose()
            self._client = None
        self._executor = None

    def _ensure_executor(self) -> RequestExecutor:
        """Return the executor of the open client.

        Raises:
            RuntimeError: If the client is used outside of a context
                manager.
        """
        if self._executor is None:
            msg = "NetworkClient must be used within an async context manager (async with statement)"
            raise RuntimeError(msg)
        return self._executor

    async def perform_request(
        self,
        endpoint: EndpointDescriptor,
        decoder: Callable[[Any], Any] | None = None,
    ) -> Result[Any]:
        r"""Execute a logical request and return its result.

        Args:
            endpoint: The endpoint to request.
            decoder: Optional callable turning the parsed JSON payload into
                the target type.

        Returns:
            ``Success`` with the decoded payload, or ``Failure`` with the
            terminal ``NetworkError``. A request cancelled through
            ``cancel_all_requests`` resolves to ``Failure`` with
            ``ErrorKind.CANCELED``.

        Raises:
            RuntimeError: If called outside of a context manager.
            EndpointConfigurationError: If the request cannot be built.
        """
        executor = self._ensure_executor()
        task = asyncio.ensure_future(executor.execute(endpoint, decoder))
        self._tasks.add(task)
        try:
            return await task
        except asyncio.CancelledError:
            if task not in self._canceled_tasks:
                raise
            logger.debug(f"{endpoint.name}: request canceled")
            return Failure(NetworkError(ErrorKind.CANCELED))
        finally:
            self._tasks.discard(task)
            self._canceled_tasks.discard(task)

    async def fetch(
        self,
        endpoint: EndpointDescriptor,
        decoder: Callable[[Any], Any] | None = None,
    ) -> Any:
        """Execute a logical request and return its decoded payload.

        Raises:
            RuntimeError: If called outside of a context manager.
            NetworkError: The terminal error if the request fails.
        """
        result = await self.perform_request(endpoint, decoder)
        return result.unwrap()

    def is_network_reachable(self) -> bool:
        """Return the connectivity provider's current snapshot."""
        return self._connectivity.is_reachable()

    def cancel_all_requests(self) -> int:
        """Cancel every logical request in flight on this client.

        Each cancelled request resolves to ``Failure`` with
        ``ErrorKind.CANCELED``. A token refresh shared with other callers
        keeps running.

        Returns:
            The number of requests cancelled.
        """
        count = 0
        for task in list(self._tasks):
            if task.cancel():
                self._canceled_tasks.add(task)
                count += 1
        if count:
            logger.debug(f"Canceled {count} in-flight request(s)")
        return count
