r"""Transport boundary: execute one built request.

The transport performs exactly one network call per attempt and never
raises for network failures or for requests httpx cannot build. It
reports them as a ``TransportResult`` carrying a ``TransportErrorKind``
so that the response classifier can map them to outcomes.

``HttpxTransport`` is the default implementation built on
``httpx.AsyncClient``. Certificate pinning or any other connection
validation is configured on the client (``verify=``, custom transports)
and is opaque to this module.
"""

from __future__ import annotations

__all__ = ["HttpxTransport", "Transport", "TransportErrorKind", "TransportResult"]

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Protocol

import httpx

if TYPE_CHECKING:
    from endpointkit.request_builder import BuiltRequest

logger: logging.Logger = logging.getLogger(__name__)


class TransportErrorKind(str, Enum):
    """Category of a transport-level failure (no HTTP response)."""

    CONNECTIVITY = "connectivity"
    TIMEOUT = "timeout"
    CANCELED = "canceled"
    OTHER = "other"


@dataclass(frozen=True)
class TransportResult:
    """Raw result of one transport call.

    Exactly one of ``status_code`` and ``error_kind`` is set for results
    produced by ``HttpxTransport``. A result with neither represents a
    malformed response.

    Attributes:
        status_code: The HTTP status code, if a response was received.
        body: The raw response body.
        headers: The response headers.
        error_kind: The transport failure category, if the call failed.
        error: The underlying exception, if the call failed.
    """

    status_code: int | None = None
    body: bytes = b""
    headers: dict[str, str] = field(default_factory=dict)
    error_kind: TransportErrorKind | None = None
    error: BaseException | None = None

    @classmethod
    def failed(
        cls, kind: TransportErrorKind, error: BaseException | None = None
    ) -> TransportResult:
        return cls(error_kind=kind, error=error)

    @property
    def has_response(self) -> bool:
        return self.status_code is not None


class Transport(Protocol):
    """Executes one built request."""

    async def execute(self, request: BuiltRequest) -> TransportResult: ...


class HttpxTransport:
    r"""Transport executing requests with an ``httpx.AsyncClient``.

    Args:
        client: The async client used to send requests. Its lifecycle is
            owned by the caller.

    Example:
        ```pycon
        >>> import asyncio
        >>> import httpx
        >>> from endpointkit.request_builder import BuiltRequest
        >>> from endpointkit.transport import HttpxTransport
        >>> async def main():
        ...     mock = httpx.MockTransport(lambda request: httpx.Response(200, json={"ok": True}))
        ...     async with httpx.AsyncClient(transport=mock) as client:
        ...         transport = HttpxTransport(client)
        ...         return await transport.execute(BuiltRequest("https://example.com", "GET"))
        ...
        >>> result = asyncio.run(main())
        >>> result.status_code, result.has_response
        (200, True)

        ```
    """

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def execute(self, request: BuiltRequest) -> TransportResult:
        """Send ``request`` and read the whole response body.

        Args:
            request: The request to send. Its ``timeout`` applies to this
                attempt only.

        Returns:
            The transport result. Network failures are reported through
            ``error_kind`` instead of being raised.
        """
        if self._client.is_closed:
            logger.debug(f"{request.method} request to {request.url} canceled: client is closed")
            return TransportResult.failed(TransportErrorKind.CANCELED)

        timeout = request.timeout if request.timeout is not None else httpx.USE_CLIENT_DEFAULT
        try:
            http_request = self._client.build_request(
                request.method,
                request.url,
                headers=request.headers,
                content=request.body,
                timeout=timeout,
            )
        except (ValueError, httpx.InvalidURL) as exc:
            # e.g. a credential header value that is not ASCII
            logger.debug(f"{request.method} request to {request.url} could not be built: {exc}")
            return TransportResult.failed(TransportErrorKind.OTHER, exc)
        try:
            response = await self._client.send(http_request)
        except httpx.TimeoutException as exc:
            logger.debug(f"{request.method} request to {request.url} timed out: {exc}")
            return TransportResult.failed(TransportErrorKind.TIMEOUT, exc)
        except httpx.NetworkError as exc:
            logger.debug(f"{request.method} request to {request.url} lost connectivity: {exc}")
            return TransportResult.failed(TransportErrorKind.CONNECTIVITY, exc)
        except httpx.HTTPError as exc:
            logger.debug(
                f"{request.method} request to {request.url} failed with {type(exc).__name__}: {exc}"
            )
            return TransportResult.failed(TransportErrorKind.OTHER, exc)

        logger.debug(f"{request.method} {request.url} -> {response.status_code}")
        return TransportResult(
            status_code=response.status_code,
            body=response.content,
            headers=dict(response.headers),
        )
