r"""Immutable description of a logical API call.

An ``EndpointDescriptor`` is created once per logical call and never
mutated. It is validated at construction time so that an endpoint which
cannot form a valid URL fails immediately with an
``EndpointConfigurationError`` instead of at request time.

Example:
    ```pycon
    >>> from endpointkit.endpoint import EndpointDescriptor
    >>> from endpointkit.enums import HttpMethod
    >>> endpoint = EndpointDescriptor(
    ...     host="api.example.com",
    ...     path="/users",
    ...     method=HttpMethod.GET,
    ...     query_params=(("page", "2"),),
    ... )
    >>> endpoint.base_url
    'https://api.example.com'
    >>> endpoint.retry_budget
    1

    ```
"""

from __future__ import annotations

__all__ = ["DEFAULT_ENDPOINT_TIMEOUT", "EndpointDescriptor"]

import re
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

import httpx

from endpointkit.core.config import DEFAULT_RETRY_BUDGET
from endpointkit.credentials import NoCredential
from endpointkit.encoding import JsonEncoding
from endpointkit.enums import ContentType, HttpMethod
from endpointkit.exceptions import EndpointConfigurationError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from endpointkit.credentials import Credential
    from endpointkit.encoding import ParameterEncoding

# Default per-attempt timeout in seconds
DEFAULT_ENDPOINT_TIMEOUT = 30.0

_SCHEME_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*$")
_INVALID_HOST_CHARS = re.compile(r"[\s/?#@\\]")


@dataclass(frozen=True)
class EndpointDescriptor:
    r"""Declarative description of one logical API operation.

    Args:
        host: The host name of the API server.
        path: The path appended verbatim to the base URL. Must be empty
            or start with ``/``.
        scheme: The URL scheme.
        port: Optional port number.
        method: The HTTP method.
        timeout: Per-attempt timeout in seconds. Must be > 0.
        encoding: The encoding used for ``body_params``.
        content_type: Value of the ``Content-Type`` header, unless the
            caller sets one in ``headers``.
        accept: Value of the ``Accept`` header, unless the caller sets
            one in ``headers``.
        headers: Explicit request headers.
        query_params: Ordered query parameters.
        body_params: Optional body parameters. Ignored for GET and HEAD.
        credential: The authentication requirement.
        retry_budget: Number of retries allowed after the first attempt.
            Must be >= 0.

    Raises:
        EndpointConfigurationError: If the descriptor cannot form a
            valid URL or a parameter is out of range.
    """

    host: str
    path: str = ""
    scheme: str = "https"
    port: int | None = None
    method: HttpMethod = HttpMethod.GET
    timeout: float = DEFAULT_ENDPOINT_TIMEOUT
    encoding: ParameterEncoding = field(default_factory=JsonEncoding)
    content_type: ContentType | str = ContentType.JSON
    accept: ContentType | str = ContentType.JSON
    headers: Mapping[str, str] = field(default_factory=dict)
    query_params: tuple[tuple[str, Any], ...] = ()
    body_params: Mapping[str, Any] | None = None
    credential: Credential = field(default_factory=NoCredential)
    retry_budget: int = DEFAULT_RETRY_BUDGET

    def __post_init__(self) -> None:
        # Normalize mutable inputs so the descriptor stays immutable
        object.__setattr__(self, "method", HttpMethod(self.method))
        object.__setattr__(self, "headers", dict(self.headers))
        object.__setattr__(self, "query_params", tuple(tuple(p) for p in self.query_params))
        if self.body_params is not None:
            object.__setattr__(self, "body_params", dict(self.body_params))

        if not _SCHEME_PATTERN.match(self.scheme or ""):
            msg = f"invalid URL scheme: {self.scheme!r}"
            raise EndpointConfigurationError(msg)
        if not self.host or _INVALID_HOST_CHARS.search(self.host):
            msg = f"invalid host: {self.host!r}"
            raise EndpointConfigurationError(msg)
        if self.port is not None and not 0 <= self.port <= 65535:
            msg = f"port must be in [0, 65535], got {self.port}"
            raise EndpointConfigurationError(msg)
        if self.path and not self.path.startswith("/"):
            msg = f"path must be empty or start with '/', got {self.path!r}"
            raise EndpointConfigurationError(msg)
        if self.timeout <= 0:
            msg = f"timeout must be > 0, got {self.timeout}"
            raise EndpointConfigurationError(msg)
        if self.retry_budget < 0:
            msg = f"retry_budget must be >= 0, got {self.retry_budget}"
            raise EndpointConfigurationError(msg)
        for name, value in self.headers.items():
            if not (name.isascii() and value.isascii()):
                msg = f"header {name!r} must contain only ASCII characters, got {value!r}"
                raise EndpointConfigurationError(msg)
        try:
            httpx.URL(self.base_url)
        except httpx.InvalidURL as exc:
            msg = f"could not create base URL from {self.base_url!r}: {exc}"
            raise EndpointConfigurationError(msg) from exc

    @property
    def base_url(self) -> str:
        """The base URL composed of scheme, host and optional port."""
        if self.port is None:
            return f"{self.scheme}://{self.host}"
        return f"{self.scheme}://{self.host}:{self.port}"

    @property
    def name(self) -> str:
        """Short label used in log messages, e.g. ``GET /users``."""
        return f"{self.method.value} {self.path or '/'}"

    def replace(self, **changes: Any) -> EndpointDescriptor:
        """Return a copy of the descriptor with ``changes`` applied.

        Example:
            ```pycon
            >>> from endpointkit.endpoint import EndpointDescriptor
            >>> endpoint = EndpointDescriptor(host="api.example.com", path="/a")
            >>> endpoint.replace(retry_budget=3).retry_budget
            3
            >>> endpoint.retry_budget
            1

            ```
        """
        return replace(self, **changes)
