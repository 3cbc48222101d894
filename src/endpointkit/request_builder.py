r"""Turn an endpoint descriptor into a wire request.

``build_request`` is pure: it reads the descriptor and the current access
token snapshot and returns a new ``BuiltRequest`` every time. The built
request is discarded after one transport call.
"""

from __future__ import annotations

__all__ = ["BuiltRequest", "build_request", "build_url"]

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from endpointkit.credentials import resolve_authorization
from endpointkit.encoding import FormDataEncoding, encode_body, encode_query
from endpointkit.enums import BODYLESS_METHODS, ContentType
from endpointkit.exceptions import EndpointConfigurationError

if TYPE_CHECKING:
    from endpointkit.endpoint import EndpointDescriptor

logger: logging.Logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuiltRequest:
    """A fully formed request ready for the transport.

    Attributes:
        url: The absolute URL including the query string.
        method: The HTTP method name.
        headers: The final request headers.
        body: The encoded body, or ``None``.
        timeout: Per-attempt timeout in seconds.
    """

    url: str
    method: str
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes | None = None
    timeout: float | None = None

    def header(self, name: str) -> str | None:
        """Return the value of header ``name`` (case-insensitive)."""
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return None


def build_url(endpoint: EndpointDescriptor) -> str:
    r"""Compose the absolute URL of an endpoint.

    The path is appended verbatim to the base URL and the query
    parameters are serialized in the order supplied.

    Example:
        ```pycon
        >>> from endpointkit.endpoint import EndpointDescriptor
        >>> from endpointkit.request_builder import build_url
        >>> build_url(
        ...     EndpointDescriptor(
        ...         host="api.example.com",
        ...         port=8443,
        ...         path="/search",
        ...         query_params=(("q", "a b"),),
        ...     )
        ... )
        'https://api.example.com:8443/search?q=a%20b'

        ```
    """
    url = endpoint.base_url + endpoint.path
    if endpoint.query_params:
        url = f"{url}?{encode_query(endpoint.query_params)}"
    return url


def _media_type(value: ContentType | str) -> str:
    return value.value if isinstance(value, ContentType) else value


def _set_default(headers: dict[str, str], name: str, value: str) -> None:
    if not any(key.lower() == name.lower() for key in headers):
        headers[name] = value


def _set_override(headers: dict[str, str], name: str, value: str) -> None:
    for key in [key for key in headers if key.lower() == name.lower()]:
        del headers[key]
    headers[name] = value


def build_request(endpoint: EndpointDescriptor, access_token: str | None = None) -> BuiltRequest:
    r"""Build the wire request for an endpoint.

    Header precedence: the endpoint's explicit headers come first, the
    authorization headers resolved from its credential override them,
    and ``Content-Type``/``Accept`` are only added when absent. A
    multipart body always sets its own ``Content-Type``.

    Args:
        endpoint: The endpoint descriptor.
        access_token: Snapshot of the current access token, used by
            bearer credentials without an explicit token.

    Returns:
        The built request.

    Raises:
        EndpointConfigurationError: If the body parameters cannot be
            encoded.

    Example:
        ```pycon
        >>> from endpointkit.credentials import BearerCredential
        >>> from endpointkit.endpoint import EndpointDescriptor
        >>> from endpointkit.request_builder import build_request
        >>> request = build_request(
        ...     EndpointDescriptor(
        ...         host="api.example.com", path="/me", credential=BearerCredential()
        ...     ),
        ...     access_token="token-1",
        ... )
        >>> request.url
        'https://api.example.com/me'
        >>> request.headers["Authorization"]
        'Bearer token-1'
        >>> request.body is None
        True

        ```
    """
    headers = dict(endpoint.headers)
    for name, value in resolve_authorization(endpoint.credential, access_token).items():
        _set_override(headers, name, value)
    _set_default(headers, "Content-Type", _media_type(endpoint.content_type))
    _set_default(headers, "Accept", _media_type(endpoint.accept))

    body: bytes | None = None
    if endpoint.body_params and endpoint.method not in BODYLESS_METHODS:
        try:
            body = encode_body(endpoint.encoding, endpoint.body_params)
        except (TypeError, ValueError) as exc:
            msg = f"could not encode body parameters for {endpoint.name}: {exc}"
            raise EndpointConfigurationError(msg) from exc
        if isinstance(endpoint.encoding, FormDataEncoding):
            _set_override(headers, "Content-Type", endpoint.encoding.content_type)

    request = BuiltRequest(
        url=build_url(endpoint),
        method=endpoint.method.value,
        headers=headers,
        body=body,
        timeout=endpoint.timeout,
    )
    logger.debug(f"Built {request.method} request to {request.url}")
    return request
