r"""endpointkit - Declarative, resilient API endpoint client.

This package turns immutable endpoint descriptors into HTTP requests
sent with httpx, classifies every response into a typed outcome and
reduces the attempts of one logical request to a single ``Success`` or
``Failure``.

Key Features:
    - Immutable, validated endpoint descriptors (method, path, query,
      body encoding, credential, timeout, retry budget)
    - JSON, URL-encoded, multipart and custom body encodings
    - Bearer, basic, API key and custom credentials
    - Response classification with a fixed status table, response
      envelopes and server message extraction
    - Connectivity check before every attempt
    - Bounded retries with configurable backoff
    - One-shot token refresh on an expired credential, coalesced across
      concurrent requests
    - Callback system and structured logging for observability

Example:
    ```pycon
    >>> from endpointkit import EndpointDescriptor, HttpMethod, NetworkClient
    >>> endpoint = EndpointDescriptor(
    ...     host="api.example.com",
    ...     path="/users",
    ...     method=HttpMethod.GET,
    ...     retry_budget=2,
    ... )
    >>> async def main():  # doctest: +SKIP
    ...     async with NetworkClient() as client:
    ...         result = await client.perform_request(endpoint)
    ...         if result.is_success:
    ...             print(result.value)
    ...         else:
    ...             print(result.error.kind, result.error.message)
    ...

    ```
"""

from __future__ import annotations

__all__ = [
    "ApiKeyCredential",
    "BasicCredential",
    "BearerCredential",
    "ClientConfig",
    "ContentType",
    "CustomCredential",
    "CustomEncoding",
    "EndpointConfigurationError",
    "EndpointDescriptor",
    "ErrorCategory",
    "ErrorKind",
    "Failure",
    "FormDataEncoding",
    "HttpMethod",
    "InMemoryTokenStorage",
    "JsonEncoding",
    "NetworkClient",
    "NetworkError",
    "NoCredential",
    "RequestExecutor",
    "Result",
    "Success",
    "TokenRefreshCoordinator",
    "UrlEncoding",
    "__version__",
]

from importlib.metadata import PackageNotFoundError, version

from endpointkit.auth import InMemoryTokenStorage, TokenRefreshCoordinator
from endpointkit.client import NetworkClient
from endpointkit.core import ClientConfig
from endpointkit.credentials import (
    ApiKeyCredential,
    BasicCredential,
    BearerCredential,
    CustomCredential,
    NoCredential,
)
from endpointkit.encoding import CustomEncoding, FormDataEncoding, JsonEncoding, UrlEncoding
from endpointkit.endpoint import EndpointDescriptor
from endpointkit.enums import ContentType, HttpMethod
from endpointkit.exceptions import (
    EndpointConfigurationError,
    ErrorCategory,
    ErrorKind,
    NetworkError,
)
from endpointkit.executor import RequestExecutor
from endpointkit.result import Failure, Result, Success

try:
    __version__ = version(__name__)
except PackageNotFoundError:  # pragma: no cover
    # Package is not installed
    __version__ = "0.0.0"
