r"""Refresh endpoint boundary.

A ``RefreshClient`` exchanges a refresh token for a new token pair.
``EndpointRefreshClient`` calls a refresh endpoint described like any
other endpoint, but outside the retry and auth-retry logic: it performs
exactly one attempt and never triggers a refresh of its own.
"""

from __future__ import annotations

__all__ = ["EndpointRefreshClient", "RefreshClient"]

import logging
from typing import TYPE_CHECKING, Any, Protocol

from endpointkit.classifier import ResponseClassifier
from endpointkit.outcome import Delivered
from endpointkit.request_builder import build_request

if TYPE_CHECKING:
    from endpointkit.endpoint import EndpointDescriptor
    from endpointkit.transport import Transport

logger: logging.Logger = logging.getLogger(__name__)


class RefreshClient(Protocol):
    """Exchanges a refresh token for a new ``(access, refresh)`` pair."""

    async def refresh_tokens(self, refresh_token: str) -> tuple[str, str]: ...


class EndpointRefreshClient:
    r"""Refresh client calling a token refresh endpoint once.

    The refresh token is added to the endpoint's body parameters under
    ``refresh_token_field`` and the new tokens are read from the decoded
    payload (or from the envelope data, if the API wraps it).

    Args:
        endpoint: The refresh endpoint, typically a POST.
        transport: The transport used to send the request.
        classifier: Optional response classifier. Defaults to
            ``ResponseClassifier()``.
        refresh_token_field: Body field carrying the refresh token.
        access_token_key: Payload key of the new access token.
        refresh_token_key: Payload key of the new refresh token.

    Example:
        ```pycon
        >>> from endpointkit.auth.refresh import EndpointRefreshClient
        >>> from endpointkit.endpoint import EndpointDescriptor
        >>> from endpointkit.enums import HttpMethod
        >>> refresh_client = EndpointRefreshClient(
        ...     EndpointDescriptor(
        ...         host="api.example.com", path="/auth/refresh", method=HttpMethod.POST
        ...     ),
        ...     transport=None,
        ... )
        >>> refresh_client.refresh_token_field
        'refreshToken'

        ```
    """

    def __init__(
        self,
        endpoint: EndpointDescriptor,
        transport: Transport,
        *,
        classifier: ResponseClassifier | None = None,
        refresh_token_field: str = "refreshToken",
        access_token_key: str = "accessToken",
        refresh_token_key: str = "refreshToken",
    ) -> None:
        self.endpoint = endpoint
        self.transport = transport
        self.classifier = classifier or ResponseClassifier()
        self.refresh_token_field = refresh_token_field
        self.access_token_key = access_token_key
        self.refresh_token_key = refresh_token_key

    def _decode_tokens(self, payload: Any) -> tuple[str, str]:
        access_token = payload[self.access_token_key]
        refresh_token = payload[self.refresh_token_key]
        if not isinstance(access_token, str) or not isinstance(refresh_token, str):
            msg = "refresh response tokens must be strings"
            raise TypeError(msg)
        return access_token, refresh_token

    async def refresh_tokens(self, refresh_token: str) -> tuple[str, str]:
        """Call the refresh endpoint once.

        Args:
            refresh_token: The stored refresh token.

        Returns:
            The new ``(access_token, refresh_token)`` pair.

        Raises:
            NetworkError: If the call fails for any reason.
        """
        body = dict(self.endpoint.body_params or {})
        body[self.refresh_token_field] = refresh_token
        request = build_request(self.endpoint.replace(body_params=body))
        logger.debug(f"Refreshing tokens via {self.endpoint.name}")
        result = await self.transport.execute(request)
        outcome = self.classifier.classify(result, self._decode_tokens)
        if isinstance(outcome, Delivered):
            return outcome.payload
        logger.debug(f"Token refresh failed: {outcome.error.message}")
        raise outcome.error
