r"""Single-flight coordination of token refreshes.

The ``TokenRefreshCoordinator`` owns the shared authentication state. It
is the only component that writes tokens during a refresh, and it makes
sure that at most one refresh runs at a time: a caller invoking
``refresh()`` while a refresh is in flight awaits the same operation
instead of issuing a second network call. Cancelling one waiter never
cancels the shared refresh awaited by the others.

Example:
    ```pycon
    >>> import asyncio
    >>> from endpointkit.auth import InMemoryTokenStorage, TokenRefreshCoordinator
    >>> class StaticRefreshClient:
    ...     async def refresh_tokens(self, refresh_token):
    ...         return ("new-access", "new-refresh")
    ...
    >>> coordinator = TokenRefreshCoordinator(
    ...     InMemoryTokenStorage("old-access", "old-refresh"), StaticRefreshClient()
    ... )
    >>> asyncio.run(coordinator.refresh())
    >>> coordinator.current_credential()
    'new-access'

    ```
"""

from __future__ import annotations

__all__ = ["TokenRefreshCoordinator"]

import asyncio
import logging
from typing import TYPE_CHECKING

from endpointkit.exceptions import ErrorKind, NetworkError

if TYPE_CHECKING:
    from endpointkit.auth.refresh import RefreshClient
    from endpointkit.auth.storage import TokenStorage

logger: logging.Logger = logging.getLogger(__name__)


class TokenRefreshCoordinator:
    r"""Owner of the shared access/refresh token pair.

    Args:
        storage: The backing token storage.
        refresh_client: The client that exchanges a refresh token for a
            new token pair.

    Attributes:
        storage: The backing token storage.
        refresh_client: The refresh client.
        refresh_count: Number of refresh network calls started so far.
    """

    def __init__(self, storage: TokenStorage, refresh_client: RefreshClient) -> None:
        self.storage = storage
        self.refresh_client = refresh_client
        self.refresh_count = 0
        self._refresh_task: asyncio.Task[None] | None = None

    @property
    def is_refreshing(self) -> bool:
        """Whether a refresh is currently in flight."""
        return self._refresh_task is not None and not self._refresh_task.done()

    def current_credential(self) -> str | None:
        """Return a snapshot of the current access token."""
        return self.storage.get_access_token()

    def store_tokens(self, access_token: str | None, refresh_token: str | None) -> None:
        """Store a new token pair, e.g. after login."""
        self.storage.store(access_token, refresh_token)

    def clear_tokens(self) -> None:
        """Forget both tokens, e.g. on logout."""
        logger.debug("Clearing stored tokens")
        self.storage.store(None, None)

    async def refresh(self) -> None:
        """Refresh the token pair, coalescing concurrent callers.

        Raises:
            NetworkError: ``UNAUTHENTICATED`` if no refresh token is
                stored, otherwise the error reported by the refresh
                client. Stored tokens are left untouched on failure.
        """
        task = self._refresh_task
        if task is None or task.done():
            task = asyncio.ensure_future(self._perform_refresh())
            task.add_done_callback(self._clear_refresh_task)
            self._refresh_task = task
        else:
            logger.debug("Joining in-flight token refresh")
        await asyncio.shield(task)

    async def get_access_token(self) -> str:
        """Return the current access token, refreshing first if none is
        stored.

        Raises:
            NetworkError: ``UNAUTHENTICATED`` if neither token is
                available, or the refresh error.
        """
        access_token = self.storage.get_access_token()
        if access_token is not None:
            return access_token
        await self.refresh()
        access_token = self.storage.get_access_token()
        if access_token is None:
            raise NetworkError(ErrorKind.UNKNOWN)
        return access_token

    async def _perform_refresh(self) -> None:
        refresh_token = self.storage.get_refresh_token()
        if refresh_token is None:
            logger.debug("Token refresh impossible: no refresh token stored")
            raise NetworkError(ErrorKind.UNAUTHENTICATED)

        self.refresh_count += 1
        logger.debug(f"Starting token refresh #{self.refresh_count}")
        try:
            access_token, new_refresh_token = await self.refresh_client.refresh_tokens(
                refresh_token
            )
        except NetworkError:
            logger.debug("Token refresh failed", exc_info=True)
            raise
        except Exception as exc:
            logger.debug("Token refresh failed", exc_info=True)
            msg = f"Token refresh failed: {exc}"
            raise NetworkError(ErrorKind.UNKNOWN, msg) from exc

        self.storage.store(access_token, new_refresh_token)
        logger.debug(f"Token refresh #{self.refresh_count} succeeded")

    def _clear_refresh_task(self, task: asyncio.Task[None]) -> None:
        if self._refresh_task is task:
            self._refresh_task = None
