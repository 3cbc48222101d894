r"""Token storage boundary.

The storage backs the shared authentication state: one access token and
one refresh token. Persistence is the concern of the implementation;
``InMemoryTokenStorage`` keeps both tokens in process memory.
"""

from __future__ import annotations

__all__ = ["InMemoryTokenStorage", "TokenStorage"]

import threading
from typing import Protocol


class TokenStorage(Protocol):
    """Read/write contract for the stored tokens."""

    def get_access_token(self) -> str | None: ...

    def get_refresh_token(self) -> str | None: ...

    def store(self, access_token: str | None, refresh_token: str | None) -> None: ...


class InMemoryTokenStorage:
    r"""Thread-safe token storage kept in memory.

    Args:
        access_token: Optional initial access token.
        refresh_token: Optional initial refresh token.

    Example:
        ```pycon
        >>> from endpointkit.auth.storage import InMemoryTokenStorage
        >>> storage = InMemoryTokenStorage(access_token="a1", refresh_token="r1")
        >>> storage.get_access_token()
        'a1'
        >>> storage.store("a2", "r2")
        >>> storage.get_access_token(), storage.get_refresh_token()
        ('a2', 'r2')

        ```
    """

    def __init__(self, access_token: str | None = None, refresh_token: str | None = None) -> None:
        self._lock = threading.Lock()
        self._access_token = access_token
        self._refresh_token = refresh_token

    def get_access_token(self) -> str | None:
        with self._lock:
            return self._access_token

    def get_refresh_token(self) -> str | None:
        with self._lock:
            return self._refresh_token

    def store(self, access_token: str | None, refresh_token: str | None) -> None:
        """Replace both tokens at once."""
        with self._lock:
            self._access_token = access_token
            self._refresh_token = refresh_token
