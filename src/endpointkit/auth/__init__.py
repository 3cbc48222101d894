r"""Authentication state: token storage, refresh client and the
single-flight refresh coordinator."""

from __future__ import annotations

__all__ = [
    "EndpointRefreshClient",
    "InMemoryTokenStorage",
    "RefreshClient",
    "TokenRefreshCoordinator",
    "TokenStorage",
]

from endpointkit.auth.coordinator import TokenRefreshCoordinator
from endpointkit.auth.refresh import EndpointRefreshClient, RefreshClient
from endpointkit.auth.storage import InMemoryTokenStorage, TokenStorage
