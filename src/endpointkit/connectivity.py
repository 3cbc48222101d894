r"""Connectivity boundary.

The request executor only consumes a boolean snapshot, queried before
every attempt. Monitoring the network and updating that snapshot is the
job of an external monitor; ``ConnectivityState`` is the thread-safe
flag such a monitor writes to.
"""

from __future__ import annotations

__all__ = ["AlwaysReachable", "ConnectivityProvider", "ConnectivityState"]

import logging
import threading
from typing import Protocol

logger: logging.Logger = logging.getLogger(__name__)


class ConnectivityProvider(Protocol):
    """Source of the current reachability snapshot."""

    def is_reachable(self) -> bool: ...


class AlwaysReachable:
    """Connectivity provider that always reports the network as
    reachable."""

    def is_reachable(self) -> bool:
        return True


class ConnectivityState:
    r"""Reachability flag updated by an external network monitor.

    Args:
        reachable: The initial reachability.

    Example:
        ```pycon
        >>> from endpointkit.connectivity import ConnectivityState
        >>> state = ConnectivityState()
        >>> state.is_reachable()
        True
        >>> state.set_reachable(False)
        >>> state.is_reachable()
        False

        ```
    """

    def __init__(self, reachable: bool = True) -> None:
        self._reachable = reachable
        self._lock = threading.Lock()

    def is_reachable(self) -> bool:
        with self._lock:
            return self._reachable

    def set_reachable(self, reachable: bool) -> None:
        with self._lock:
            changed = self._reachable != reachable
            self._reachable = reachable
        if changed:
            logger.info(f"Network is now {'reachable' if reachable else 'unreachable'}")
