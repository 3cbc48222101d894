r"""Tagged outcome of a single request attempt.

The response classifier produces exactly one ``Outcome`` per attempt and
the request executor reduces the sequence of outcomes of a logical
request to one ``Result``.
"""

from __future__ import annotations

__all__ = [
    "AuthExpired",
    "Delivered",
    "NoConnectivity",
    "NonRetryable",
    "Outcome",
    "Retryable",
]

from dataclasses import dataclass
from typing import Any, Union

from endpointkit.exceptions import NetworkError


@dataclass(frozen=True)
class Delivered:
    """The attempt succeeded and the payload was decoded."""

    payload: Any


@dataclass(frozen=True)
class Retryable:
    """The attempt failed with an error worth retrying (timeout,
    5xx)."""

    error: NetworkError


@dataclass(frozen=True)
class NonRetryable:
    """The attempt failed with an error that must be reported as is."""

    error: NetworkError


@dataclass(frozen=True)
class AuthExpired:
    """The server rejected the credential (401 or 440)."""

    error: NetworkError


@dataclass(frozen=True)
class NoConnectivity:
    """The transport reported that the network is unreachable."""

    error: NetworkError


Outcome = Union[Delivered, Retryable, NonRetryable, AuthExpired, NoConnectivity]
