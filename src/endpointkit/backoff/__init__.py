r"""Backoff strategies for the delay between two attempts.

The request executor waits a fixed one second between attempts by
default (``ConstantBackoff``). ``ExponentialBackoff`` doubles the delay
after every retry.
"""

from __future__ import annotations

__all__ = [
    "BaseBackoffStrategy",
    "ConstantBackoff",
    "ExponentialBackoff",
    "compute_delay",
]

from endpointkit.backoff.base import BaseBackoffStrategy
from endpointkit.backoff.constant import ConstantBackoff
from endpointkit.backoff.delay import compute_delay
from endpointkit.backoff.exponential import ExponentialBackoff
