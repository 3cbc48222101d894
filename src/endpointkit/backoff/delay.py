r"""Delay computation combining a backoff strategy, a cap and jitter."""

from __future__ import annotations

__all__ = ["compute_delay"]

import logging
import random
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from endpointkit.backoff.base import BaseBackoffStrategy

logger: logging.Logger = logging.getLogger(__name__)


def compute_delay(
    retry: int,
    backoff_strategy: BaseBackoffStrategy,
    jitter_factor: float = 0.0,
    max_wait_time: float | None = None,
) -> float:
    """Compute the delay before a retry.

    The strategy's delay is first capped at ``max_wait_time`` (if set),
    then up to ``jitter_factor`` of it is added at random.

    Args:
        retry: The index of the retry (0-indexed).
        backoff_strategy: The backoff strategy.
        jitter_factor: Maximum fraction of random delay added. ``0``
            disables jitter.
        max_wait_time: Optional cap in seconds applied before jitter.

    Returns:
        The delay in seconds.

    Example:
        ```pycon
        >>> from endpointkit.backoff import ConstantBackoff, ExponentialBackoff, compute_delay
        >>> compute_delay(0, ConstantBackoff())
        1.0
        >>> compute_delay(5, ExponentialBackoff(), max_wait_time=4.0)
        4.0

        ```
    """
    delay = backoff_strategy.calculate(retry)
    if max_wait_time is not None and delay > max_wait_time:
        logger.debug(f"Capping delay from {delay:.2f}s to {max_wait_time:.2f}s")
        delay = max_wait_time
    if jitter_factor > 0:
        delay += random.uniform(0, jitter_factor) * delay  # noqa: S311
    return delay
