r"""Exponential backoff strategy."""

from __future__ import annotations

__all__ = ["ExponentialBackoff"]

from endpointkit.backoff.base import BaseBackoffStrategy


class ExponentialBackoff(BaseBackoffStrategy):
    """Double the delay after every retry.

    The delay before retry ``n`` is ``base_delay * 2 ** n``, optionally
    capped at ``max_delay``.

    Args:
        base_delay: The delay before the first retry (default: 1.0).
        max_delay: Optional cap in seconds.

    Example:
        ```pycon
        >>> from endpointkit.backoff import ExponentialBackoff
        >>> backoff = ExponentialBackoff(base_delay=0.5, max_delay=3.0)
        >>> [backoff.calculate(n) for n in range(4)]
        [0.5, 1.0, 2.0, 3.0]

        ```
    """

    def __init__(self, base_delay: float = 1.0, max_delay: float | None = None) -> None:
        if base_delay < 0:
            msg = f"base_delay must be non-negative, got {base_delay}"
            raise ValueError(msg)
        if max_delay is not None and max_delay <= 0:
            msg = f"max_delay must be positive if specified, got {max_delay}"
            raise ValueError(msg)
        self.base_delay = base_delay
        self.max_delay = max_delay

    def calculate(self, retry: int) -> float:
        delay = self.base_delay * (2**retry)
        if self.max_delay is not None:
            delay = min(delay, self.max_delay)
        return delay

    def __repr__(self) -> str:
        return f"{type(self).__name__}(base_delay={self.base_delay}, max_delay={self.max_delay})"
