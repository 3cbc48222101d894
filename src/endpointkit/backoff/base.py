r"""Abstract base class for backoff strategies."""

from __future__ import annotations

__all__ = ["BaseBackoffStrategy"]

from abc import ABC, abstractmethod


class BaseBackoffStrategy(ABC):
    """Abstract base class for backoff strategies.

    A backoff strategy maps the index of a retry to the number of
    seconds the executor waits before sending it.
    """

    @abstractmethod
    def calculate(self, retry: int) -> float:
        """Calculate the delay before a retry.

        Args:
            retry: The index of the retry (0-indexed). ``retry=0`` is the
                delay before the first retry.

        Returns:
            The delay in seconds.
        """
