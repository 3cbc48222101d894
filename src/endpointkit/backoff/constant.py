r"""Fixed-interval backoff strategy."""

from __future__ import annotations

__all__ = ["ConstantBackoff"]

from endpointkit.backoff.base import BaseBackoffStrategy


class ConstantBackoff(BaseBackoffStrategy):
    """Wait the same delay before every retry.

    This is the executor's default strategy, with a one second delay.

    Args:
        delay: The delay in seconds before each retry (default: 1.0).

    Example:
        ```pycon
        >>> from endpointkit.backoff import ConstantBackoff
        >>> backoff = ConstantBackoff()
        >>> backoff.calculate(0), backoff.calculate(7)
        (1.0, 1.0)

        ```
    """

    def __init__(self, delay: float = 1.0) -> None:
        if delay < 0:
            msg = f"delay must be non-negative, got {delay}"
            raise ValueError(msg)
        self.delay = delay

    def calculate(self, retry: int) -> float:  # noqa: ARG002
        return self.delay

    def __repr__(self) -> str:
        return f"{type(self).__name__}(delay={self.delay})"
