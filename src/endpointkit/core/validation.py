r"""Parameter validation for client and retry configuration."""

from __future__ import annotations

__all__ = ["validate_retry_params", "validate_timeout"]

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import httpx


def validate_timeout(timeout: float | httpx.Timeout) -> None:
    """Validate a timeout value.

    Args:
        timeout: Maximum seconds to wait for server responses. Must be
            > 0 if numeric.

    Raises:
        ValueError: If ``timeout`` is a numeric value <= 0.

    Example:
        ```pycon
        >>> from endpointkit.core.validation import validate_timeout
        >>> validate_timeout(30.0)
        >>> validate_timeout(0)
        Traceback (most recent call last):
        ...
        ValueError: timeout must be > 0, got 0

        ```
    """
    if isinstance(timeout, (int, float)) and timeout <= 0:
        msg = f"timeout must be > 0, got {timeout}"
        raise ValueError(msg)


def validate_retry_params(
    jitter_factor: float = 0.0,
    max_wait_time: float | None = None,
) -> None:
    """Validate retry delay parameters.

    Args:
        jitter_factor: Fraction of random delay added to each backoff.
            Must be >= 0.
        max_wait_time: Optional cap on a single backoff delay. Must be
            > 0 if provided.

    Raises:
        ValueError: If a parameter is out of range.

    Example:
        ```pycon
        >>> from endpointkit.core.validation import validate_retry_params
        >>> validate_retry_params(jitter_factor=0.1, max_wait_time=5.0)
        >>> validate_retry_params(jitter_factor=-1)
        Traceback (most recent call last):
        ...
        ValueError: jitter_factor must be >= 0, got -1

        ```
    """
    if jitter_factor < 0:
        msg = f"jitter_factor must be >= 0, got {jitter_factor}"
        raise ValueError(msg)
    if max_wait_time is not None and max_wait_time <= 0:
        msg = f"max_wait_time must be > 0, got {max_wait_time}"
        raise ValueError(msg)
