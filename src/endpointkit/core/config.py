r"""Configuration defaults and the ``ClientConfig`` dataclass.

The retry budget and the per-attempt timeout are properties of each
endpoint. ``ClientConfig`` holds what is shared by every request sent
through one client: the backoff policy, the envelope key names and the
lifecycle callbacks.
"""

from __future__ import annotations

__all__ = [
    "ClientConfig",
    "DEFAULT_RETRY_BUDGET",
    "DEFAULT_RETRY_DELAY",
    "DEFAULT_TIMEOUT",
]

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

from endpointkit.backoff import ConstantBackoff
from endpointkit.core.validation import validate_retry_params
from endpointkit.envelope import EnvelopeKeys

if TYPE_CHECKING:
    from collections.abc import Callable

    from endpointkit.backoff import BaseBackoffStrategy
    from endpointkit.callbacks import (
        FailureInfo,
        RefreshInfo,
        RequestInfo,
        ResponseInfo,
        RetryInfo,
    )

# Default timeout in seconds for the underlying httpx client
# Endpoints override it per attempt with their own timeout
DEFAULT_TIMEOUT = 30.0

# Default number of retries after the first attempt
DEFAULT_RETRY_BUDGET = 1

# Default fixed delay in seconds between two attempts
DEFAULT_RETRY_DELAY = 1.0


@dataclass
class ClientConfig:
    """Configuration shared by all requests of a client.

    Args:
        backoff_strategy: Strategy computing the delay before each retry.
            Defaults to ``ConstantBackoff(DEFAULT_RETRY_DELAY)``.
        jitter_factor: Fraction of random delay added to each backoff.
            Must be >= 0.
        max_wait_time: Optional cap on a single backoff delay. Must be
            > 0 if provided.
        envelope_keys: Key names of the response envelope.
        on_request: Optional callback called before each attempt.
        on_retry: Optional callback called before each retry delay.
        on_refresh: Optional callback called after an auth refresh.
        on_success: Optional callback called when a request succeeds.
        on_failure: Optional callback called when a request fails.

    Example:
        ```pycon
        >>> from endpointkit.core.config import ClientConfig
        >>> config = ClientConfig()
        >>> config.backoff_strategy
        ConstantBackoff(delay=1.0)
        >>> config.merge(jitter_factor=0.1).jitter_factor
        0.1
        >>> config.jitter_factor
        0.0

        ```
    """

    backoff_strategy: BaseBackoffStrategy = field(
        default_factory=lambda: ConstantBackoff(DEFAULT_RETRY_DELAY)
    )
    jitter_factor: float = 0.0
    max_wait_time: float | None = None
    envelope_keys: EnvelopeKeys = field(default_factory=EnvelopeKeys)
    on_request: Callable[[RequestInfo], None] | None = None
    on_retry: Callable[[RetryInfo], None] | None = None
    on_refresh: Callable[[RefreshInfo], None] | None = None
    on_success: Callable[[ResponseInfo], None] | None = None
    on_failure: Callable[[FailureInfo], None] | None = None

    def __post_init__(self) -> None:
        """Validate configuration parameters.

        Raises:
            ValueError: If any parameter fails validation.
        """
        validate_retry_params(jitter_factor=self.jitter_factor, max_wait_time=self.max_wait_time)

    def merge(self, **overrides: Any) -> ClientConfig:
        """Create a new config with the non-``None`` overrides applied."""
        filtered_overrides = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **filtered_overrides)
