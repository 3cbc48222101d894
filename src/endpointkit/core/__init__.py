r"""Configuration defaults and validation shared by the executor and
the client."""

from __future__ import annotations

__all__ = [
    "DEFAULT_RETRY_BUDGET",
    "DEFAULT_RETRY_DELAY",
    "DEFAULT_TIMEOUT",
    "ClientConfig",
    "validate_retry_params",
    "validate_timeout",
]

from endpointkit.core.config import (
    DEFAULT_RETRY_BUDGET,
    DEFAULT_RETRY_DELAY,
    DEFAULT_TIMEOUT,
    ClientConfig,
)
from endpointkit.core.validation import validate_retry_params, validate_timeout
