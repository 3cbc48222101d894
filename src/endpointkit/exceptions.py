r"""Error types reported by endpointkit.

Every terminal failure of a logical request is described by a
``NetworkError``. Its ``kind`` is suitable for UI branching, its
``category`` groups kinds into the error taxonomy, and its ``message``
is a stable, human-readable description.
"""

from __future__ import annotations

__all__ = [
    "EndpointConfigurationError",
    "ErrorCategory",
    "ErrorKind",
    "NetworkError",
]

from enum import Enum


class ErrorCategory(str, Enum):
    """Broad family of an error kind."""

    CONNECTIVITY = "connectivity"
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    CLIENT = "client"
    SERVER = "server"
    PROTOCOL = "protocol"
    POLICY = "policy"
    VERSIONING = "versioning"


class ErrorKind(str, Enum):
    """Precise error kind carried by a ``NetworkError``."""

    INVALID_RESPONSE = "invalid_response"
    UNAUTHENTICATED = "unauthenticated"
    TOKEN_EXPIRED = "token_expired"
    DECODING_ERROR = "decoding_error"
    SERVER_ERROR = "server_error"
    SERVER_MESSAGE = "server_message"
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    MAX_RETRIES_EXCEEDED = "max_retries_exceeded"
    CANCELED = "canceled"
    FORBIDDEN = "forbidden"
    APP_UPDATE_REQUIRED = "app_update_required"
    NO_CONNECTIVITY = "no_connectivity"
    TIMEOUT = "timeout"
    BAD_REQUEST = "bad_request"
    UNKNOWN = "unknown"

    @property
    def category(self) -> ErrorCategory:
        return _CATEGORIES[self]


_CATEGORIES: dict[ErrorKind, ErrorCategory] = {
    ErrorKind.INVALID_RESPONSE: ErrorCategory.PROTOCOL,
    ErrorKind.UNAUTHENTICATED: ErrorCategory.AUTHENTICATION,
    ErrorKind.TOKEN_EXPIRED: ErrorCategory.AUTHENTICATION,
    ErrorKind.DECODING_ERROR: ErrorCategory.PROTOCOL,
    ErrorKind.SERVER_ERROR: ErrorCategory.SERVER,
    ErrorKind.SERVER_MESSAGE: ErrorCategory.CLIENT,
    ErrorKind.VALIDATION: ErrorCategory.CLIENT,
    ErrorKind.NOT_FOUND: ErrorCategory.CLIENT,
    ErrorKind.MAX_RETRIES_EXCEEDED: ErrorCategory.POLICY,
    ErrorKind.CANCELED: ErrorCategory.POLICY,
    ErrorKind.FORBIDDEN: ErrorCategory.AUTHORIZATION,
    ErrorKind.APP_UPDATE_REQUIRED: ErrorCategory.VERSIONING,
    ErrorKind.NO_CONNECTIVITY: ErrorCategory.CONNECTIVITY,
    ErrorKind.TIMEOUT: ErrorCategory.CONNECTIVITY,
    ErrorKind.BAD_REQUEST: ErrorCategory.CLIENT,
    ErrorKind.UNKNOWN: ErrorCategory.PROTOCOL,
}

_DEFAULT_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.INVALID_RESPONSE: "Invalid server response",
    ErrorKind.UNAUTHENTICATED: "Authentication required",
    ErrorKind.TOKEN_EXPIRED: "Session expired, please login again",
    ErrorKind.DECODING_ERROR: "Could not process server response",
    ErrorKind.SERVER_MESSAGE: "Unknown error",
    ErrorKind.VALIDATION: "Validation error",
    ErrorKind.NOT_FOUND: "Resource not found",
    ErrorKind.MAX_RETRIES_EXCEEDED: "Request failed after multiple attempts",
    ErrorKind.CANCELED: "Request was canceled",
    ErrorKind.FORBIDDEN: "You don't have permission to access this resource",
    ErrorKind.APP_UPDATE_REQUIRED: "Please update your app to continue",
    ErrorKind.NO_CONNECTIVITY: "No internet connection available",
    ErrorKind.TIMEOUT: "The request timed out",
    ErrorKind.BAD_REQUEST: "Bad request",
    ErrorKind.UNKNOWN: "An unknown error occurred",
}

# Status code reported for kinds that map to a fixed HTTP status
_KIND_STATUS_CODES: dict[ErrorKind, int] = {
    ErrorKind.INVALID_RESPONSE: 500,
    ErrorKind.UNAUTHENTICATED: 401,
    ErrorKind.TOKEN_EXPIRED: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.BAD_REQUEST: 400,
    ErrorKind.VALIDATION: 400,
    ErrorKind.APP_UPDATE_REQUIRED: 426,
}


class EndpointConfigurationError(ValueError):
    r"""Raised when an endpoint descriptor cannot produce a valid
    request.

    This is a configuration mistake, not a runtime failure: it is raised
    when the descriptor is created (invalid scheme, host, port or path)
    or when its body parameters cannot be encoded, and it is never
    retried.

    Example:
        ```pycon
        >>> from endpointkit.exceptions import EndpointConfigurationError
        >>> raise EndpointConfigurationError("host must not be empty")
        Traceback (most recent call last):
            ...
        endpointkit.exceptions.EndpointConfigurationError: host must not be empty

        ```
    """


class NetworkError(Exception):
    r"""Structured error describing why a logical request failed.

    Args:
        kind: The precise error kind.
        message: Optional human-readable message. If ``None``, a stable
            default message for ``kind`` is used.
        response_status: The HTTP status code observed on the wire, if
            any.

    Example:
        ```pycon
        >>> from endpointkit.exceptions import ErrorKind, NetworkError
        >>> error = NetworkError(ErrorKind.NOT_FOUND)
        >>> error.message
        'Resource not found'
        >>> error.category.value
        'client'
        >>> error.status_code
        404
        >>> NetworkError.server_error(503).message
        'Server error (503)'

        ```
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str | None = None,
        *,
        response_status: int | None = None,
    ) -> None:
        self.kind = kind
        self.message = message if message is not None else _DEFAULT_MESSAGES.get(kind, kind.value)
        self.response_status = response_status
        super().__init__(self.message)

    @classmethod
    def server_error(cls, status_code: int) -> NetworkError:
        """Create a ``SERVER_ERROR`` for a 5xx status code."""
        return cls(
            ErrorKind.SERVER_ERROR,
            f"Server error ({status_code})",
            response_status=status_code,
        )

    @classmethod
    def server_message(cls, message: str, *, response_status: int | None = None) -> NetworkError:
        """Create a ``SERVER_MESSAGE`` carrying a message sent by the
        server."""
        return cls(ErrorKind.SERVER_MESSAGE, message, response_status=response_status)

    @classmethod
    def decoding_error(cls, cause: Exception) -> NetworkError:
        """Create a ``DECODING_ERROR`` describing the decoder
        failure."""
        error = cls(ErrorKind.DECODING_ERROR, f"Could not process server response: {cause}")
        error.__cause__ = cause
        return error

    @property
    def category(self) -> ErrorCategory:
        """The taxonomy family of this error."""
        return self.kind.category

    @property
    def status_code(self) -> int | None:
        """The HTTP status code associated with the error kind.

        Server errors report the observed code. Kinds that are not tied
        to a status (connectivity, policy, decoding, server messages)
        report ``None``.
        """
        if self.kind == ErrorKind.SERVER_ERROR:
            return self.response_status
        return _KIND_STATUS_CODES.get(self.kind)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NetworkError):
            return NotImplemented
        if self is other:
            return True
        # Distinct decoding errors wrap arbitrary causes and never compare equal
        if self.kind == ErrorKind.DECODING_ERROR:
            return False
        return (
            self.kind == other.kind
            and self.message == other.message
            and self.status_code == other.status_code
        )

    def __hash__(self) -> int:
        return hash((self.kind, self.message))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind.value!r}, message={self.message!r})"
