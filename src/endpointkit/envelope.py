r"""Response envelope wrapping a payload with a success flag and message.

Many APIs wrap their payload as ``{"success": ..., "message": ...,
"data": ..., "statusCode": ...}``. ``APIResponse.from_json`` recognises
that shape; the key names can be adapted with ``EnvelopeKeys``.
"""

from __future__ import annotations

__all__ = ["APIResponse", "EnvelopeKeys", "ErrorResponse"]

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Generic, TypeVar

if TYPE_CHECKING:
    from collections.abc import Callable

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True)
class EnvelopeKeys:
    """Key names of the envelope fields in the response body.

    Example:
        ```pycon
        >>> from endpointkit.envelope import EnvelopeKeys
        >>> keys = EnvelopeKeys.capitalized()
        >>> keys.success, keys.data
        ('Success', 'Data')

        ```
    """

    success: str = "success"
    message: str = "message"
    data: str = "data"
    status_code: str = "statusCode"

    @classmethod
    def capitalized(cls) -> EnvelopeKeys:
        """Key names for APIs that capitalize envelope fields."""
        return cls(success="Success", message="Message", data="Data", status_code="StatusCode")


@dataclass(frozen=True)
class APIResponse(Generic[T]):
    r"""Decoded response envelope.

    Attributes:
        success: Whether the server reports the call as successful.
        message: Optional server message, usually set on failure.
        data: The payload, if any.
        status_code: Optional status code echoed in the body.

    Example:
        ```pycon
        >>> from endpointkit.envelope import APIResponse
        >>> envelope = APIResponse.from_json({"success": False, "message": "Nope"})
        >>> envelope.success, envelope.error_message, envelope.has_data
        (False, 'Nope', False)
        >>> APIResponse.from_json({"id": 7}) is None
        True

        ```
    """

    success: bool
    message: str | None = None
    data: T | None = None
    status_code: int | None = None

    @classmethod
    def from_json(cls, value: Any, keys: EnvelopeKeys | None = None) -> APIResponse[Any] | None:
        """Interpret a parsed JSON value as an envelope.

        Args:
            value: The parsed JSON body.
            keys: The envelope key names. Defaults to ``EnvelopeKeys()``.

        Returns:
            The envelope, or ``None`` if ``value`` does not have the
            envelope shape (a mapping with a boolean success flag).
        """
        keys = keys or EnvelopeKeys()
        if not isinstance(value, dict) or not isinstance(value.get(keys.success), bool):
            return None
        message = value.get(keys.message)
        status_code = value.get(keys.status_code)
        return cls(
            success=value[keys.success],
            message=message if isinstance(message, str) else None,
            data=value.get(keys.data),
            status_code=status_code if isinstance(status_code, int) else None,
        )

    @classmethod
    def failure(cls, message: str) -> APIResponse[T]:
        """Create a failed envelope carrying ``message``."""
        return cls(success=False, message=message)

    @classmethod
    def succeeded(cls, data: T) -> APIResponse[T]:
        """Create a successful envelope carrying ``data``."""
        return cls(success=True, data=data, status_code=200)

    @property
    def error_message(self) -> str:
        """A user-friendly error message."""
        return self.message or "Unknown error occurred"

    @property
    def has_data(self) -> bool:
        return self.data is not None

    def map(self, transform: Callable[[T], U]) -> APIResponse[U]:
        """Return a new envelope with ``transform`` applied to the
        payload."""
        return APIResponse(
            success=self.success,
            message=self.message,
            data=transform(self.data) if self.data is not None else None,
            status_code=self.status_code,
        )


@dataclass(frozen=True)
class ErrorResponse:
    """Minimal ``{"message": ...}`` error body."""

    message: str

    @classmethod
    def from_json(cls, value: Any) -> ErrorResponse | None:
        if isinstance(value, dict) and isinstance(value.get("message"), str):
            return cls(message=value["message"])
        return None
