r"""Classify the raw result of one attempt into an ``Outcome``.

The classification runs in a fixed order:

1. Transport failures (no response) are mapped by category.
2. A result without a status code is an invalid response.
3. The status code is validated against a fixed table.
4. Successful responses are decoded, first as an envelope and then as
   the bare payload.
5. Non-auth errors prefer a message extracted from the response body over
   the generic status-derived one.
"""

from __future__ import annotations

__all__ = ["ResponseClassifier", "parse_json"]

import json
import logging
from typing import TYPE_CHECKING, Any

from endpointkit.envelope import APIResponse, EnvelopeKeys, ErrorResponse
from endpointkit.enums import ResponseStatus
from endpointkit.exceptions import ErrorKind, NetworkError
from endpointkit.outcome import AuthExpired, Delivered, NoConnectivity, NonRetryable, Retryable
from endpointkit.transport import TransportErrorKind

if TYPE_CHECKING:
    from collections.abc import Callable

    from endpointkit.outcome import Outcome
    from endpointkit.transport import TransportResult

logger: logging.Logger = logging.getLogger(__name__)

# Kinds whose body does not reliably carry a message
_PASSTHROUGH_KINDS = frozenset(
    {
        ErrorKind.UNAUTHENTICATED,
        ErrorKind.TOKEN_EXPIRED,
        ErrorKind.FORBIDDEN,
        ErrorKind.APP_UPDATE_REQUIRED,
        ErrorKind.DECODING_ERROR,
    }
)

_FIXED_STATUS_ERRORS: dict[int, ErrorKind] = {
    ResponseStatus.BAD_REQUEST: ErrorKind.BAD_REQUEST,
    ResponseStatus.FORBIDDEN: ErrorKind.FORBIDDEN,
    ResponseStatus.NOT_FOUND: ErrorKind.NOT_FOUND,
    ResponseStatus.VALIDATION: ErrorKind.VALIDATION,
    ResponseStatus.UPGRADE_REQUIRED: ErrorKind.APP_UPDATE_REQUIRED,
}


def parse_json(body: bytes) -> Any:
    """Parse a response body as JSON.

    Raises:
        ValueError: If the body is not valid JSON.
    """
    return json.loads(body)


def _identity(value: Any) -> Any:
    return value


class ResponseClassifier:
    r"""Map the raw result of one attempt to an ``Outcome``.

    Args:
        envelope_keys: Key names of the response envelope. Defaults to
            ``EnvelopeKeys()``.

    Example:
        ```pycon
        >>> from endpointkit.classifier import ResponseClassifier
        >>> from endpointkit.transport import TransportResult
        >>> classifier = ResponseClassifier()
        >>> classifier.classify(TransportResult(status_code=200, body=b'{"id": 7}'))
        Delivered(payload={'id': 7})
        >>> outcome = classifier.classify(
        ...     TransportResult(status_code=200, body=b'{"success": false, "message": "Nope"}')
        ... )
        >>> type(outcome).__name__, outcome.error.message
        ('NonRetryable', 'Nope')
        >>> type(classifier.classify(TransportResult(status_code=401))).__name__
        'AuthExpired'

        ```
    """

    def __init__(self, envelope_keys: EnvelopeKeys | None = None) -> None:
        self.envelope_keys = envelope_keys or EnvelopeKeys()

    def classify(
        self,
        result: TransportResult,
        decoder: Callable[[Any], Any] | None = None,
    ) -> Outcome:
        """Classify the result of one attempt.

        Args:
            result: The raw transport result.
            decoder: Optional callable turning the parsed JSON payload
                into the target type. Any exception it raises is reported
                as a decoding error. Defaults to returning the parsed JSON.

        Returns:
            The outcome of the attempt.
        """
        if result.error_kind is not None:
            return self._classify_transport_error(result)
        if result.status_code is None:
            return NonRetryable(NetworkError(ErrorKind.INVALID_RESPONSE))

        status_code = result.status_code
        outcome = self.validate_status(status_code)
        if outcome is None:
            try:
                return Delivered(self.decode(result.body, decoder or _identity))
            except NetworkError as error:
                outcome = NonRetryable(error)

        if isinstance(outcome, AuthExpired) or outcome.error.kind in _PASSTHROUGH_KINDS:
            logger.debug(f"Response {status_code} classified as {outcome.error.kind.value}")
            return outcome

        message = self.extract_message(result.body)
        if message is not None:
            error = NetworkError(outcome.error.kind, message, response_status=status_code)
            outcome = type(outcome)(error)
        logger.debug(
            f"Response {status_code} classified as {outcome.error.kind.value}: "
            f"{outcome.error.message}"
        )
        return outcome

    def validate_status(self, status_code: int) -> Outcome | None:
        """Validate a status code against the fixed status table.

        Args:
            status_code: The HTTP status code.

        Returns:
            ``None`` if the response should be decoded, otherwise the
            error outcome for the status.

        Example:
            ```pycon
            >>> from endpointkit.classifier import ResponseClassifier
            >>> classifier = ResponseClassifier()
            >>> classifier.validate_status(201) is None
            True
            >>> classifier.validate_status(503).error.message
            'Server error (503)'
            >>> classifier.validate_status(418).error.message
            'Request failed with status code 418'

            ```
        """
        if status_code in (ResponseStatus.OK, ResponseStatus.CREATED):
            return None
        if status_code == ResponseStatus.UNAUTHENTICATED:
            return AuthExpired(NetworkError(ErrorKind.UNAUTHENTICATED, response_status=status_code))
        if status_code == ResponseStatus.EXPIRED:
            return AuthExpired(NetworkError(ErrorKind.TOKEN_EXPIRED, response_status=status_code))
        if status_code in _FIXED_STATUS_ERRORS:
            return NonRetryable(
                NetworkError(_FIXED_STATUS_ERRORS[status_code], response_status=status_code)
            )
        if status_code >= 500:
            return Retryable(NetworkError.server_error(status_code))
        if status_code >= 400:
            return NonRetryable(
                NetworkError.server_message(
                    f"Request failed with status code {status_code}",
                    response_status=status_code,
                )
            )
        return None

    def decode(self, body: bytes, decoder: Callable[[Any], Any]) -> Any:
        """Decode a successful response body.

        The body is first interpreted as an envelope. A failed envelope is
        reported with its server message; a successful envelope carrying
        data yields the decoded data. Otherwise the whole body is decoded
        as the payload.

        Raises:
            NetworkError: ``SERVER_MESSAGE`` for a failed envelope,
                ``DECODING_ERROR`` if no decoding attempt succeeds.
        """
        try:
            value = parse_json(body)
        except ValueError as exc:
            raise NetworkError.decoding_error(exc) from exc

        envelope = APIResponse.from_json(value, self.envelope_keys)
        if envelope is not None:
            if not envelope.success:
                raise NetworkError.server_message(envelope.message or "Unknown error")
            if envelope.has_data:
                try:
                    return decoder(envelope.data)
                except Exception:  # noqa: BLE001
                    logger.debug("Envelope data did not decode, decoding the whole body instead")

        try:
            return decoder(value)
        except Exception as exc:
            raise NetworkError.decoding_error(exc) from exc

    def extract_message(self, body: bytes) -> str | None:
        r"""Extract a human-readable error message from a response body.

        Tries a minimal ``{"message": ...}`` body first, then the
        envelope's message field.

        Example:
            ```pycon
            >>> from endpointkit.classifier import ResponseClassifier
            >>> ResponseClassifier().extract_message(b'{"message": "Email taken"}')
            'Email taken'
            >>> ResponseClassifier().extract_message(b"<html></html>") is None
            True

            ```
        """
        try:
            value = parse_json(body)
        except ValueError:
            return None
        error_response = ErrorResponse.from_json(value)
        if error_response is not None:
            return error_response.message
        envelope = APIResponse.from_json(value, self.envelope_keys)
        if envelope is not None and envelope.message is not None:
            return envelope.message
        return None

    def _classify_transport_error(self, result: TransportResult) -> Outcome:
        kind = result.error_kind
        if kind == TransportErrorKind.CONNECTIVITY:
            error = NetworkError(ErrorKind.NO_CONNECTIVITY)
            outcome: Outcome = NoConnectivity(error)
        elif kind == TransportErrorKind.TIMEOUT:
            error = NetworkError(ErrorKind.TIMEOUT)
            outcome = Retryable(error)
        elif kind == TransportErrorKind.CANCELED:
            error = NetworkError(ErrorKind.CANCELED)
            outcome = NonRetryable(error)
        else:
            error = NetworkError(ErrorKind.UNKNOWN)
            outcome = NonRetryable(error)
        if result.error is not None:
            error.__cause__ = result.error
        logger.debug(f"Transport failure classified as {error.kind.value}")
        return outcome
